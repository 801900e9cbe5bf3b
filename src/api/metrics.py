from prometheus_client import Counter, Histogram, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # If it already exists, retrieve it from the registry
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "brainflow_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "brainflow_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

TASKS_MOVED_TOTAL = get_or_create_metric(
    "brainflow_tasks_moved_total", "Tasks moved from the backlog into brain dumps", Counter
)

TASKS_DELETED_TOTAL = get_or_create_metric(
    "brainflow_tasks_deleted_total", "Backlog tasks deleted", Counter
)

CLASSIFICATIONS_TOTAL = get_or_create_metric(
    "brainflow_classifications_total",
    "Quadrant classifications by outcome",
    Counter,
    labelnames=["outcome"],
)


def observe(endpoint: str, status: str, started: float, now: float) -> None:
    """Record one request (best-effort)."""
    try:
        REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(now - started)
    except Exception:
        pass
