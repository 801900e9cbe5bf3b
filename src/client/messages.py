"""User-facing notification texts."""

MESSAGES = {
    "en": {
        "select_task": "Select at least one task",
        "select_dump": "Select a brain dump",
        "enter_title": "Enter a title",
        "enter_task": "Write a task",
        "load_failed": "Could not load the backlog",
        "task_created": "Task created",
        "create_task_failed": "Could not create the task",
        "tasks_deleted": "{count} tasks deleted",
        "tasks_partially_deleted": "{count} tasks deleted, {failed} could not be deleted",
        "delete_failed": "Could not delete the tasks",
        "tasks_moved": "{count} tasks moved to the brain dump",
        "move_failed": "Could not move the tasks",
        "dump_created": "Brain dump created with {count} tasks",
        "create_dump_failed": "Could not create the brain dump",
    },
    "es": {
        "select_task": "Selecciona al menos una tarea",
        "select_dump": "Selecciona un brain dump",
        "enter_title": "Ingresa un título",
        "enter_task": "Escribe una tarea",
        "load_failed": "Error al cargar el backlog",
        "task_created": "Tarea creada",
        "create_task_failed": "Error al crear tarea",
        "tasks_deleted": "{count} tareas eliminadas",
        "tasks_partially_deleted": "{count} tareas eliminadas, {failed} no se pudieron eliminar",
        "delete_failed": "Error al eliminar tareas",
        "tasks_moved": "{count} tareas movidas al brain dump",
        "move_failed": "Error al mover tareas",
        "dump_created": "Brain dump creado con {count} tareas",
        "create_dump_failed": "Error al crear brain dump",
    },
}


def message(locale: str, key: str, **params) -> str:
    table = MESSAGES.get(locale, MESSAGES["en"])
    return table[key].format(**params)
