"""Celery tasks package.

Import task modules here so Celery autodiscovery registers them when loading
``contractgen.tasks``.
"""

# Explicit imports keep Celery from dropping "unregistered task" messages.
from contractgen.tasks import maintenance  # noqa: F401

__all__ = [
    "maintenance",
]
