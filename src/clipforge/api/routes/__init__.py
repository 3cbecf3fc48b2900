"""API route modules."""

from clipforge.api.routes import health, tasks, units

__all__ = ["health", "tasks", "units"]
