"""Database layer."""

from clipforge.db.models import Base, CreativeUnitModel, TaskModel
from clipforge.db.session import SessionLocal, build_engine, engine, init_db

__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "init_db",
    # Models
    "CreativeUnitModel",
    "TaskModel",
]
