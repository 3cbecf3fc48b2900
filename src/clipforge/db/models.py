"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid, false
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CreativeUnitModel(Base):
    """Creative unit (one ad-generation attempt) ORM model."""

    __tablename__ = "creative_units"

    id: Mapped[PyUUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    situation: Mapped[str] = mapped_column(Text, nullable=False)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    stage: Mapped[str] = mapped_column(String(50), server_default="situation", index=True)
    video_task_id: Mapped[PyUUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    character_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    character_task_id: Mapped[PyUUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    next_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_task_id: Mapped[PyUUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    tasks: Mapped[list["TaskModel"]] = relationship(
        "TaskModel", back_populates="unit", cascade="all, delete-orphan", passive_deletes=True
    )


class TaskModel(Base):
    """Provider task (video generation or character creation) ORM model."""

    __tablename__ = "tasks"

    id: Mapped[PyUUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    unit_id: Mapped[PyUUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("creative_units.id", ondelete="CASCADE"), index=True
    )
    provider_task_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    stage: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), server_default="waiting", index=True)
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    result_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    local_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    character_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fail_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    warning: Mapped[str | None] = mapped_column(Text, nullable=True)
    stalled: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    input_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    last_observed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    unit: Mapped["CreativeUnitModel"] = relationship("CreativeUnitModel", back_populates="tasks")
