"""Durable storage for creative units and their provider tasks."""

import threading
import weakref
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from clipforge.db.models import CreativeUnitModel, TaskModel
from clipforge.db.session import SessionLocal
from clipforge.domain.enums import Stage, TaskKind, TaskStatus
from clipforge.domain.models import CreativeUnit, Task, TaskObservation
from clipforge.errors import NotFoundError, ValidationError
from clipforge.logging import get_logger

logger = get_logger(__name__)

UNIT_FIELDS = frozenset(
    {
        "name",
        "prompt",
        "video_task_id",
        "character_name",
        "character_task_id",
        "next_prompt",
        "next_task_id",
    }
)


def _now() -> datetime:
    return datetime.now(UTC)


def _to_task(row: TaskModel) -> Task:
    return Task(
        id=row.id,
        unit_id=row.unit_id,
        provider_task_id=row.provider_task_id,
        kind=TaskKind(row.kind),
        stage=Stage(row.stage),
        status=TaskStatus(row.status),
        progress=row.progress or 0,
        result_url=row.result_url,
        local_path=row.local_path,
        character_id=row.character_id,
        fail_message=row.fail_message,
        warning=row.warning,
        stalled=bool(row.stalled),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_unit(row: CreativeUnitModel) -> CreativeUnit:
    return CreativeUnit(
        id=row.id,
        name=row.name,
        situation=row.situation,
        stage=Stage(row.stage),
        prompt=row.prompt,
        video_task_id=row.video_task_id,
        character_name=row.character_name,
        character_task_id=row.character_task_id,
        next_prompt=row.next_prompt,
        next_task_id=row.next_task_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TaskStore:
    """Persistence for tasks and creative units.

    Every method runs in its own short transaction and returns detached domain
    objects. Writes to one task row are serialized by a per-task lock; rows are
    never updated jointly, so no cross-row locking is needed.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory
        # Entries vanish once no writer holds the lock
        self._locks: weakref.WeakValueDictionary[UUID, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _lock_for(self, task_id: UUID) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(task_id, threading.Lock())

    @staticmethod
    def _get_task_row(session: Session, task_id: UUID) -> TaskModel:
        row = session.get(TaskModel, task_id)
        if row is None:
            raise NotFoundError(f"Task {task_id} not found")
        return row

    @staticmethod
    def _get_unit_row(session: Session, unit_id: UUID) -> CreativeUnitModel:
        row = session.get(CreativeUnitModel, unit_id)
        if row is None:
            raise NotFoundError(f"Creative unit {unit_id} not found")
        return row

    # ------------------------------------------------------------------
    # Creative units
    # ------------------------------------------------------------------

    def create_unit(self, situation: str, name: str | None = None) -> CreativeUnit:
        with self._session() as session:
            row = CreativeUnitModel(situation=situation, name=name, stage=Stage.SITUATION.value)
            session.add(row)
            session.flush()
            session.refresh(row)
            logger.info("unit_created", unit_id=str(row.id))
            return _to_unit(row)

    def get_unit(self, unit_id: UUID) -> CreativeUnit:
        with self._session() as session:
            return _to_unit(self._get_unit_row(session, unit_id))

    def list_units(self, limit: int = 100, offset: int = 0) -> list[CreativeUnit]:
        with self._session() as session:
            query = (
                select(CreativeUnitModel)
                .order_by(CreativeUnitModel.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [_to_unit(row) for row in session.execute(query).scalars()]

    def advance_unit(self, unit_id: UUID, stage: Stage, **fields: Any) -> CreativeUnit:
        """Update unit fields and move the stage marker forward to ``stage``.

        The marker never moves backward: advancing to an earlier stage only
        writes the fields.
        """
        unknown = set(fields) - UNIT_FIELDS
        if unknown:
            raise ValueError(f"Unknown creative unit fields: {sorted(unknown)}")

        with self._session() as session:
            row = self._get_unit_row(session, unit_id)
            for key, value in fields.items():
                setattr(row, key, value)

            current = Stage(row.stage)
            if current.is_before(stage):
                row.stage = stage.value
                logger.info(
                    "unit_stage_advanced",
                    unit_id=str(unit_id),
                    from_stage=current.value,
                    to_stage=stage.value,
                )
            session.flush()
            session.refresh(row)
            return _to_unit(row)

    def delete_unit(self, unit_id: UUID) -> list[UUID]:
        """Delete a unit and (by cascade) its tasks. Returns the deleted task ids."""
        with self._session() as session:
            row = self._get_unit_row(session, unit_id)
            task_ids = [task.id for task in row.tasks]
            session.delete(row)

        with self._locks_guard:
            for task_id in task_ids:
                self._locks.pop(task_id, None)

        logger.info("unit_deleted", unit_id=str(unit_id), task_count=len(task_ids))
        return task_ids

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(
        self,
        unit_id: UUID,
        provider_task_id: str,
        kind: TaskKind,
        stage: Stage,
        input_data: dict[str, Any] | None = None,
    ) -> Task:
        with self._session() as session:
            self._get_unit_row(session, unit_id)
            row = TaskModel(
                unit_id=unit_id,
                provider_task_id=provider_task_id,
                kind=kind.value,
                stage=stage.value,
                status=TaskStatus.WAITING.value,
                progress=0,
                input_data=input_data,
            )
            session.add(row)
            session.flush()
            session.refresh(row)
            logger.info(
                "task_created",
                task_id=str(row.id),
                unit_id=str(unit_id),
                provider_task_id=provider_task_id,
                kind=kind.value,
            )
            return _to_task(row)

    def get_task(self, task_id: UUID) -> Task:
        with self._session() as session:
            return _to_task(self._get_task_row(session, task_id))

    def list_tasks(self, unit_id: UUID) -> list[Task]:
        with self._session() as session:
            query = (
                select(TaskModel)
                .where(TaskModel.unit_id == unit_id)
                .order_by(TaskModel.created_at)
            )
            return [_to_task(row) for row in session.execute(query).scalars()]

    def list_active_tasks(self) -> list[Task]:
        """Tasks that are non-terminal and not flagged as stalled."""
        non_terminal = [s.value for s in TaskStatus if not s.is_terminal]
        with self._session() as session:
            query = select(TaskModel).where(
                TaskModel.status.in_(non_terminal),
                TaskModel.stalled.is_(False),
            )
            return [_to_task(row) for row in session.execute(query).scalars()]

    def record_observation(self, task_id: UUID, observation: TaskObservation) -> Task:
        """Write one provider observation.

        Written even when nothing changed, to refresh progress and the
        observation timestamp. A terminal status is final; an observation that
        disagrees with it only refreshes the timestamp.
        """
        with self._lock_for(task_id), self._session() as session:
            row = self._get_task_row(session, task_id)
            current = TaskStatus(row.status)
            new = observation.status
            row.last_observed_at = _now()

            if current.is_terminal:
                if not current.can_transition_to(new):
                    logger.warning(
                        "task_terminal_status_regression_ignored",
                        task_id=str(task_id),
                        current=current.value,
                        observed=new.value,
                    )
                return _to_task(row)

            row.status = new.value
            row.progress = 100 if new == TaskStatus.SUCCESS else observation.progress
            row.stalled = False

            if new == TaskStatus.SUCCESS:
                row.result_url = observation.result_url
                row.character_id = observation.character_id
                row.completed_at = row.last_observed_at
            elif new == TaskStatus.FAIL:
                row.fail_message = observation.fail_message
                row.completed_at = row.last_observed_at

            session.flush()
            session.refresh(row)
            return _to_task(row)

    def set_local_path(self, task_id: UUID, local_path: str) -> Task:
        """Record the materialized copy of a successful task's result."""
        with self._lock_for(task_id), self._session() as session:
            row = self._get_task_row(session, task_id)
            if row.status != TaskStatus.SUCCESS.value:
                raise ValidationError(
                    f"Task {task_id} is {row.status}; only successful tasks carry results"
                )
            row.local_path = local_path
            row.warning = None
            session.flush()
            session.refresh(row)
            return _to_task(row)

    def set_warning(self, task_id: UUID, warning: str | None) -> Task:
        with self._lock_for(task_id), self._session() as session:
            row = self._get_task_row(session, task_id)
            row.warning = warning
            session.flush()
            session.refresh(row)
            return _to_task(row)

    def set_stalled(self, task_id: UUID, stalled: bool = True) -> Task:
        with self._lock_for(task_id), self._session() as session:
            row = self._get_task_row(session, task_id)
            row.stalled = stalled
            session.flush()
            session.refresh(row)
            return _to_task(row)
