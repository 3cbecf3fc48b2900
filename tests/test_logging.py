"""Tests for logging setup."""

import logging
from uuid import uuid4

import structlog

from clipforge.logging import SERVICE_NAME, bound_task, setup_logging


def test_setup_logging_does_not_stack_handlers() -> None:
    setup_logging()
    setup_logging(log_level="debug", log_format="json")

    root_logger = logging.getLogger()
    ours = [h for h in root_logger.handlers if h.get_name() == SERVICE_NAME]
    assert len(ours) == 1
    assert root_logger.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    setup_logging(log_level="WARNING")


def test_bound_task_scopes_context() -> None:
    task_id = uuid4()

    with bound_task(task_id, "prov-1"):
        context = structlog.contextvars.get_contextvars()
        assert context["task_id"] == str(task_id)
        assert context["provider_task_id"] == "prov-1"

    assert "task_id" not in structlog.contextvars.get_contextvars()
