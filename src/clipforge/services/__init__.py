"""Application services."""

from clipforge.services.coordinator import PipelineCoordinator, StageView
from clipforge.services.materializer import ResultMaterializer
from clipforge.services.poller import PollHandle, Poller
from clipforge.services.prompt_writer import PromptWriter
from clipforge.services.task_store import TaskStore

__all__ = [
    "PipelineCoordinator",
    "PollHandle",
    "Poller",
    "PromptWriter",
    "ResultMaterializer",
    "StageView",
    "TaskStore",
]
