"""Domain enumerations."""

from enum import StrEnum


class TaskKind(StrEnum):
    """Kind of job submitted to the generation provider."""

    VIDEO_GENERATION = "video-generation"
    CHARACTER_CREATION = "character-creation"


class TaskStatus(StrEnum):
    """Task status, using the provider's vocabulary verbatim."""

    WAITING = "waiting"
    QUEUING = "queuing"
    GENERATING = "generating"
    SUCCESS = "success"
    FAIL = "fail"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCESS, TaskStatus.FAIL)

    def can_transition_to(self, other: "TaskStatus") -> bool:
        """Terminal statuses are final; anything non-terminal may move anywhere."""
        if self.is_terminal:
            return other == self
        return True


class Stage(StrEnum):
    """Pipeline stage marker of a creative unit."""

    SITUATION = "situation"
    PROMPT = "prompt"
    VIDEO = "video"
    CHARACTER = "character"
    NEXT = "next"

    @property
    def index(self) -> int:
        return list(Stage).index(self)

    def is_before(self, other: "Stage") -> bool:
        return self.index < other.index


# Display strings live at the presentation boundary only
TASK_STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.WAITING: "Waiting",
    TaskStatus.QUEUING: "In queue",
    TaskStatus.GENERATING: "Generating",
    TaskStatus.SUCCESS: "Ready",
    TaskStatus.FAIL: "Failed",
}

STAGE_LABELS: dict[Stage, str] = {
    Stage.SITUATION: "Situation",
    Stage.PROMPT: "Prompt",
    Stage.VIDEO: "Video",
    Stage.CHARACTER: "Character",
    Stage.NEXT: "Next 15s",
}
