from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class StageStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StageResult:
    """Outcome of a stage that did not fail.

    Fatal failures are raised instead so the queue redelivers the message.
    """

    status: StageStatus
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "StageResult":
        return cls(StageStatus.SUCCESS, message)

    @classmethod
    def skipped(cls, message: str = "") -> "StageResult":
        return cls(StageStatus.SKIPPED, message)


class StageHandler(ABC):
    """Consumes one queue message body and performs one stage of the pipeline."""

    @abstractmethod
    def handle(self, body: str) -> StageResult:
        raise NotImplementedError
