import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.exceptions import HookExecutionError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Tagged outcome carried through return values instead of signals."""
    OK = 'ok'
    USER_WARNING = 'user_warning'
    HOOK_ERROR = 'hook_error'
    TASK_FAILURE = 'task_failure'
    TASK_INTERRUPTED = 'task_interrupted'
    CONFIGURATION_MISSING = 'configuration_missing'
    ARTIFACT_LOAD_ERROR = 'artifact_load_error'


@dataclass
class HookRunResult:
    """Outcome of one batch of callback lists."""
    kind: ErrorKind = ErrorKind.OK
    error: Optional[HookExecutionError] = None
    completed_hooks: List[str] = field(default_factory=list)
    skipped_hooks: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    callbacks_run: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is not ErrorKind.HOOK_ERROR

    def raise_for_error(self) -> None:
        """Escalate a hook error for callers that do not tolerate it."""
        if self.error is not None:
            raise self.error


@dataclass
class TaskOutcome:
    """Outcome of one attempt made by the incremental loader."""
    task_name: str
    kind: ErrorKind
    message: str = ''

    @property
    def interrupted(self) -> bool:
        return self.kind is ErrorKind.TASK_INTERRUPTED

    @property
    def failed(self) -> bool:
        return self.kind is ErrorKind.TASK_FAILURE
