# User value: This file keeps every upload job on a known path so partial failures are never ambiguous.
import logging
from typing import List, Optional

from schemas.job_contract import (
    STAGE_CONNECTING,
    STAGE_DISCONNECTING,
    STAGE_DONE,
    STAGE_ENSURING_DIRECTORIES,
    STAGE_FAILED,
    STAGE_LOGGING_OUTCOME,
    STAGE_UPLOADING_PAGE,
    STAGE_VALIDATING,
    TERMINAL_STAGES,
)

logger = logging.getLogger("api.status_machine")

_ALLOWED = {
    None: {STAGE_VALIDATING},
    STAGE_VALIDATING: {STAGE_CONNECTING, STAGE_LOGGING_OUTCOME, STAGE_FAILED},
    STAGE_CONNECTING: {STAGE_ENSURING_DIRECTORIES, STAGE_DISCONNECTING, STAGE_LOGGING_OUTCOME},
    STAGE_ENSURING_DIRECTORIES: {STAGE_UPLOADING_PAGE, STAGE_DISCONNECTING},
    STAGE_UPLOADING_PAGE: {STAGE_UPLOADING_PAGE, STAGE_DISCONNECTING},
    STAGE_DISCONNECTING: {STAGE_LOGGING_OUTCOME},
    STAGE_LOGGING_OUTCOME: {STAGE_DONE, STAGE_FAILED},
    STAGE_DONE: set(),
    STAGE_FAILED: set(),
}


# User value: This step keeps the upload flow accurate and dependable.
def _norm(stage: Optional[str]) -> Optional[str]:
    if stage is None:
        return None
    s = str(stage).strip().upper()
    return s or None


# User value: This step keeps the upload flow accurate and dependable.
def is_allowed_transition(current: Optional[str], target: Optional[str]) -> bool:
    target_n = _norm(target)
    if not target_n:
        return False
    current_n = _norm(current)
    return target_n in _ALLOWED.get(current_n, set())


class JobStateTracker:
    """Tracks the orchestrator's position in the job state machine.

    CONNECTING may fall straight through to LOGGING_OUTCOME when the
    connection was never established; there is nothing to disconnect.
    """

    def __init__(self, job_id: str, request_id: str = ""):
        self.job_id = job_id
        self.request_id = request_id
        self.current: Optional[str] = None
        self.history: List[str] = []

    @property
    def is_terminal(self) -> bool:
        return self.current in TERMINAL_STAGES

    def advance(self, target: str) -> None:
        target_n = _norm(target)
        if not is_allowed_transition(self.current, target_n):
            logger.warning(
                "stage_transition_blocked job_id=%s current=%s target=%s request_id=%s",
                self.job_id,
                self.current,
                target_n,
                self.request_id,
            )
            raise RuntimeError(f"Invalid stage transition {self.current or 'NONE'} -> {target_n}")
        self.current = target_n
        self.history.append(target_n)
