"""
Upload/analysis/result flow of the web UI.

    IDLE --select_image--> ANALYZING --image_decoded--> SEARCHING --result_available--> COMPLETED
      any --fail / validation error--> ERROR
      ERROR, COMPLETED --reset--> IDLE

SEARCHING gives up after ANALYSIS_DISPLAY_TIMEOUT seconds and moves to ERROR;
no placeholder result is ever shown in place of a real one. The machine is
stored in the session cookie as a plain dict.
"""
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional

from turmeric_care.config import ANALYSIS_DISPLAY_TIMEOUT
from turmeric_care.errors import InvalidViewTransition, UploadValidationError
from turmeric_care.models import Analysis, AnalysisStatus
from turmeric_care.utils.upload import validate_upload

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Analysis failed. Please try again."
TIMEOUT_MESSAGE = "Analysis is taking longer than expected. Please try again."


class ViewState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    SEARCHING = "SEARCHING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class ViewStateMachine:

    def __init__(
        self,
        state: ViewState = ViewState.IDLE,
        analysis_id: Optional[str] = None,
        error: Optional[str] = None,
        started_at: Optional[float] = None,
        timeout: float = ANALYSIS_DISPLAY_TIMEOUT,
    ):
        self.state = ViewState(state)
        self.analysis_id = analysis_id
        self.error = error
        self.started_at = started_at
        self.timeout = timeout

    def _require(self, *allowed: ViewState, event: str) -> None:
        if self.state not in allowed:
            raise InvalidViewTransition(f"'{event}' is not valid in state {self.state.value}")

    def _move(self, state: ViewState) -> None:
        logger.debug(f"View state {self.state.value} -> {state.value}")
        self.state = state

    # --- events -----------------------------------------------------------

    def select_image(self, content_type: str, size: int) -> bool:
        """Returns False (and moves to ERROR) when the file is rejected"""
        self._require(ViewState.IDLE, event="select_image")
        try:
            validate_upload(content_type, size)
        except UploadValidationError as e:
            self.fail(str(e))
            return False

        self.error = None
        self._move(ViewState.ANALYZING)
        return True

    def image_decoded(self, analysis_id: str, now: Optional[float] = None) -> None:
        self._require(ViewState.ANALYZING, event="image_decoded")
        self.analysis_id = analysis_id
        self.started_at = time.time() if now is None else now
        self._move(ViewState.SEARCHING)

    def result_available(self, analysis: Optional[Analysis]) -> None:
        self._require(ViewState.SEARCHING, event="result_available")
        if analysis is None or analysis.status == AnalysisStatus.ANALYZING:
            return
        if analysis.status == AnalysisStatus.COMPLETED:
            self._move(ViewState.COMPLETED)
        else:
            self.fail(ANALYSIS_FAILED_MESSAGE)

    def check_timeout(self, now: Optional[float] = None) -> bool:
        """Move SEARCHING to ERROR once the display ceiling has passed"""
        if self.state != ViewState.SEARCHING or self.started_at is None:
            return False
        now = time.time() if now is None else now
        if now - self.started_at > self.timeout:
            logger.warning(f"Analysis {self.analysis_id} exceeded {self.timeout}s display timeout")
            self.fail(TIMEOUT_MESSAGE)
            return True
        return False

    def fail(self, message: str) -> None:
        self.error = message
        self._move(ViewState.ERROR)

    def reset(self) -> None:
        self._require(ViewState.IDLE, ViewState.ERROR, ViewState.COMPLETED, event="reset")
        self.analysis_id = None
        self.error = None
        self.started_at = None
        self._move(ViewState.IDLE)

    # --- session round trip -----------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "analysis_id": self.analysis_id,
            "error": self.error,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ViewStateMachine":
        if not data:
            return cls()
        try:
            return cls(
                state=ViewState(data.get("state", ViewState.IDLE.value)),
                analysis_id=data.get("analysis_id"),
                error=data.get("error"),
                started_at=data.get("started_at"),
            )
        except ValueError:
            logger.warning(f"Invalid view state in session, resetting to IDLE: {data}")
            return cls()
