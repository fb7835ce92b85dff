import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from statement_intel.common.logging_config import get_logger, set_session_id
from statement_intel.common.models import ProcessingResult
from statement_intel.parsing.exceptions import ParseTimeoutError
from .exceptions import ProcessingCancelled, SessionAlreadyProcessing
from .processor import StatementProcessor

logger = get_logger(__name__)

PROCESSING = 'processing'
COMPLETED = 'completed'
FAILED = 'failed'
CANCELLED = 'cancelled'

PARSE_TIMEOUT_MESSAGE = "PDF parsing timeout"
CANCELLED_MESSAGE = "Processing cancelled"


@dataclass
class RunState:
    session_id: str
    status: str = PROCESSING
    stage: Optional[str] = None
    error: Optional[str] = None
    result: Optional[ProcessingResult] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def to_dict(self):
        return {
            'session_id': self.session_id,
            'status': self.status,
            'stage': self.stage,
            'error': self.error,
            'started_at': self.started_at,
            'finished_at': self.finished_at,
        }


class ProcessingScheduler:
    """
    Runs statement processing per session with at most one run in flight
    for any session id. A request for a session that is still running is
    rejected, not queued. Distinct sessions run concurrently and share only
    the processor's read-only configuration.
    """

    def __init__(self, processor: Optional[StatementProcessor] = None, max_workers: int = 4):
        self.processor = processor or StatementProcessor()
        self._runs: Dict[str, RunState] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="statement-run")

    def _claim(self, session_id: str) -> Optional[RunState]:
        with self._lock:
            existing = self._runs.get(session_id)
            if existing and existing.status == PROCESSING:
                return None
            state = RunState(session_id=session_id)
            self._runs[session_id] = state
            return state

    def _set_stage(self, state: RunState, stage: str) -> None:
        with self._lock:
            state.stage = stage
        logger.info(f"Session {state.session_id} entering {stage}", stage=stage)

    def _finish(self, state: RunState, status: str, error: Optional[str] = None,
                result: Optional[ProcessingResult] = None) -> None:
        with self._lock:
            state.status = status
            state.error = error
            state.result = result
            state.finished_at = datetime.now()

    def _run(self, state: RunState, buffer, owner_id: Any, filename: Optional[str]) -> Optional[ProcessingResult]:
        set_session_id(state.session_id)
        try:
            result = self.processor.process(
                buffer,
                owner_id=owner_id,
                filename=filename,
                on_stage=lambda stage: self._set_stage(state, stage),
                cancel_event=state.cancel_event,
            )
        except ProcessingCancelled as e:
            logger.warning(f"Processing cancelled for session {state.session_id}", stage=e.stage)
            self._finish(state, CANCELLED, error=CANCELLED_MESSAGE)
            return None
        except ParseTimeoutError as e:
            logger.error(f"Processing failed for session {state.session_id}: {e}", timeout=e.timeout)
            self._finish(state, FAILED, error=PARSE_TIMEOUT_MESSAGE)
            return None
        except Exception as e:
            logger.error(f"Processing failed for session {state.session_id}: {e}", exc_info=True)
            self._finish(state, FAILED, error=str(e) or "Processing failed")
            return None
        finally:
            set_session_id(None)

        self._finish(state, COMPLETED, result=result)
        logger.info(f"Processing completed for session {state.session_id}",
                    recurring=result.statistics.recurring_detected)
        return result

    def process(self, session_id: str, buffer, owner_id: Any = "",
                filename: Optional[str] = None) -> Optional[ProcessingResult]:
        """
        Process synchronously. Returns None when the session is already
        running, or when the run failed or was cancelled (see get_status).
        """
        state = self._claim(session_id)
        if state is None:
            logger.warning(f"Session {session_id} is already being processed")
            return None
        return self._run(state, buffer, owner_id, filename)

    def submit(self, session_id: str, buffer, owner_id: Any = "",
               filename: Optional[str] = None) -> Optional[Future]:
        """Process on the worker pool. Returns None when the session is already running."""
        state = self._claim(session_id)
        if state is None:
            logger.warning(f"Session {session_id} is already being processed")
            return None
        return self._executor.submit(self._run, state, buffer, owner_id, filename)

    def retry(self, session_id: str, buffer, owner_id: Any = "",
              filename: Optional[str] = None) -> Optional[ProcessingResult]:
        """
        Reprocess a failed or cancelled session from scratch.

        Raises:
            SessionAlreadyProcessing: the session is still running
            ValueError: the session is unknown or did not fail
        """
        with self._lock:
            state = self._runs.get(session_id)
            status = state.status if state else None
        if status == PROCESSING:
            raise SessionAlreadyProcessing(session_id)
        if status not in (FAILED, CANCELLED):
            raise ValueError(f"Session {session_id} not found or not in failed state")
        logger.info(f"Retrying session {session_id}", previous_status=status)
        return self.process(session_id, buffer, owner_id=owner_id, filename=filename)

    def cancel(self, session_id: str) -> bool:
        """
        Ask a running session to stop. The run ends at its next stage
        boundary and stays in 'processing' until then.
        """
        with self._lock:
            state = self._runs.get(session_id)
            if not state or state.status != PROCESSING:
                return False
            state.cancel_event.set()
        logger.info(f"Cancellation requested for session {session_id}")
        return True

    def is_processing(self, session_id: str) -> bool:
        with self._lock:
            state = self._runs.get(session_id)
            return bool(state and state.status == PROCESSING)

    def get_status(self, session_id: str) -> Optional[dict]:
        with self._lock:
            state = self._runs.get(session_id)
            return state.to_dict() if state else None

    def get_result(self, session_id: str) -> Optional[ProcessingResult]:
        with self._lock:
            state = self._runs.get(session_id)
            return state.result if state else None

    def cleanup_finished(self, max_age: timedelta = timedelta(hours=4), now: Optional[datetime] = None) -> int:
        """Forget finished runs older than max_age. Running sessions are never removed."""
        now = now or datetime.now()
        with self._lock:
            expired = [
                sid for sid, state in self._runs.items()
                if state.status != PROCESSING and state.finished_at and now - state.finished_at > max_age
            ]
            for sid in expired:
                del self._runs[sid]
        if expired:
            logger.info(f"Cleaned up {len(expired)} finished sessions")
        return len(expired)

    def get_queue_stats(self) -> dict:
        with self._lock:
            processing = [sid for sid, s in self._runs.items() if s.status == PROCESSING]
            counts = {COMPLETED: 0, FAILED: 0, CANCELLED: 0}
            for state in self._runs.values():
                if state.status in counts:
                    counts[state.status] += 1
        return {
            'active_processing': len(processing),
            'processing_sessions': processing,
            'completed': counts[COMPLETED],
            'failed': counts[FAILED],
            'cancelled': counts[CANCELLED],
        }

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
