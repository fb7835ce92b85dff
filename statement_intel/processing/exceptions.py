"""
Exceptions raised by statement processing runs.
"""


class ProcessingCancelled(Exception):
    """Raised at a stage boundary once a run has been asked to stop."""

    def __init__(self, stage: str = None):
        self.stage = stage
        message = "Processing cancelled"
        if stage:
            message = f"{message} before stage '{stage}'"
        super().__init__(message)


class SessionAlreadyProcessing(Exception):
    """Raised when a second run is requested for a session that is still running."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already being processed")
