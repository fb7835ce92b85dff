"""
Exceptions raised while turning a statement buffer into text and transactions.
"""


class StatementParseError(Exception):
    """
    Raised when a statement buffer cannot be read at all.

    The filename, when known, is appended to the message.
    """

    def __init__(self, message: str, filename: str = None):
        self.filename = filename
        full_message = f"{message}\nFile: {filename}" if filename else message
        super().__init__(full_message)


class ParseTimeoutError(StatementParseError):
    """Raised when PDF text extraction exceeds its time limit."""

    def __init__(self, message: str = "PDF parsing timeout", timeout: float = None, filename: str = None):
        self.timeout = timeout
        if timeout is not None:
            message = f"{message} after {timeout:g}s"
        super().__init__(message, filename=filename)
