"""
Document adapter exceptions.
"""


class ExtractionError(Exception):
    """
    Raised when a source document cannot be turned into usable plain text.

    Covers unsupported formats, corrupt files and documents whose text is
    empty or whitespace-only. The job fails immediately and the redaction
    pipeline is never invoked.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
