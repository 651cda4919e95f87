class WorkflowError(Exception):
    """A business precondition failed; the surrounding transaction must roll back."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)
