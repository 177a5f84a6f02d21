from __future__ import annotations

"""Error taxonomy shared by every pipeline stage."""


class PipelineError(RuntimeError):
    """Base error for a failed pipeline stage."""

    def __init__(self, message: str, stage: str = "pipeline") -> None:
        super().__init__(message)
        self.stage = stage


class RemoteCallError(PipelineError):
    """Raised when a remote dependency fails or answers with an error."""
    pass


class MalformedReplyError(PipelineError):
    """Raised when a reply does not match the expected shape."""
    pass


class EmptyRetrievalError(PipelineError):
    """Raised when the similarity search returns no passages."""

    def __init__(self, message: str = "Similarity search returned no results") -> None:
        super().__init__(message, stage="assemble")


class PipelineTimeoutError(RemoteCallError):
    """Raised when a request exceeds its time budget."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request exceeded {timeout:.1f}s", stage="pipeline")
        self.timeout = timeout
