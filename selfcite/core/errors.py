"""Error taxonomy for the self-citation pipeline."""

from typing import Optional


class SelfCiteError(Exception):
    """Base class for every error raised by the pipeline."""


class InputError(SelfCiteError):
    """Rejected user input (e.g. no author identifiers), raised before any request."""


class RetrievalError(SelfCiteError):
    """A fetch returned a status the pipeline cannot recover from."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        author_id: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.author_id = author_id
        self.url = url


class NotFoundError(RetrievalError):
    """The requested author (or publication) does not exist at the source."""


class AnalysisCancelled(SelfCiteError):
    """The run was abandoned through its cancellation event."""
