"""
Feed results and the errors that produce them.

A feed fetch always ends in exactly one of three outcomes: populated data,
an empty (but valid) response, or an error message. Errors are raised
internally as ``FeedError`` subclasses and converted to a ``FeedResult`` at
the fetcher boundary.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ResultStatus(str, Enum):
    """Outcome of a single feed fetch."""

    DATA = "data"
    EMPTY = "empty"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Where a failed fetch went wrong."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"


class FeedError(Exception):
    """A feed could not be fetched or understood."""

    kind = ErrorKind.TRANSPORT


class ConfigurationError(FeedError):
    """A required setting (usually the API key) is missing."""

    kind = ErrorKind.CONFIGURATION


class FeedHTTPError(FeedError):
    """The feed answered with a non-success HTTP status."""

    def __init__(self, status: int, reason: Optional[str] = None, detail: Optional[str] = None):
        self.status = status
        self.reason = reason or ""
        self.detail = detail
        message = f"API Error: {status} {self.reason}".rstrip()
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


class FeedShapeError(FeedError):
    """The feed answered, but not with the shape we expected."""


@dataclass(frozen=True)
class FeedResult:
    """Outcome of fetching one feed. Never carries both data and an error."""

    feed_id: str
    status: ResultStatus
    data: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    notice: Optional[str] = None

    @classmethod
    def with_data(cls, feed_id: str, data: Any) -> "FeedResult":
        return cls(feed_id=feed_id, status=ResultStatus.DATA, data=data)

    @classmethod
    def empty(cls, feed_id: str, notice: Optional[str] = None) -> "FeedResult":
        return cls(feed_id=feed_id, status=ResultStatus.EMPTY, data=[], notice=notice)

    @classmethod
    def failure(cls, feed_id: str, message: str, kind: ErrorKind = ErrorKind.TRANSPORT) -> "FeedResult":
        return cls(feed_id=feed_id, status=ResultStatus.ERROR, error=message, error_kind=kind)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.DATA

    @property
    def is_empty(self) -> bool:
        return self.status == ResultStatus.EMPTY

    @property
    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR

    @property
    def items(self) -> List[Any]:
        """Data as a list, whether the feed returns one record or many."""
        if self.data is None:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]
