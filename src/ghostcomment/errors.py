"""Error taxonomy shared by every GhostComment component."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds.

    The scan-and-clean engine only raises ``CONFIG_ERROR`` and ``FILE_ERROR``.
    The remaining kinds belong to the comment-posting and git collaborators;
    they are listed so those layers share one error type with the engine.
    """

    CONFIG_ERROR = "CONFIG_ERROR"
    FILE_ERROR = "FILE_ERROR"
    GIT_ERROR = "GIT_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_ERROR = "API_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"


class GhostCommentError(Exception):
    """Tagged error raised by GhostComment.

    Callers branch on ``kind`` rather than on the exception class.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"GhostCommentError({self.kind.value}, {self.message!r})"


def config_error(message: str, cause: BaseException | None = None) -> GhostCommentError:
    """Build a ``CONFIG_ERROR``."""
    return GhostCommentError(ErrorKind.CONFIG_ERROR, message, cause)


def file_error(message: str, cause: BaseException | None = None) -> GhostCommentError:
    """Build a ``FILE_ERROR``."""
    return GhostCommentError(ErrorKind.FILE_ERROR, message, cause)
