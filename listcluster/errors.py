"""Error types raised by the RBO engine and surfaced by the worker pool."""

from __future__ import annotations

from typing import Optional


class ListClusterError(Exception):
    """Base class for every error raised by this package."""


class ParameterError(ListClusterError, ValueError):
    """A numeric argument (``p`` or a depth) is out of range."""


class DegenerateInputError(ListClusterError, ValueError):
    """A ranked list is empty, so the ratio terms are undefined."""


class TaskCancelledError(ListClusterError):
    """The batch was cancelled before this pair was computed."""


class PoolClosedError(ListClusterError, RuntimeError):
    """Work was submitted after ``done_adding``."""


class PoolError(ListClusterError):
    """
    A single pair failed inside the worker pool.

    Carries the labels of both lists and the underlying error so callers can
    filter the offending input and retry.
    """

    def __init__(self, source: str, target: str, cause: Optional[BaseException] = None):
        self.source = source
        self.target = target
        self.cause = cause
        super().__init__(f"unable to compute edge for {source} -> {target}: {cause}")
        self.__cause__ = cause
