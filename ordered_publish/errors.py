"""Exceptions raised by ordered-publish.

Every failure aborts the whole run. The CLI turns these into a one-line
error message and a non-zero exit status.
"""

from __future__ import annotations


class OrderedPublishError(Exception):
    """Base class for all errors raised by ordered-publish."""


class CircularDependencyError(OrderedPublishError, RuntimeError):
    """A dependency was reached while it was still being resolved.

    Attributes:
        dependent: Name of the package whose dependency closed the cycle.
        dependency: Name of the package that was already on the active path.
    """

    def __init__(self, dependent: str, dependency: str) -> None:
        self.dependent = dependent
        self.dependency = dependency
        super().__init__(f"Dependency cycle detected: {dependency} -> {dependent}")


class MetadataError(OrderedPublishError):
    """The workspace packages could not be enumerated."""


class VerificationError(OrderedPublishError):
    """The pre-publish check command failed."""


class PublishError(OrderedPublishError):
    """Publishing a single package failed."""

    def __init__(self, package: str, message: str) -> None:
        self.package = package
        super().__init__(message)
