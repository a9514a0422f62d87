from __future__ import annotations


class FeedIteratorError(RuntimeError):
    """A feed iterator was used in a way its state does not allow."""


class ResourceValidationError(ValueError):
    """A resource body was rejected before any request was sent."""
