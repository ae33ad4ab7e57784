"""
Error kinds surfaced by the counter and leaderboard services.

Each kind maps to one HTTP status in the API layer:
    - ValidationError  -> 400 (no store access attempted)
    - StoreError       -> 500 (network/store failure, message surfaced)
    - MethodNotAllowed -> 405
"""


class DinostroidsError(Exception):
    """Base class for all API errors."""


class ValidationError(DinostroidsError):
    """Malformed score submission."""


class StoreError(DinostroidsError):
    """The key-value store failed on get, set or incr."""


class MethodNotAllowed(DinostroidsError):
    """Unsupported HTTP verb for a route."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"Method {method} not allowed on {path}")
