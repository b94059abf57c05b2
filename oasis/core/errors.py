"""Domain error hierarchy.

Every error carries the HTTP status the API layer answers with, so handlers
never have to translate by hand.
"""

from __future__ import annotations


class OasisError(Exception):
    status: int = 400


class InvalidInput(OasisError):
    """Malformed request: bad direction, unknown knowledge type, bad radius."""
    status = 400


class NotFound(OasisError):
    """Missing agent, scroll, book or project."""
    status = 404


class Conflict(OasisError):
    """Request is well-formed but the world state does not allow it."""
    status = 409
