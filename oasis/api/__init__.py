"""HTTP and WebSocket surface of the simulation."""

from oasis.api.app import create_app

__all__ = ["create_app"]
