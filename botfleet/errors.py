from __future__ import annotations


class FleetError(Exception):
    """Raised when the fleet encounters a fatal condition."""


class FleetConfigError(FleetError):
    """Raised for settings the fleet cannot run with."""


class IdentityLoadError(FleetError):
    """Raised when the identity list cannot be loaded or is unusable."""


class DialError(FleetError):
    """Raised when a bot fails to open its connection to the server."""

    def __init__(self, identity: str, message: str) -> None:
        super().__init__(f"dial {identity!r}: {message}")
        self.identity = identity


__all__ = [
    "DialError",
    "FleetConfigError",
    "FleetError",
    "IdentityLoadError",
]
