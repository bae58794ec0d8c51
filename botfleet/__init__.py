"""
Load simulator for real-time message servers.

Connects a fleet of WebSocket bots, has each one send to random peers at a
fixed rate, validates what comes back, and reports throughput and delivery
rate once the run is interrupted.
"""

from .main import main

__all__ = ["main"]
