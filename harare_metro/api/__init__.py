"""
HTTP API over the snapshot cache and the refresh scheduler.
"""

from .app import create_app

__all__ = ["create_app"]
