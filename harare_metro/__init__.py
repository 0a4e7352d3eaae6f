"""
Harare Metro - news aggregation backend for Zimbabwean outlets.

This package fetches RSS/Atom feeds from configured sources, classifies
and deduplicates the articles, and keeps a cached snapshot that a small
HTTP API serves to readers. Refreshes are coordinated by a TTL lock over a
key-value store and a staleness-driven scheduler.

Main entry point is the CLI via the `harare-metro` command.

Example:
    $ harare-metro refresh --force
    $ harare-metro serve --config config.yaml
"""

__all__ = ["__version__", "AppConfig", "load_config"]
__version__ = "0.1.0"

from .config import AppConfig, load_config
