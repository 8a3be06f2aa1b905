"""Single-origin product crawler with bounded concurrency and rate-limit aware retries."""

from .version import __version__

__all__ = ["__version__"]
