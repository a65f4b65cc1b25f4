"""autopost: tiered analysis cache, batching and deferred image cleanup."""

from autopost.version import __version__

__all__ = ["__version__"]
