"""Navigation dashboard backend: ordered groups of bookmarked sites behind an optional token gate."""

__version__ = "0.1.0"
