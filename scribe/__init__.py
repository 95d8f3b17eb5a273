"""scribe: turn a folder of Markdown posts into a static site."""

__version__ = "0.1.0"
