"""Live speech subtitles with translation."""

__version__ = "0.1.0"
