"""Local records and performance analytics for bubble-sheet exam grading."""

__version__ = "0.1.0"
