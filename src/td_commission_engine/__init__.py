"""TD Commission Engine - stage tracking and commission splits for real estate transactions."""

__version__ = "1.0.0"
