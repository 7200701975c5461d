"""Version information for weighted_descriptive."""

__version__ = "0.5.0"
