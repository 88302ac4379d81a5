"""Card recommendation and synergy scoring engine."""

__version__ = "0.1.0"
