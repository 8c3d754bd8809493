"""Live scoreboard state server: shared match state, match clock and viewer fan-out."""

__version__ = "0.1.0"
