"""Broadcast and trace identification for simulated script runs."""

__version__ = "0.1.0"
