"""Peddy-paper scoring client: teams, stations, PIN-gated submissions and rankings."""

__version__ = "1.0.0"
