"""Relay between a Mixed-Reality headset client and an upstream AI provider."""

__version__ = "1.0.0"
