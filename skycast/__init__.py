"""Skycast: place name -> multi-source weather report."""

__version__ = "0.1.0"
