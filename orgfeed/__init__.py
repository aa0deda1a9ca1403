"""Compile tagged outline documents into feed tagging rules."""

__version__ = '0.1.0'
