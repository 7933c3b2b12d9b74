"""Translate selected locale keys into every configured target language."""

__version__ = "0.1.0"
