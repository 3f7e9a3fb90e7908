"""Keyword volume explorer, AI image studio and strategy chat backed by Gemini."""

__version__ = "0.1.0"
