"""Meme Market: ranking and retrieval backend for a meme marketplace."""

__version__ = "0.1.0"
