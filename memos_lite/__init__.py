"""Memos Lite: personal memo service with inline #tags."""

__version__ = "1.0.0"
