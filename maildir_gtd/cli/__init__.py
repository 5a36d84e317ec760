"""CLI module for the GTD Maildir engine."""

from .main import app, main

__all__ = ["app", "main"]
