#!/usr/bin/env python3
"""
Command-line interface for playnext
"""

from .main import app, main

__all__ = ["app", "main"]
