"""Heron Wellnest Authentication API."""

__version__ = "1.0.0"
