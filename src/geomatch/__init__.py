"""Geo-aware matching and ranking engine for the job marketplace."""

__version__ = "0.1.0"
