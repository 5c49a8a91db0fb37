"""Madrasah administration API: tenant backup/restore and access control."""

__version__ = "1.0.0"
