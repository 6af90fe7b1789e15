"""Remark — a personal day-journal browser engine."""

__version__ = "0.1.0"
