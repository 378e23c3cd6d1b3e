"""Civic grievance core: priority scoring, duplicate detection and workflow."""

__version__ = "0.1.0"
