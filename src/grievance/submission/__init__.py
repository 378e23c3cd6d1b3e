"""Complaint submission flow."""

from grievance.submission.service import ComplaintSubmitter

__all__ = ["ComplaintSubmitter"]
