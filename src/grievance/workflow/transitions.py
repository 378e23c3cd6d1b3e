"""Complaint lifecycle transitions driven by admins and field workers.

pending -> in_progress (worker assigned)
in_progress -> waiting_approval (worker uploads completion proof)
waiting_approval -> resolved (admin approves)
waiting_approval -> in_progress (admin rejects, proof cleared)

Admins may also override status and priority directly.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from grievance.models import Complaint, ComplaintPriority, ComplaintStatus
from grievance.utils.logging import get_logger


logger = get_logger(__name__)


class WorkflowError(ValueError):
    """Unknown complaint or a transition its current state does not allow."""


class ComplaintRepository(Protocol):
    def get(self, complaint_id: str) -> Optional[Complaint]:
        """Fetch a complaint by id."""

    def update_fields(self, complaint_id: str, **fields: Any) -> Optional[Complaint]:
        """Update columns and return the new record."""

    def delete(self, complaint_id: str) -> bool:
        """Delete a complaint; return False if it did not exist."""


def _require(store: ComplaintRepository, complaint_id: str) -> Complaint:
    complaint = store.get(complaint_id)
    if complaint is None:
        raise WorkflowError(f"Complaint not found: {complaint_id}")
    return complaint


def _update(store: ComplaintRepository, complaint_id: str, **fields: Any) -> Complaint:
    updated = store.update_fields(complaint_id, **fields)
    if updated is None:
        raise WorkflowError(f"Complaint not found: {complaint_id}")
    return updated


def assign_worker(store: ComplaintRepository, complaint_id: str, worker_id: str) -> Complaint:
    complaint = _require(store, complaint_id)
    if complaint.status is ComplaintStatus.RESOLVED:
        raise WorkflowError(f"Complaint {complaint_id} is already resolved")
    updated = _update(
        store,
        complaint_id,
        assigned_to=worker_id,
        status=ComplaintStatus.IN_PROGRESS,
    )
    logger.info("workflow.assign id=%s worker=%s", complaint_id, worker_id)
    return updated


def update_status(
    store: ComplaintRepository, complaint_id: str, status: ComplaintStatus
) -> Complaint:
    _require(store, complaint_id)
    updated = _update(store, complaint_id, status=ComplaintStatus(status))
    logger.info("workflow.status id=%s status=%s", complaint_id, updated.status.value)
    return updated


def update_priority(
    store: ComplaintRepository, complaint_id: str, priority: ComplaintPriority
) -> Complaint:
    _require(store, complaint_id)
    updated = _update(store, complaint_id, priority=ComplaintPriority(priority))
    logger.info("workflow.priority id=%s priority=%s", complaint_id, updated.priority.value)
    return updated


def submit_completion(
    store: ComplaintRepository,
    complaint_id: str,
    worker_id: str,
    completed_image_url: str,
) -> Complaint:
    complaint = _require(store, complaint_id)
    if complaint.assigned_to != worker_id:
        raise WorkflowError(f"Complaint {complaint_id} is not assigned to {worker_id}")
    if complaint.status is not ComplaintStatus.IN_PROGRESS:
        raise WorkflowError(
            f"Complaint {complaint_id} is {complaint.status.value}, expected in_progress"
        )
    if not completed_image_url:
        raise WorkflowError("Completion proof image is required")
    updated = _update(
        store,
        complaint_id,
        status=ComplaintStatus.WAITING_APPROVAL,
        completed_image_url=completed_image_url,
    )
    logger.info("workflow.completion_submitted id=%s worker=%s", complaint_id, worker_id)
    return updated


def approve_completion(store: ComplaintRepository, complaint_id: str) -> Complaint:
    complaint = _require(store, complaint_id)
    if complaint.status is not ComplaintStatus.WAITING_APPROVAL:
        raise WorkflowError(
            f"Complaint {complaint_id} is {complaint.status.value}, expected waiting_approval"
        )
    updated = _update(store, complaint_id, status=ComplaintStatus.RESOLVED)
    logger.info("workflow.approved id=%s", complaint_id)
    return updated


def reassign(store: ComplaintRepository, complaint_id: str) -> Complaint:
    """Reject the submitted proof and send the task back to the worker."""
    complaint = _require(store, complaint_id)
    if complaint.status is not ComplaintStatus.WAITING_APPROVAL:
        raise WorkflowError(
            f"Complaint {complaint_id} is {complaint.status.value}, expected waiting_approval"
        )
    updated = _update(
        store,
        complaint_id,
        status=ComplaintStatus.IN_PROGRESS,
        completed_image_url=None,
    )
    logger.info("workflow.reassigned id=%s", complaint_id)
    return updated


def delete_complaint(store: ComplaintRepository, complaint_id: str) -> None:
    if not store.delete(complaint_id):
        raise WorkflowError(f"Complaint not found: {complaint_id}")
    logger.info("workflow.deleted id=%s", complaint_id)
