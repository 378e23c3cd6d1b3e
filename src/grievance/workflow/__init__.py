"""Admin and worker lifecycle operations."""

from grievance.workflow.transitions import (
    WorkflowError,
    approve_completion,
    assign_worker,
    delete_complaint,
    reassign,
    submit_completion,
    update_priority,
    update_status,
)

__all__ = [
    "WorkflowError",
    "approve_completion",
    "assign_worker",
    "delete_complaint",
    "reassign",
    "submit_completion",
    "update_priority",
    "update_status",
]
