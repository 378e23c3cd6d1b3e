"""Typer CLI entry point."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from pydantic import BaseModel

from grievance.config import Settings
from grievance.db.client import db_cursor
from grievance.db.store import ComplaintStore
from grievance.dedup.detector import DatabaseComplaintLocator, DuplicateDetector
from grievance.models import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    Location,
    NewComplaint,
)
from grievance.priority.classifier import get_default_predictor
from grievance.reports.analytics import (
    build_billboard,
    build_leaderboard,
    dashboard_summary,
    urgent_unassigned,
)
from grievance.submission.service import ComplaintSubmitter
from grievance.utils.logging import configure_logging, get_logger
from grievance.utils.time import quarter_bounds, quarter_label
from grievance.workflow import transitions


app = typer.Typer(help="Civic grievance core CLI")
admin_app = typer.Typer(help="Admin commands")
worker_app = typer.Typer(help="Field worker commands")
report_app = typer.Typer(help="Reports")
db_app = typer.Typer(help="Database utilities")

app.add_typer(admin_app, name="admin")
app.add_typer(worker_app, name="worker")
app.add_typer(report_app, name="report")
app.add_typer(db_app, name="db")

logger = get_logger(__name__)


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


def _echo_json(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in payload
        ]
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def _run_workflow(action: Any, *args: Any) -> None:
    settings = Settings()
    try:
        with db_cursor(settings) as cursor:
            result = action(ComplaintStore(cursor), *args)
    except transitions.WorkflowError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)
    if result is not None:
        _echo_json(result)


@app.command("classify")
def classify(
    description: str = typer.Option(..., help="Complaint description"),
    category: ComplaintCategory = typer.Option(..., help="Complaint category"),
    image: Optional[Path] = typer.Option(None, help="Photo to classify"),
    wait_for_model: bool = typer.Option(
        True, help="Wait up to CLASSIFIER_TIMEOUT_SECONDS for the image model"
    ),
) -> None:
    """Score a complaint without storing it."""
    settings = Settings()
    predictor = get_default_predictor(settings)
    if image is not None and predictor.model_handle is not None:
        if wait_for_model:
            predictor.model_handle.warm(settings.classifier_timeout_seconds)
        else:
            predictor.model_handle.start_loading()
    _echo_json(predictor.assess(description, category, image))


@app.command("submit")
def submit(
    description: str = typer.Option(..., help="Complaint description"),
    category: ComplaintCategory = typer.Option(..., help="Complaint category"),
    lat: float = typer.Option(..., help="Latitude in degrees"),
    lng: float = typer.Option(..., help="Longitude in degrees"),
    address: str = typer.Option("", help="Human readable address"),
    image: Optional[Path] = typer.Option(None, help="Photo used for classification"),
    image_url: Optional[str] = typer.Option(None, help="Stored photo URL"),
    user_id: Optional[str] = typer.Option(None, help="Reporter id (omit for anonymous)"),
) -> None:
    """Submit a complaint: duplicate check, priority scoring, insert."""
    settings = Settings()
    predictor = get_default_predictor(settings)
    if image is not None and predictor.model_handle is not None:
        predictor.model_handle.warm(settings.classifier_timeout_seconds)

    new_complaint = NewComplaint(
        category=category,
        description=description,
        location=Location(lat=lat, lng=lng, address=address),
        user_id=user_id,
        image_url=image_url,
        image_preview=image,
    )
    detector = DuplicateDetector(DatabaseComplaintLocator(settings))
    with db_cursor(settings) as cursor:
        submitter = ComplaintSubmitter(ComplaintStore(cursor), predictor, detector, settings)
        result = submitter.submit(new_complaint)

    if result.duplicate_notice:
        typer.echo(result.duplicate_notice, err=True)
    _echo_json(result.complaint)


@admin_app.command("assign")
def admin_assign(
    complaint_id: str = typer.Argument(..., help="Complaint id"),
    worker_id: str = typer.Argument(..., help="Worker profile id"),
) -> None:
    """Assign a worker and move the complaint to in_progress."""
    _run_workflow(transitions.assign_worker, complaint_id, worker_id)


@admin_app.command("status")
def admin_status(
    complaint_id: str = typer.Argument(..., help="Complaint id"),
    status: ComplaintStatus = typer.Argument(..., help="New status"),
) -> None:
    """Override a complaint's status."""
    _run_workflow(transitions.update_status, complaint_id, status)


@admin_app.command("priority")
def admin_priority(
    complaint_id: str = typer.Argument(..., help="Complaint id"),
    priority: ComplaintPriority = typer.Argument(..., help="New priority"),
) -> None:
    """Override a complaint's computed priority."""
    _run_workflow(transitions.update_priority, complaint_id, priority)


@admin_app.command("approve")
def admin_approve(complaint_id: str = typer.Argument(..., help="Complaint id")) -> None:
    """Approve a worker's completion proof."""
    _run_workflow(transitions.approve_completion, complaint_id)


@admin_app.command("reassign")
def admin_reassign(complaint_id: str = typer.Argument(..., help="Complaint id")) -> None:
    """Reject a completion proof and send the task back to the worker."""
    _run_workflow(transitions.reassign, complaint_id)


@admin_app.command("delete")
def admin_delete(complaint_id: str = typer.Argument(..., help="Complaint id")) -> None:
    """Delete a complaint."""
    _run_workflow(transitions.delete_complaint, complaint_id)


@admin_app.command("workers")
def admin_workers() -> None:
    """List worker profiles."""
    with db_cursor() as cursor:
        workers = ComplaintStore(cursor).list_workers()
    _echo_json(workers)


@worker_app.command("tasks")
def worker_tasks(worker_id: str = typer.Argument(..., help="Worker profile id")) -> None:
    """List complaints assigned to a worker."""
    with db_cursor() as cursor:
        tasks = ComplaintStore(cursor).list_assigned(worker_id)
    _echo_json(tasks)


@worker_app.command("complete")
def worker_complete(
    complaint_id: str = typer.Argument(..., help="Complaint id"),
    worker_id: str = typer.Argument(..., help="Worker profile id"),
    proof_path: str = typer.Option(..., help="Evidence object path or full URL"),
) -> None:
    """Submit completion proof; the complaint waits for admin approval."""
    settings = Settings()
    proof_url = proof_path
    if not proof_path.startswith(("http://", "https://")):
        proof_url = settings.public_media_url(proof_path) or proof_path
    _run_workflow(transitions.submit_completion, complaint_id, worker_id, proof_url)


@report_app.command("summary")
def report_summary() -> None:
    """Counts by category, status and priority plus urgent unassigned work."""
    with db_cursor() as cursor:
        complaints = ComplaintStore(cursor).list_complaints()
    summary = dashboard_summary(complaints)
    urgent = urgent_unassigned(complaints)
    if urgent:
        logger.warning("report.urgent_unassigned count=%s", len(urgent))
    _echo_json(
        {
            **summary.model_dump(mode="json"),
            "urgent_unassigned": [c.id for c in urgent],
        }
    )


@report_app.command("leaderboard")
def report_leaderboard(
    limit: int = typer.Option(10, help="Number of reporters to show"),
) -> None:
    """Top reporters for the current calendar quarter."""
    now = datetime.now(timezone.utc)
    start, end = quarter_bounds(now)
    with db_cursor() as cursor:
        store = ComplaintStore(cursor)
        counts = store.complaint_counts_by_user(start, end)
        top_ids = list(counts)[:limit]
        profiles = store.get_profiles(top_ids)
    typer.echo(f"Top reporters {quarter_label(now)}", err=True)
    _echo_json(build_leaderboard(counts, profiles, limit=limit))


@report_app.command("billboard")
def report_billboard() -> None:
    """Unresolved complaints with the authority responsible for each."""
    with db_cursor() as cursor:
        unresolved = ComplaintStore(cursor).list_unresolved()
    _echo_json(build_billboard(unresolved, datetime.now(timezone.utc)))


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    try:
        with db_cursor() as cursor:
            cursor.execute("select 1")
            logger.info("db.check.ok")
    except Exception as exc:
        logger.error("db.check.failed: %s", exc)
        typer.echo(f"Database check failed: {exc}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
