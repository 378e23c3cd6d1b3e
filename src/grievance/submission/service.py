"""Submission flow: duplicate check, priority scoring, persistence."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional, Protocol

from grievance.config import Settings
from grievance.dedup.detector import DuplicateDetector
from grievance.models import (
    Complaint,
    ComplaintPriority,
    NewComplaint,
    PriorityAssessment,
    SubmissionResult,
)
from grievance.priority.classifier import EmergencyPredictor
from grievance.utils.logging import get_logger


logger = get_logger(__name__)


class ComplaintWriter(Protocol):
    def insert(self, complaint: NewComplaint, priority: ComplaintPriority) -> Complaint:
        """Persist a complaint with its computed priority."""


def run_detached(name: str, fn: Callable[..., Any], *args: Any) -> Future:
    """Run fn on a daemon thread and expose its outcome as a Future.

    Daemon threads are not joined at interpreter exit, so work abandoned
    after a timeout never holds the process open.
    """
    future: Future = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn(*args))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=_target, name=name, daemon=True).start()
    return future


class ComplaintSubmitter:
    """Run the submission chain for one complaint at a time.

    Duplicate detection and classification run on detached threads so a slow
    query or inference can be abandoned after its timeout. Abandoned work is
    left to finish in the background and its result is discarded.
    """

    def __init__(
        self,
        store: ComplaintWriter,
        predictor: EmergencyPredictor,
        detector: Optional[DuplicateDetector] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.predictor = predictor
        self.detector = detector
        self.settings = settings or Settings()

    def submit(self, complaint: NewComplaint) -> SubmissionResult:
        duplicate_future: Optional[Future] = None
        if self.detector is not None:
            duplicate_future = run_detached(
                "submission-duplicate",
                self.detector.find_duplicate,
                complaint.location.lat,
                complaint.location.lng,
                complaint.category,
            )

        assessment = self._assess(complaint)
        duplicate_of = self._collect_duplicate(duplicate_future)

        stored = self.store.insert(complaint, assessment.priority)
        logger.info(
            "submission.complete id=%s priority=%s duplicate_of=%s",
            stored.id,
            assessment.priority.value,
            duplicate_of,
        )
        return SubmissionResult(
            complaint=stored,
            assessment=assessment,
            duplicate_of=duplicate_of,
        )

    def _assess(self, complaint: NewComplaint) -> PriorityAssessment:
        future = run_detached(
            "submission-classify",
            self.predictor.assess,
            complaint.description,
            complaint.category,
            complaint.image_preview,
        )
        try:
            return future.result(timeout=self.settings.classifier_timeout_seconds)
        except FutureTimeoutError:
            logger.warning(
                "submission.classify.timeout seconds=%s fallback=text_only",
                self.settings.classifier_timeout_seconds,
            )
        except Exception as exc:
            logger.warning("submission.classify.failed error=%s fallback=text_only", exc)
        return self.predictor.assess(complaint.description, complaint.category, None)

    def _collect_duplicate(self, future: Optional[Future]) -> Optional[str]:
        if future is None:
            return None
        try:
            return future.result(timeout=self.settings.duplicate_timeout_seconds)
        except FutureTimeoutError:
            logger.warning(
                "submission.duplicate.timeout seconds=%s",
                self.settings.duplicate_timeout_seconds,
            )
        except Exception as exc:
            logger.warning("submission.duplicate.failed error=%s", exc)
        return None
