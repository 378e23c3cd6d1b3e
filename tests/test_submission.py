import threading

import pytest
from pydantic import ValidationError

from grievance.config import Settings
from grievance.dedup.detector import DuplicateDetector
from grievance.models import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    Location,
    NewComplaint,
    OpenComplaintLocation,
    Prediction,
)
from grievance.priority.classifier import EmergencyPredictor
from grievance.priority.vision import ModelHandle
from grievance.submission.service import ComplaintSubmitter

from stubs import FakeStore, StubModel, StubProvider


class StaticLocator:
    def __init__(self, rows):
        self.rows = rows

    def find_open_by_category(self, category):
        return self.rows


class FailingLocator:
    def find_open_by_category(self, category):
        raise TimeoutError("connection reset")


class HangingLocator:
    def __init__(self) -> None:
        self.release = threading.Event()

    def find_open_by_category(self, category):
        self.release.wait(timeout=5)
        return [OpenComplaintLocation(id="late", lat=0.0, lng=0.0)]


class SlowPredictor(EmergencyPredictor):
    """Blocks whenever an image is supplied, mimicking a stuck inference."""

    def __init__(self) -> None:
        handle = ModelHandle(StubProvider(StubModel([Prediction(label="fire", probability=0.9)])))
        handle.load()
        super().__init__(model_handle=handle)
        self.release = threading.Event()
        self.ran_on_daemon: list = []

    def assess(self, description, category, image_ref=None):
        if image_ref is not None:
            self.ran_on_daemon.append(threading.current_thread().daemon)
            self.release.wait(timeout=5)
        return super().assess(description, category, image_ref)


def _settings(**overrides) -> Settings:
    values = {"CLASSIFIER_TIMEOUT_SECONDS": 1.0, "DUPLICATE_TIMEOUT_SECONDS": 1.0}
    values.update(overrides)
    return Settings(**values)


def _new(**overrides) -> NewComplaint:
    payload = {
        "category": ComplaintCategory.WATER_SUPPLY,
        "description": "Pipeline leak on 5th cross",
        "location": Location(lat=12.9716, lng=77.5946, address="5th Cross"),
        "user_id": "u-1",
    }
    payload.update(overrides)
    return NewComplaint(**payload)


def test_submission_persists_computed_priority():
    store = FakeStore()
    submitter = ComplaintSubmitter(store, EmergencyPredictor(), settings=_settings())
    result = submitter.submit(_new())

    assert result.complaint.priority is ComplaintPriority.HIGH
    assert result.complaint.status is ComplaintStatus.PENDING
    assert result.assessment.score == 5
    assert result.duplicate_of is None
    assert result.duplicate_notice is None
    assert store.inserted == 1


def test_duplicate_only_adds_notice():
    store = FakeStore()
    detector = DuplicateDetector(
        StaticLocator([OpenComplaintLocation(id="existing", lat=12.9717, lng=77.5946)])
    )
    submitter = ComplaintSubmitter(store, EmergencyPredictor(), detector, _settings())
    result = submitter.submit(_new())

    assert result.duplicate_of == "existing"
    assert "existing" in result.duplicate_notice
    assert store.inserted == 1


def test_duplicate_query_failure_does_not_block_submission():
    store = FakeStore()
    detector = DuplicateDetector(FailingLocator())
    submitter = ComplaintSubmitter(store, EmergencyPredictor(), detector, _settings())
    result = submitter.submit(_new(description="Pothole near school"))

    assert result.duplicate_of is None
    assert result.complaint.priority is ComplaintPriority.MEDIUM
    assert store.inserted == 1


def test_slow_duplicate_query_is_abandoned():
    store = FakeStore()
    locator = HangingLocator()
    settings = _settings(DUPLICATE_TIMEOUT_SECONDS=0.05)
    submitter = ComplaintSubmitter(store, EmergencyPredictor(), DuplicateDetector(locator), settings)
    result = submitter.submit(_new())
    locator.release.set()

    assert result.duplicate_of is None
    assert store.inserted == 1


def test_slow_classification_falls_back_to_text_only(image):
    store = FakeStore()
    predictor = SlowPredictor()
    settings = _settings(CLASSIFIER_TIMEOUT_SECONDS=0.05)
    submitter = ComplaintSubmitter(store, predictor, settings=settings)
    result = submitter.submit(_new(description="Garbage heap", image_preview=image))
    predictor.release.set()

    assert result.assessment.visual_attempted is False
    assert result.complaint.priority is ComplaintPriority.MEDIUM


def test_persistence_errors_propagate():
    class BrokenStore:
        def insert(self, complaint, priority):
            raise RuntimeError("insert failed")

    submitter = ComplaintSubmitter(BrokenStore(), EmergencyPredictor(), settings=_settings())
    with pytest.raises(RuntimeError):
        submitter.submit(_new())


def test_blank_description_is_rejected():
    with pytest.raises(ValidationError):
        _new(description="   ")


def test_abandoned_classification_does_not_hold_the_process_open(image):
    predictor = SlowPredictor()
    settings = _settings(CLASSIFIER_TIMEOUT_SECONDS=0.05)
    submitter = ComplaintSubmitter(FakeStore(), predictor, settings=settings)
    submitter.submit(_new(image_preview=image))
    try:
        assert predictor.ran_on_daemon == [True]
        stuck = [t for t in threading.enumerate() if t.name == "submission-classify"]
        assert stuck and all(t.daemon for t in stuck)
    finally:
        predictor.release.set()
