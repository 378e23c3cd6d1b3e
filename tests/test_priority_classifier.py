import threading
import time

import pytest

from grievance.config import Settings
from grievance.models import ComplaintCategory, ComplaintPriority, Prediction
from grievance.priority import classifier
from grievance.priority.classifier import EmergencyPredictor, decide
from grievance.priority.images import ImageDecodeError
from grievance.priority.keywords import KeywordTables
from grievance.priority.vision import ModelHandle

from stubs import StubModel, StubProvider


def _predictor(predictions=None, tables=None) -> EmergencyPredictor:
    handle = None
    if predictions is not None:
        handle = ModelHandle(StubProvider(StubModel(predictions)))
        handle.load()
    if tables is None:
        return EmergencyPredictor(model_handle=handle)
    return EmergencyPredictor(model_handle=handle, tables=tables)


class FailingDecoder:
    def decode(self, ref):
        raise ImageDecodeError("corrupt image")


class ExplodingModel:
    def classify(self, image, top_k):
        raise RuntimeError("inference crashed")


@pytest.mark.parametrize(
    "description",
    [
        "Pipeline leak flooding the street",
        "Live wire hanging from the electric pole",
        "Wall collapse after heavy rain",
        "FIRE near the transformer",
    ],
)
def test_strong_keyword_without_image_is_high(description):
    assessment = _predictor().assess(description, "water_supply")
    assert assessment.text_score == 5
    assert assessment.priority is ComplaintPriority.HIGH


@pytest.mark.parametrize("description", ["Big pothole here", "Garbage not collected", "Broken bench"])
def test_secondary_keyword_without_image_is_medium(description):
    assessment = _predictor().assess(description, "road_potholes")
    assert assessment.score == 2
    assert assessment.priority is ComplaintPriority.MEDIUM


def test_no_keyword_without_image_is_low():
    assessment = _predictor().assess("Please repaint the bus stop", "sanitation")
    assert assessment.score == 0
    assert assessment.priority is ComplaintPriority.LOW


def test_category_is_part_of_text_context():
    # "pothole" only appears in the category value
    assert _predictor().predict_priority("Needs attention", "road_potholes") is ComplaintPriority.MEDIUM


def test_category_enum_is_matched_by_value():
    predictor = _predictor()
    priority = predictor.predict_priority("Needs attention", ComplaintCategory.ROAD_POTHOLES)
    assert priority is ComplaintPriority.MEDIUM


def test_emergency_keyword_takes_precedence_over_secondary():
    assessment = _predictor().assess("broken pipe burst", "water_supply")
    assert assessment.text_score == 5


def test_confident_fire_prediction_lifts_secondary_text_to_high(image):
    predictor = _predictor([Prediction(label="fire screen", probability=0.6)])
    assessment = predictor.assess("Garbage pile on the corner", "waste_management", image)
    assert assessment.text_score == 2
    assert assessment.visual_score == 3
    assert assessment.priority is ComplaintPriority.HIGH


def test_water_label_without_leak_context_adds_nothing(image):
    predictor = _predictor([Prediction(label="water", probability=0.9)])
    assessment = predictor.assess("Garbage near the lake", "waste_management", image)
    assert assessment.visual_attempted is True
    assert assessment.visual_score == 0
    assert assessment.priority is ComplaintPriority.MEDIUM


def test_water_label_with_leak_context_counts():
    predictor = _predictor()
    predictions = [Prediction(label="water bottle", probability=0.5)]
    assert predictor.score_visual(predictions, "small leak near gate") == 3


def test_pole_label_requires_electric_context():
    predictor = _predictor()
    predictions = [Prediction(label="pole", probability=0.5)]
    assert predictor.score_visual(predictions, "stuck gate streetlight") == 0
    assert predictor.score_visual(predictions, "electric line sagging") == 3


def test_low_confidence_prediction_is_ignored(image):
    predictor = _predictor([Prediction(label="volcano", probability=0.15)])
    assessment = predictor.assess("Pothole on main road", "road_potholes", image)
    assert assessment.visual_score == 0
    assert assessment.priority is ComplaintPriority.MEDIUM


def test_multiple_matches_do_not_stack(image):
    predictor = _predictor(
        [
            Prediction(label="fire engine", probability=0.4),
            Prediction(label="wreck", probability=0.3),
            Prediction(label="crane", probability=0.2),
        ]
    )
    assessment = predictor.assess("Pipeline leak", "water_supply", image)
    assert assessment.visual_score == 3
    assert assessment.score == 8


def test_visual_scoring_skipped_without_loaded_model(image):
    handle = ModelHandle(StubProvider(StubModel([Prediction(label="fire", probability=0.9)])))
    predictor = EmergencyPredictor(model_handle=handle)
    assessment = predictor.assess("Pothole", "road_potholes", image)
    assert assessment.visual_attempted is False
    assert assessment.priority is ComplaintPriority.MEDIUM


def test_visual_scoring_skipped_without_image():
    model = StubModel([Prediction(label="fire", probability=0.9)])
    handle = ModelHandle(StubProvider(model))
    handle.load()
    assessment = EmergencyPredictor(model_handle=handle).assess("Pothole", "road_potholes")
    assert assessment.visual_attempted is False
    assert model.calls == 0


def test_decode_failure_falls_back_to_text_only():
    handle = ModelHandle(StubProvider(StubModel([Prediction(label="fire", probability=0.9)])))
    handle.load()
    predictor = EmergencyPredictor(model_handle=handle, decoder=FailingDecoder())
    assessment = predictor.assess("Garbage", "waste_management", b"not an image")
    assert assessment.visual_attempted is True
    assert assessment.visual_score == 0
    assert assessment.priority is ComplaintPriority.MEDIUM


def test_inference_error_falls_back_to_text_only(image):
    handle = ModelHandle(StubProvider(ExplodingModel()))
    handle.load()
    predictor = EmergencyPredictor(model_handle=handle)
    assert predictor.predict_priority("Garbage", "waste_management", image) is ComplaintPriority.MEDIUM


def test_unreadable_bytes_do_not_raise():
    handle = ModelHandle(StubProvider(StubModel([Prediction(label="fire", probability=0.9)])))
    handle.load()
    predictor = EmergencyPredictor(model_handle=handle)
    assert predictor.predict_priority("Nothing", "sanitation", b"\x00\x01garbage") is ComplaintPriority.LOW


def test_injected_tables_replace_defaults():
    tables = KeywordTables(emergency_keywords=("sinkhole",), secondary_keywords=("litter",))
    predictor = _predictor(tables=tables)
    assert predictor.predict_priority("A sinkhole opened", "road_potholes") is ComplaintPriority.HIGH
    assert predictor.predict_priority("Pipeline leak", "water_supply") is ComplaintPriority.LOW


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (0, ComplaintPriority.LOW),
        (1, ComplaintPriority.LOW),
        (2, ComplaintPriority.MEDIUM),
        (4, ComplaintPriority.MEDIUM),
        (5, ComplaintPriority.HIGH),
        (8, ComplaintPriority.HIGH),
    ],
)
def test_decide_thresholds(score, expected):
    assert decide(score) is expected


def test_default_predictor_is_built_once_under_concurrent_first_use(monkeypatch):
    builds = []

    class SlowDecoder:
        def __init__(self, settings=None) -> None:
            builds.append(settings)
            time.sleep(0.2)

    monkeypatch.setattr(classifier, "_DEFAULT_PREDICTOR", None)
    monkeypatch.setattr(classifier, "ImageDecoder", SlowDecoder)
    settings = Settings(CLASSIFIER_ENABLE_VISION=False)
    start = threading.Barrier(2)
    results = []

    def first_use():
        start.wait(timeout=5)
        results.append(classifier.get_default_predictor(settings))

    threads = [threading.Thread(target=first_use) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(builds) == 1
    assert len(results) == 2
    assert results[0] is results[1]


def test_default_predictor_ignores_settings_after_first_build(monkeypatch):
    monkeypatch.setattr(classifier, "_DEFAULT_PREDICTOR", None)
    first = classifier.get_default_predictor(Settings(CLASSIFIER_ENABLE_VISION=False))
    again = classifier.get_default_predictor(Settings(CLASSIFIER_ENABLE_VISION=True))

    assert again is first
    assert again.model_handle is None
