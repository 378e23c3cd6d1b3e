"""Emergency priority classifier fusing keyword and image evidence."""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional

from grievance.config import Settings
from grievance.models import ComplaintPriority, Prediction, PriorityAssessment
from grievance.priority.images import ImageDecoder, ImageRef
from grievance.priority.keywords import DEFAULT_TABLES, KeywordTables
from grievance.priority.vision import ModelHandle, TorchvisionProvider
from grievance.utils.logging import get_logger
from grievance.utils.text import contains_any, text_context


logger = get_logger(__name__)

EMERGENCY_TEXT_POINTS = 5
SECONDARY_TEXT_POINTS = 2
VISUAL_POINTS = 3
HIGH_THRESHOLD = 5
MEDIUM_THRESHOLD = 2
CONFIDENCE_THRESHOLD = 0.15
TOP_K = 5


def decide(score: int) -> ComplaintPriority:
    """Map a total score onto a priority level."""
    if score >= HIGH_THRESHOLD:
        return ComplaintPriority.HIGH
    if score >= MEDIUM_THRESHOLD:
        return ComplaintPriority.MEDIUM
    return ComplaintPriority.LOW


class EmergencyPredictor:
    """Score complaint text and an optional photo into high/medium/low."""

    def __init__(
        self,
        model_handle: Optional[ModelHandle] = None,
        decoder: Optional[ImageDecoder] = None,
        tables: KeywordTables = DEFAULT_TABLES,
    ) -> None:
        self.model_handle = model_handle
        self.decoder = decoder or ImageDecoder()
        self.tables = tables

    def score_text(self, context: str) -> int:
        if contains_any(context, self.tables.emergency_keywords):
            return EMERGENCY_TEXT_POINTS
        if contains_any(context, self.tables.secondary_keywords):
            return SECONDARY_TEXT_POINTS
        return 0

    def is_hazard_label(self, label: str, context: str) -> bool:
        label = label.lower()
        if contains_any(label, self.tables.emergency_image_classes):
            return True
        if contains_any(label, self.tables.always_emergency_labels):
            return True
        return any(
            label_part in label and text_part in context
            for label_part, text_part in self.tables.context_gated_image_classes
        )

    def score_visual(self, predictions: Iterable[Prediction], context: str) -> int:
        """Award visual points once if any confident prediction shows a hazard."""
        for prediction in predictions:
            if prediction.probability <= CONFIDENCE_THRESHOLD:
                continue
            if self.is_hazard_label(prediction.label, context):
                return VISUAL_POINTS
        return 0

    def assess(
        self,
        description: str,
        category: str,
        image_ref: Optional[ImageRef] = None,
    ) -> PriorityAssessment:
        context = text_context(description, category)
        text_score = self.score_text(context)

        visual_score = 0
        visual_attempted = False
        predictions: List[Prediction] = []
        model = self.model_handle.model if self.model_handle is not None else None
        if model is not None and image_ref is not None:
            visual_attempted = True
            try:
                image = self.decoder.decode(image_ref)
                predictions = list(model.classify(image, TOP_K))
            except Exception as exc:
                logger.warning("classifier.visual.fallback error=%s", exc)
                predictions = []
            else:
                logger.debug(
                    "classifier.visual.predictions %s",
                    [(p.label, round(p.probability, 3)) for p in predictions],
                )
                visual_score = self.score_visual(predictions, context)
                if visual_score:
                    logger.info("classifier.visual.hazard_detected")

        score = text_score + visual_score
        priority = decide(score)
        logger.info(
            "classifier.complete text_score=%s visual_score=%s score=%s priority=%s",
            text_score,
            visual_score,
            score,
            priority.value,
        )
        return PriorityAssessment(
            text_score=text_score,
            visual_score=visual_score,
            score=score,
            priority=priority,
            visual_attempted=visual_attempted,
            predictions=[p for p in predictions if p.probability > CONFIDENCE_THRESHOLD],
        )

    def predict_priority(
        self,
        description: str,
        category: str,
        image_ref: Optional[ImageRef] = None,
    ) -> ComplaintPriority:
        return self.assess(description, category, image_ref).priority


_DEFAULT_PREDICTOR: Optional[EmergencyPredictor] = None
_DEFAULT_LOCK = threading.Lock()


def get_default_predictor(settings: Optional[Settings] = None) -> EmergencyPredictor:
    """Return the shared predictor, building it on first use.

    ``settings`` only takes effect on the call that builds the predictor;
    later calls return the existing instance and ignore it.
    """
    global _DEFAULT_PREDICTOR
    if _DEFAULT_PREDICTOR is not None:
        return _DEFAULT_PREDICTOR
    with _DEFAULT_LOCK:
        if _DEFAULT_PREDICTOR is None:
            settings = settings or Settings()
            handle = None
            if settings.classifier_enable_vision:
                handle = ModelHandle(TorchvisionProvider(settings.classifier_model_name))
            _DEFAULT_PREDICTOR = EmergencyPredictor(
                model_handle=handle,
                decoder=ImageDecoder(settings),
            )
    return _DEFAULT_PREDICTOR


def predict_priority(
    description: str,
    category: str,
    image_ref: Optional[ImageRef] = None,
) -> ComplaintPriority:
    """Convenience wrapper using the shared predictor."""
    return get_default_predictor().predict_priority(description, category, image_ref)
