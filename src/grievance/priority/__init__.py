"""Emergency priority classifier."""

from grievance.priority.classifier import (
    EmergencyPredictor,
    decide,
    get_default_predictor,
    predict_priority,
)
from grievance.priority.images import ImageDecodeError, ImageDecoder
from grievance.priority.keywords import DEFAULT_TABLES, KeywordTables
from grievance.priority.vision import ModelHandle, ModelState, TorchvisionProvider

__all__ = [
    "EmergencyPredictor",
    "decide",
    "get_default_predictor",
    "predict_priority",
    "ImageDecodeError",
    "ImageDecoder",
    "DEFAULT_TABLES",
    "KeywordTables",
    "ModelHandle",
    "ModelState",
    "TorchvisionProvider",
]
