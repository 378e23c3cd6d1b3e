"""Static keyword and visual-class tables for emergency scoring."""

from __future__ import annotations

from dataclasses import dataclass


EMERGENCY_KEYWORDS: tuple[str, ...] = (
    # pipeline
    "leak",
    "pipeline leak",
    "leakage",
    "gushing",
    "burst",
    "water supply",
    "spraying",
    # electric
    "electric pole",
    "wire",
    "shock",
    "sparking",
    "current",
    "live wire",
    "transformer",
    "downed",
    # structural
    "structural",
    "collapse",
    "falling",
    "crack",
    "building down",
    "wall",
    "roof",
    "hazard",
    "bridge",
    # general
    "danger",
    "urgent",
    "fire",
    "flood",
    "accident",
    "emergency",
    "blast",
    "explosion",
    "sewage overflow",
)

SECONDARY_KEYWORDS: tuple[str, ...] = ("broken", "garbage", "stuck", "pothole")

# ImageNet labels that hint at pipeline, electric or structural damage.
# "water" and "pole" live in CONTEXT_GATED_IMAGE_CLASSES instead.
EMERGENCY_IMAGE_CLASSES: tuple[str, ...] = (
    "fountain",
    "geyser",
    "breakwater",
    "dam",
    "street sign",
    "traffic light",
    "crane",
    "chainlink fence",
    "wreck",
    "cliff",
    "valley",
    "volcano",
    "chain",
    "wall",
    "truck",
)

ALWAYS_EMERGENCY_LABELS: tuple[str, ...] = ("fire",)

# (label substring, text substring that must also be present)
CONTEXT_GATED_IMAGE_CLASSES: tuple[tuple[str, str], ...] = (
    ("water", "leak"),
    ("pole", "electric"),
)


@dataclass(frozen=True)
class KeywordTables:
    """Immutable bundle of the tables a predictor scores against."""

    emergency_keywords: tuple[str, ...] = EMERGENCY_KEYWORDS
    secondary_keywords: tuple[str, ...] = SECONDARY_KEYWORDS
    emergency_image_classes: tuple[str, ...] = EMERGENCY_IMAGE_CLASSES
    always_emergency_labels: tuple[str, ...] = ALWAYS_EMERGENCY_LABELS
    context_gated_image_classes: tuple[tuple[str, str], ...] = CONTEXT_GATED_IMAGE_CLASSES


DEFAULT_TABLES = KeywordTables()
