"""Pretrained image classifier capability and its shared lifecycle."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, List, Optional, Protocol

from grievance.models import Prediction
from grievance.utils.logging import get_logger


logger = get_logger(__name__)


class ImageClassifier(Protocol):
    """A loaded model that labels images."""

    def classify(self, image: Any, top_k: int) -> List[Prediction]:
        """Return up to top_k predictions ordered by probability."""


class ModelProvider(Protocol):
    """Loads an image classifier; may raise."""

    def load(self) -> ImageClassifier:
        """Load and return a ready classifier."""


class TorchvisionClassifier:
    """ImageNet classifier backed by a torchvision model."""

    def __init__(self, model: Any, transform: Any, categories: List[str]) -> None:
        self.model = model
        self.transform = transform
        self.categories = categories

    def classify(self, image: Any, top_k: int) -> List[Prediction]:
        import torch

        batch = self.transform(image).unsqueeze(0)
        with torch.inference_mode():
            logits = self.model(batch)
        probabilities = torch.nn.functional.softmax(logits[0], dim=0)
        values, indices = torch.topk(probabilities, k=min(top_k, len(self.categories)))
        return [
            Prediction(label=self.categories[int(index)], probability=float(value))
            for value, index in zip(values, indices)
        ]


class TorchvisionProvider:
    """Load a pretrained torchvision model with its default ImageNet weights."""

    def __init__(self, model_name: str = "mobilenet_v2") -> None:
        self.model_name = model_name

    def load(self) -> TorchvisionClassifier:
        # Imported here so text-only deployments never pay the torch import.
        from torchvision import models

        weights = models.get_model_weights(self.model_name).DEFAULT
        model = models.get_model(self.model_name, weights=weights)
        model.eval()
        return TorchvisionClassifier(
            model=model,
            transform=weights.transforms(),
            categories=list(weights.meta["categories"]),
        )


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


class ModelHandle:
    """Process-wide, lazily loaded classifier.

    At most one load attempt runs at a time. A failed attempt logs and
    returns the handle to ``unloaded``; nothing retries on its own, so
    classification simply stays text-only until someone calls ``load`` again.
    """

    def __init__(self, provider: ModelProvider) -> None:
        self.provider = provider
        self._lock = threading.Lock()
        self._state = ModelState.UNLOADED
        self._model: Optional[ImageClassifier] = None
        self._attempt_done: Optional[threading.Event] = None

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def model(self) -> Optional[ImageClassifier]:
        """Return the classifier if ready, without triggering a load."""
        if self._state is ModelState.READY:
            return self._model
        return None

    def load(self) -> Optional[ImageClassifier]:
        """Load the model, or wait on the attempt already in flight."""
        with self._lock:
            if self._state is ModelState.READY:
                return self._model
            if self._state is ModelState.LOADING and self._attempt_done is not None:
                in_flight = self._attempt_done
            else:
                in_flight = None
                self._state = ModelState.LOADING
                self._attempt_done = threading.Event()
                done = self._attempt_done

        if in_flight is not None:
            in_flight.wait()
            return self.model

        try:
            model = self.provider.load()
        except Exception as exc:
            logger.error("model.load.failed error=%s", exc)
            with self._lock:
                self._state = ModelState.UNLOADED
        else:
            with self._lock:
                self._model = model
                self._state = ModelState.READY
            logger.info("model.load.ready provider=%s", type(self.provider).__name__)
        finally:
            done.set()

        return self.model

    def start_loading(self) -> Optional[threading.Thread]:
        """Kick off a background load; no-op unless the handle is unloaded."""
        if self._state is not ModelState.UNLOADED:
            return None
        thread = threading.Thread(target=self.load, name="model-loader", daemon=True)
        thread.start()
        return thread

    def warm(self, timeout: Optional[float]) -> Optional[ImageClassifier]:
        """Start a background load and wait at most ``timeout`` seconds for it.

        Returns the classifier if it became ready in time; the load keeps
        running in the background otherwise.
        """
        thread = self.start_loading()
        if thread is not None:
            thread.join(timeout)
        else:
            with self._lock:
                in_flight = self._attempt_done if self._state is ModelState.LOADING else None
            if in_flight is not None:
                in_flight.wait(timeout)
        return self.model
