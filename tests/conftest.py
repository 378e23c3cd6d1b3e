import pytest
from PIL import Image


@pytest.fixture
def image() -> Image.Image:
    return Image.new("RGB", (8, 8), color=(200, 30, 30))
