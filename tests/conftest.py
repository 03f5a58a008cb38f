import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.utils import SCENE_RECT, striped_rect_image, solid_image
from vehicle_prep.config import ProcessingConfig
from vehicle_prep.pipeline.edges import EdgeMap
from vehicle_prep.pipeline.models import PixelBuffer
from vehicle_prep.pipeline.orchestrator import DetectionPipeline


@pytest.fixture
def scene_image():
    return striped_rect_image(400, 300, *SCENE_RECT)


@pytest.fixture
def scene_edges(scene_image):
    return EdgeMap(PixelBuffer.from_array(scene_image))


@pytest.fixture
def uniform_image():
    return solid_image(320, 240, (120, 130, 140))


@pytest.fixture
def noise_image():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(180, 240, 3), dtype=np.uint8)


@pytest.fixture
def pipeline():
    return DetectionPipeline(ProcessingConfig())
