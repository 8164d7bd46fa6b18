"""Shared fixtures for the painted galaxy tests."""

import numpy as np
import pytest

from galaxycanvas import image_from_array, make_blank_image
from galaxymodel import Coordinate, Nebula, SpawnType
from tests.helpers import make_project


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def sample_project():
    """A small hand-built project touching every collection."""
    return make_project(
        coords=[(100, 100), (200, 100), (150, 200), (400, 400)],
        hyperlanes=[(0, 1), (1, 2), (2, 0)],
        wormholes=[(0, 3)],
        nebulas=[Nebula(Coordinate(150, 150), 45)],
        spawn_types={0: SpawnType.ENABLED, 3: SpawnType.PREFERRED},
        canvas=make_blank_image(),
    )


@pytest.fixture
def square_canvas():
    """1000x1000 canvas, black except a white 300x300 square in the middle."""
    density = np.zeros((1000, 1000), dtype=np.uint8)
    density[350:650, 350:650] = 255
    return image_from_array(density)
