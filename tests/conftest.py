import os

import numpy as np
import pytest

# pygame must never try to open a real window under test.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from pendulum import create_initial_states
from pendulum_system import PendulumPopulation


@pytest.fixture
def reference_params():
    """The default configuration: equal masses of 2 on rods of 1 metre."""
    return {"mass1": 2.0, "mass2": 2.0, "length1": 1.0, "length2": 1.0}


@pytest.fixture
def reference_angle():
    return np.pi / 1.5


@pytest.fixture
def make_population(reference_params, reference_angle):
    def _make(count=8, base_angle=None, angle_offset=1e-3, rng=None, **overrides):
        params = dict(reference_params, **overrides)
        states = create_initial_states(
            count=count,
            base_angle=reference_angle if base_angle is None else base_angle,
            angle_offset=angle_offset,
            origin=(2.25, 2.25),
            **params,
        )
        return PendulumPopulation.from_states(states, rng=rng)
    return _make
