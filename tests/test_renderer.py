import numpy as np
import pygame
import pytest

from pendulum import PendulumState
from pendulum_system import PendulumPopulation
from renderer import PendulumRenderer

SCALE = 100.0
HEIGHT = 500


@pytest.fixture
def renderer():
    return PendulumRenderer(screen_height=HEIGHT, scale=SCALE, rod_thickness=3,
                            marker_radius=0.05, rod_color=(0, 0, 0), background_color=(150, 150, 150))


@pytest.fixture
def hanging_population():
    states = [
        PendulumState(mass1=1.0, mass2=1.0, length1=1.0, length2=1.0,
                      origin=(2.5, 2.5), color=(255, 0, 0)),
        PendulumState(mass1=1.0, mass2=1.0, length1=0.5, length2=0.5,
                      origin=(1.0, 4.0), color=(0, 0, 255), angle1=np.pi / 2, angle2=np.pi / 2),
    ]
    return PendulumPopulation.from_states(states)


def test_world_to_screen_flips_vertical_axis(renderer):
    assert renderer.world_to_screen(0.0, 0.0) == (0.0, HEIGHT)
    assert renderer.world_to_screen(1.0, 5.0) == (100.0, 0.0)
    assert renderer.marker_radius_pixels == 5


def test_build_geometry_places_rods_and_markers(renderer, hanging_population):
    geometry = renderer.build_geometry(hanging_population)
    assert [item.index for item in geometry] == [0, 1]

    hanging = geometry[0]
    (pivot, joint), (joint_again, end) = hanging.rods
    assert pivot == pytest.approx((250.0, 250.0))
    assert joint == pytest.approx((250.0, 350.0))
    assert joint_again == joint
    assert end == pytest.approx((250.0, 450.0))
    assert hanging.markers == ((joint, (255, 0, 0)), (end, (255, 0, 0)))

    sideways = geometry[1]
    (_, joint), (_, end) = sideways.rods
    assert joint == pytest.approx((150.0, 100.0))
    assert end == pytest.approx((200.0, 100.0))


def test_build_geometry_follows_draw_order(renderer, hanging_population):
    hanging_population.draw_order = np.array([1, 0])
    assert [item.index for item in renderer.build_geometry(hanging_population)] == [1, 0]


def test_non_finite_pendulums_are_skipped(renderer, hanging_population):
    hanging_population.angles[1, 0] = np.nan
    geometry = renderer.build_geometry(hanging_population)
    assert [item.index for item in geometry] == [0]


def test_draw_paints_background_rods_and_markers(renderer, hanging_population):
    surface = pygame.Surface((500, HEIGHT))
    renderer.draw(surface, hanging_population)

    assert tuple(surface.get_at((10, 10)))[:3] == (150, 150, 150)
    # Rod midway between pivot and joint.
    assert tuple(surface.get_at((250, 300)))[:3] == (0, 0, 0)
    # Markers sit on top of the rods.
    assert tuple(surface.get_at((250, 350)))[:3] == (255, 0, 0)
    assert tuple(surface.get_at((250, 450)))[:3] == (255, 0, 0)
    assert tuple(surface.get_at((200, 100)))[:3] == (0, 0, 255)
