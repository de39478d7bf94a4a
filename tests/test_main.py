import logging

import numpy as np
import pygame
import pytest

from frame_clock import FrameClock
from main import run_simulation_loop
from pendulum_system import PopulationStepper
from renderer import PendulumRenderer


class QuitAfter:
    """Fake time source: 0.1 s per frame, posts QUIT once `frames` ticks have been read."""
    def __init__(self, frames, step=0.1):
        self.frames = frames
        self.step = step
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls == self.frames:
            pygame.event.post(pygame.event.Event(pygame.QUIT))
        return self.calls * self.step


class NoWaitClock:
    def tick(self, framerate=0):
        return 0


@pytest.fixture
def screen():
    pygame.display.init()
    surface = pygame.display.set_mode((200, 200))
    pygame.event.clear()
    yield surface
    pygame.display.quit()


@pytest.fixture
def renderer():
    return PendulumRenderer(screen_height=200, scale=40.0)


@pytest.fixture
def loop_logs(caplog):
    logger = logging.getLogger("double_pendulum")
    old_level, old_propagate = logger.level, logger.propagate
    logger.addHandler(caplog.handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield caplog
    logger.removeHandler(caplog.handler)
    logger.setLevel(old_level)
    logger.propagate = old_propagate


def test_loop_exits_between_frames_on_quit(make_population, screen, renderer):
    population = make_population(count=3)
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    frame_clock = FrameClock(warmup_seconds=0.0, substep_count=10, time_source=QuitAfter(100))

    ticks = run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                                screen, NoWaitClock(), log_interval_ticks=1)

    assert ticks == 1


def test_positions_stay_frozen_during_warmup(make_population, screen, renderer):
    population = make_population(count=4)
    angles_before = population.angles.copy()
    joints_before = population.joint_positions.copy()
    frame_clock = FrameClock(warmup_seconds=10.0, substep_count=10, time_source=QuitAfter(5))

    ticks = run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                                screen, NoWaitClock())

    assert ticks == 6
    assert not frame_clock.physics_enabled
    np.testing.assert_array_equal(population.angles, angles_before)
    np.testing.assert_array_equal(population.joint_positions, joints_before)


def test_physics_runs_once_warmup_is_over(make_population, screen, renderer):
    population = make_population(count=4)
    angles_before = population.angles.copy()
    frame_clock = FrameClock(warmup_seconds=0.2, substep_count=10, time_source=QuitAfter(6))

    run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                        screen, NoWaitClock())

    assert frame_clock.physics_enabled
    assert not np.array_equal(population.angles, angles_before)
    assert (population.angles > -np.pi).all() and (population.angles <= np.pi).all()


def test_non_finite_state_warned_once(make_population, screen, renderer, loop_logs):
    population = make_population(count=3)
    population.velocities[1, 0] = np.nan
    frame_clock = FrameClock(warmup_seconds=0.0, substep_count=10, time_source=QuitAfter(5))

    run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                        screen, NoWaitClock(), log_interval_ticks=0)

    warnings = [r for r in loop_logs.records if "reached a non-finite state" in r.getMessage()]
    assert len(warnings) == 1
    assert warnings[0].levelno == logging.WARNING
    assert "1 pendulum(s)" in warnings[0].getMessage()


def test_frame_rate_reported_at_info(make_population, screen, renderer, loop_logs):
    population = make_population(count=2)
    frame_clock = FrameClock(warmup_seconds=0.0, substep_count=10, time_source=QuitAfter(3))

    run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                        screen, NoWaitClock(), log_interval_ticks=1)

    fps_records = [r for r in loop_logs.records if "FPS=" in r.getMessage()]
    assert len(fps_records) == 4
    assert all(r.levelno == logging.INFO for r in fps_records)
    assert "FPS=10.0" in fps_records[-1].getMessage()


def test_zero_log_interval_disables_periodic_logging(make_population, screen, renderer, loop_logs):
    population = make_population(count=2)
    frame_clock = FrameClock(warmup_seconds=0.0, substep_count=10, time_source=QuitAfter(3))

    ticks = run_simulation_loop(population, PopulationStepper(), frame_clock, renderer,
                                screen, NoWaitClock(), log_interval_ticks=0)

    assert ticks == 4
    assert not [r for r in loop_logs.records if "FPS=" in r.getMessage()]


def test_negative_log_interval_is_rejected(make_population, screen, renderer):
    population = make_population(count=2)
    with pytest.raises(ValueError):
        run_simulation_loop(population, PopulationStepper(), FrameClock(), renderer,
                            screen, NoWaitClock(), log_interval_ticks=-1)
