# main.py

import json
import logging

import numpy as np
import pygame

import constants
import logger_setup
from frame_clock import FrameClock
from pendulum import create_initial_states
from pendulum_system import PendulumPopulation, PopulationStepper
from renderer import PendulumRenderer

# Get the application's dedicated logger
logger = logging.getLogger("double_pendulum")


def run_simulation_loop(population, stepper, frame_clock, renderer, screen, clock, log_interval_ticks=100):
    """
    The main frame loop: time the frame, advance the physics, draw.
    Exits between frames once the window is closed.

    Every `log_interval_ticks` frames the frame rate is logged at INFO and the
    energy bookkeeping at DEBUG. A `log_interval_ticks` of 0 disables both.
    Returns the number of frames run.
    """
    if log_interval_ticks < 0:
        raise ValueError(f"Log interval must be non-negative, got {log_interval_ticks}")

    # --- Loop Setup ---
    running = True
    tick = 0
    last_logged_energy = None
    warned_non_finite = False
    physics_started = False

    while running:
        # Event handling
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

        # --- Physics Update ---
        context = frame_clock.tick()
        advanced = stepper.step_frame(population, context, frame_clock.physics_enabled)
        if advanced and not physics_started:
            physics_started = True
            logger.info(f"Warm-up finished after {context.timer:.2f}s; physics running.")

        if advanced and not warned_non_finite and population.has_non_finite():
            count = int(population.non_finite_mask().sum())
            logger.warning(f"{count} pendulum(s) reached a non-finite state at tick {tick}.")
            warned_non_finite = True

        # --- Logging (throttled) ---
        if log_interval_ticks and tick % log_interval_ticks == 0:
            logger.info(f"Tick={tick}, FPS={frame_clock.fps:.1f}, Timer={context.timer:.2f}s")

            total_energy = population.get_total_mechanical_energy()
            if last_logged_energy is None:
                delta_e = 0.0
            else:
                delta_e = total_energy - last_logged_energy
            last_logged_energy = total_energy

            logger.debug(
                f"Tick={tick}, "
                f"TotalEnergy={total_energy:.4f}, "
                f"Delta_E={delta_e:+.6f}"
            )

        # --- Drawing ---
        renderer.draw(screen, population)
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

    return tick


def main(config_path='config.json'):
    """
    Main function to initialize and run the double pendulum simulation.
    """
    # --- Setup ---
    logger_setup.setup_logging(config_path)

    with open(config_path, 'r') as f:
        config = json.load(f)
    sim_config = config['simulation']

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT))
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    # All pendulums hang from the centre of the screen.
    origin = (constants.WIDTH / (2 * constants.SCALE), constants.HEIGHT / (2 * constants.SCALE))
    states = create_initial_states(
        count=sim_config['pendulum_count'],
        base_angle=sim_config.get('initial_angle', np.pi / 1.5),
        angle_offset=sim_config.get('angle_offset', 1e-11),
        mass1=sim_config['mass1'],
        mass2=sim_config['mass2'],
        length1=sim_config['length1'],
        length2=sim_config['length2'],
        origin=origin,
    )
    population = PendulumPopulation.from_states(states, rng=rng)

    frame_clock = FrameClock(
        warmup_seconds=sim_config.get('warmup_seconds', 2.0),
        substep_count=sim_config.get('substep_count', 100),
    )
    renderer = PendulumRenderer()

    with PopulationStepper(
        timescale=sim_config.get('timescale', 1.0),
        worker_count=sim_config.get('worker_count', 1),
    ) as stepper:
        ticks = run_simulation_loop(
            population, stepper, frame_clock, renderer, screen, clock,
            log_interval_ticks=sim_config.get('log_interval_ticks', 100),
        )

    logger.info(f"Application shutting down after {ticks} frames.")
    pygame.quit()


if __name__ == "__main__":
    main()
