# pendulum_system.py

import os
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

import constants
import dynamics
from pendulum import PendulumState

logger = logging.getLogger("double_pendulum")


class PendulumPopulation:
    """
    Owns the state of every pendulum in the simulation as contiguous NumPy
    arrays (Structure of Arrays), one row per pendulum.

    Data Contract:
    - Inputs:
        - states (list[PendulumState]): The starting pendulums, in index order.
        - rng (np.random.Generator, optional): Seeded generator for the draw order.
    - Outputs: None. The stepper modifies the mutable arrays in place.
    - Side Effects: None outside its own arrays.
    - Invariants: The number of pendulums is constant. `masses`, `lengths`,
      `origins` and `colors` are write-protected. `draw_order` is a
      permutation of row indices used only for presentation; it never
      reorders the physics arrays.
    """
    def __init__(self, states: list, rng: np.random.Generator = None):
        if not states:
            raise ValueError("A population needs at least one pendulum.")

        self.num_pendulums = len(states)

        # --- Mutable physical state ---
        self.angles = np.array([(s.angle1, s.angle2) for s in states], dtype=float)
        self.velocities = np.array([(s.angular_velocity1, s.angular_velocity2) for s in states], dtype=float)
        self.accelerations = np.array([(s.angular_acceleration1, s.angular_acceleration2) for s in states], dtype=float)

        # --- Fixed per-pendulum constants ---
        self.masses = np.array([(s.mass1, s.mass2) for s in states], dtype=float)
        self.lengths = np.array([(s.length1, s.length2) for s in states], dtype=float)
        self.origins = np.array([s.origin for s in states], dtype=float)
        self.colors = np.array([s.color for s in states], dtype=np.uint8)
        for fixed in (self.masses, self.lengths, self.origins, self.colors):
            fixed.flags.writeable = False

        # --- Derived positions, relative to each pivot ---
        self.joint_positions = np.array([s.joint_position for s in states], dtype=float)
        self.end_positions = np.array([s.end_position for s in states], dtype=float)

        self.draw_order = np.arange(self.num_pendulums)
        if rng is not None:
            self.shuffle_draw_order(rng)

        logger.info(f"PendulumPopulation created for {self.num_pendulums} pendulums.")

    @classmethod
    def from_states(cls, states: list, rng: np.random.Generator = None):
        return cls(states, rng=rng)

    def __len__(self):
        return self.num_pendulums

    def shuffle_draw_order(self, rng: np.random.Generator):
        """Randomizes which pendulums are drawn on top. Physics rows are untouched."""
        self.draw_order = rng.permutation(self.num_pendulums)

    def state(self, index: int) -> PendulumState:
        """Returns a detached PendulumState snapshot of row `index`."""
        snapshot = PendulumState(
            mass1=self.masses[index, 0], mass2=self.masses[index, 1],
            length1=self.lengths[index, 0], length2=self.lengths[index, 1],
            origin=tuple(self.origins[index]), color=tuple(int(c) for c in self.colors[index]),
            angle1=self.angles[index, 0], angle2=self.angles[index, 1],
            angular_velocity1=self.velocities[index, 0], angular_velocity2=self.velocities[index, 1],
        )
        snapshot.angular_acceleration1 = float(self.accelerations[index, 0])
        snapshot.angular_acceleration2 = float(self.accelerations[index, 1])
        return snapshot

    def non_finite_mask(self) -> np.ndarray:
        """Boolean mask of pendulums whose angles, velocities or accelerations went non-finite."""
        return ~(
            np.isfinite(self.angles).all(axis=1)
            & np.isfinite(self.velocities).all(axis=1)
            & np.isfinite(self.accelerations).all(axis=1)
        )

    def has_non_finite(self) -> bool:
        return bool(self.non_finite_mask().any())

    def get_total_kinetic_energy(self):
        """
        KE = sum(0.5 * m1 * l1^2 * w1^2
                 + 0.5 * m2 * (l1^2 * w1^2 + l2^2 * w2^2 + 2 * l1 * l2 * w1 * w2 * cos(a1 - a2)))
        """
        m1, m2 = self.masses[:, 0], self.masses[:, 1]
        l1, l2 = self.lengths[:, 0], self.lengths[:, 1]
        w1, w2 = self.velocities[:, 0], self.velocities[:, 1]
        cos_delta = np.cos(self.angles[:, 0] - self.angles[:, 1])
        upper = 0.5 * m1 * (l1 * w1) ** 2
        lower = 0.5 * m2 * ((l1 * w1) ** 2 + (l2 * w2) ** 2 + 2 * l1 * l2 * w1 * w2 * cos_delta)
        return np.sum(upper + lower)

    def get_total_potential_energy(self):
        """
        PE = sum(g * (m1 * y1 + m2 * y2)), with heights measured from each pivot.
        Uses the joint/end positions derived at the last update.
        """
        heights = self.masses[:, 0] * self.joint_positions[:, 1] + self.masses[:, 1] * self.end_positions[:, 1]
        return constants.GRAVITY * np.sum(heights)

    def get_total_mechanical_energy(self):
        return self.get_total_kinetic_energy() + self.get_total_potential_energy()


class PopulationStepper:
    """
    Advances every pendulum of a population by one frame.

    Pendulums never read each other's state, so the frame update is a
    data-parallel map. The population is split into contiguous, disjoint
    index ranges; each range is handed to one worker thread (the Numba kernel
    releases the GIL) and `advance` only returns once every range is done.

    Data Contract:
    - Inputs:
        - timescale (float): Simulated seconds per wall-clock second. Must be > 0.
        - worker_count (int): Number of worker threads. None uses os.cpu_count().
    - Side Effects: Owns a thread pool when worker_count > 1; call shutdown()
      or use the stepper as a context manager to release it.
    """
    def __init__(self, timescale: float = 1.0, worker_count: int = 1):
        if timescale <= 0:
            raise ValueError(f"Timescale must be positive, got {timescale}")
        if worker_count is None:
            worker_count = os.cpu_count() or 1
        if worker_count < 1:
            raise ValueError(f"Worker count must be at least 1, got {worker_count}")

        self.timescale = timescale
        self.worker_count = worker_count
        self._executor = None
        if worker_count > 1:
            self._executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="pendulum-worker")

        logger.info(f"PopulationStepper created with timescale {timescale} and {worker_count} worker(s).")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            logger.debug("PopulationStepper worker pool shut down.")

    def partition(self, count: int) -> list:
        """
        Splits [0, count) into at most `worker_count` contiguous, non-empty ranges.
        """
        chunks = min(self.worker_count, count)
        bounds = np.linspace(0, count, chunks + 1).astype(int)
        return [(int(bounds[k]), int(bounds[k + 1])) for k in range(chunks) if bounds[k] < bounds[k + 1]]

    @staticmethod
    def _check_partitions(partitions: list, count: int):
        covered = np.zeros(count, dtype=np.int32)
        for start, stop in partitions:
            if not 0 <= start <= stop <= count:
                raise ValueError(f"Partition ({start}, {stop}) is outside the population of {count}.")
            covered[start:stop] += 1
        if not (covered == 1).all():
            raise ValueError("Partitions must cover every pendulum exactly once.")

    def advance(self, population: PendulumPopulation, frame_delta_seconds: float, substep_count: int, partitions: list = None):
        """
        Integrates every pendulum over one frame.

        The frame delta is scaled by the timescale and split into
        `substep_count` equal explicit-Euler sub-steps. Afterwards both angles
        are wrapped into (-pi, pi] and the joint/end positions re-derived.

        - Inputs:
            - population (PendulumPopulation): Modified in place.
            - frame_delta_seconds (float): Wall-clock seconds since the last frame. Must be >= 0.
            - substep_count (int): Sub-steps per frame. Must be >= 1.
            - partitions (list, optional): Explicit (start, stop) ranges to run
              as separate tasks. Defaults to `partition(len(population))`.
        """
        if substep_count < 1:
            raise ValueError(f"Sub-step count must be at least 1, got {substep_count}")
        if frame_delta_seconds < 0:
            raise ValueError(f"Frame delta must be non-negative, got {frame_delta_seconds}")

        if partitions is None:
            partitions = self.partition(population.num_pendulums)
        else:
            self._check_partitions(partitions, population.num_pendulums)

        dt = frame_delta_seconds * self.timescale / substep_count

        if self._executor is None or len(partitions) == 1:
            for start, stop in partitions:
                self._advance_range(population, start, stop, dt, substep_count)
            return

        # --- Fork: one task per disjoint range ---
        futures = [
            self._executor.submit(self._advance_range, population, start, stop, dt, substep_count)
            for start, stop in partitions
        ]
        # --- Join: every range must finish before positions are read ---
        for future in futures:
            future.result()

    @staticmethod
    def _advance_range(population: PendulumPopulation, start: int, stop: int, dt: float, substep_count: int):
        dynamics.advance_range(
            start, stop,
            population.angles,
            population.velocities,
            population.accelerations,
            population.masses,
            population.lengths,
            population.joint_positions,
            population.end_positions,
            dt,
            substep_count,
        )

    def step_frame(self, population: PendulumPopulation, context, physics_enabled: bool = True) -> bool:
        """
        Advances the population using a FrameContext. While physics is gated
        off (warm-up), positions stay frozen and False is returned.
        """
        if not physics_enabled:
            return False
        self.advance(population, context.frame_delta_seconds, context.substep_count)
        return True
