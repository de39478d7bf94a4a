# pendulum.py

import math
import logging

import constants
import dynamics

logger = logging.getLogger("double_pendulum")


def index_color(index: int, count: int) -> tuple:
    """
    Deterministic color for the pendulum at `index` in a population of `count`.
    Each channel is a sinusoid over the index with a different number of full
    cycles across the population, so neighbouring indices get similar colors.
    """
    frequency_r = constants.COLOR_FREQUENCY_R * (2 * math.pi) / count
    frequency_g = constants.COLOR_FREQUENCY_G * (2 * math.pi) / count
    frequency_b = constants.COLOR_FREQUENCY_B * (2 * math.pi) / count

    r = int((math.sin(frequency_r * index) + 1) * 127.5)
    g = int((math.sin(frequency_g * index) + 1) * 127.5)
    b = int((math.cos(frequency_b * index) + 1) * 127.5)
    return (r, g, b)


class PendulumState:
    """
    Represents a single double pendulum in the simulation.

    Data Contract:
    - Inputs:
        - mass1, mass2 (float): Point masses at the end of each rod. Must be > 0.
        - length1, length2 (float): Rod lengths in metres. Must be > 0.
        - origin (tuple): Fixed pivot (x, y) in world units.
        - color (tuple): (R, G, B), each channel in 0..255.
        - angle1, angle2 (float): Initial angles from the downward vertical, in radians.
        - angular_velocity1, angular_velocity2 (float): Initial angular rates, in rad/s.
    - Side Effects: None.
    - Invariants: Masses, lengths, origin and color are fixed for the life of
      the instance. Angles are in (-pi, pi] after every `normalize()`.
    """
    def __init__(self, mass1: float, mass2: float, length1: float, length2: float,
                 origin: tuple = (0.0, 0.0), color: tuple = constants.WHITE,
                 angle1: float = 0.0, angle2: float = 0.0,
                 angular_velocity1: float = 0.0, angular_velocity2: float = 0.0):
        if mass1 <= 0 or mass2 <= 0:
            raise ValueError(f"Pendulum masses must be positive, got {mass1} and {mass2}")
        if length1 <= 0 or length2 <= 0:
            raise ValueError(f"Pendulum rod lengths must be positive, got {length1} and {length2}")
        if len(color) != 3 or any(not 0 <= channel <= 255 for channel in color):
            raise ValueError(f"Pendulum color must be three channels in 0..255, got {color}")

        self._mass1 = float(mass1)
        self._mass2 = float(mass2)
        self._length1 = float(length1)
        self._length2 = float(length2)
        self._origin = (float(origin[0]), float(origin[1]))
        self._color = tuple(int(channel) for channel in color)

        self.angle1 = float(angle1)
        self.angle2 = float(angle2)
        self.angular_velocity1 = float(angular_velocity1)
        self.angular_velocity2 = float(angular_velocity2)
        self.angular_acceleration1, self.angular_acceleration2 = dynamics.compute_angular_accelerations(
            self.angle1, self.angle2, self.angular_velocity1, self.angular_velocity2,
            self._mass1, self._mass2, self._length1, self._length2
        )

    @property
    def mass1(self):
        return self._mass1

    @property
    def mass2(self):
        return self._mass2

    @property
    def length1(self):
        return self._length1

    @property
    def length2(self):
        return self._length2

    @property
    def origin(self):
        return self._origin

    @property
    def color(self):
        return self._color

    @property
    def joint_position(self):
        """Upper mass position relative to the pivot."""
        joint_x, joint_y, _, _ = dynamics.pendulum_coordinates(
            self.angle1, self.angle2, self._length1, self._length2
        )
        return (joint_x, joint_y)

    @property
    def end_position(self):
        """Lower mass position relative to the pivot."""
        _, _, end_x, end_y = dynamics.pendulum_coordinates(
            self.angle1, self.angle2, self._length1, self._length2
        )
        return (end_x, end_y)

    def step(self, dt: float):
        """
        Advances the pendulum by one explicit-Euler sub-step of size dt.
        """
        (
            self.angle1, self.angle2,
            self.angular_velocity1, self.angular_velocity2,
            self.angular_acceleration1, self.angular_acceleration2,
        ) = dynamics.step_substep(
            self.angle1, self.angle2, self.angular_velocity1, self.angular_velocity2,
            self._mass1, self._mass2, self._length1, self._length2, dt
        )

    def normalize(self):
        self.angle1 = dynamics.normalize_angle(self.angle1)
        self.angle2 = dynamics.normalize_angle(self.angle2)

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in (
            self.angle1, self.angle2,
            self.angular_velocity1, self.angular_velocity2,
            self.angular_acceleration1, self.angular_acceleration2,
        ))

    def mechanical_energy(self) -> float:
        return dynamics.mechanical_energy(
            self.angle1, self.angle2, self.angular_velocity1, self.angular_velocity2,
            self._mass1, self._mass2, self._length1, self._length2
        )

    def __repr__(self):
        return (
            f"PendulumState(angle1={self.angle1!r}, angle2={self.angle2!r}, "
            f"angular_velocity1={self.angular_velocity1!r}, angular_velocity2={self.angular_velocity2!r}, "
            f"mass1={self._mass1!r}, mass2={self._mass2!r}, "
            f"length1={self._length1!r}, length2={self._length2!r}, "
            f"origin={self._origin!r}, color={self._color!r})"
        )


def create_initial_states(count: int, base_angle: float, angle_offset: float,
                          mass1: float, mass2: float, length1: float, length2: float,
                          origin: tuple) -> list:
    """
    Builds the starting population.

    Every pendulum starts at rest with both rods at `base_angle + i * angle_offset`.
    The offset is tiny (1e-11 rad by default): all pendulums start visually
    together and the chaotic dynamics pull them apart over time.
    """
    if count <= 0:
        raise ValueError(f"Pendulum count must be positive, got {count}")

    states = []
    for i in range(count):
        angle = base_angle + i * angle_offset
        states.append(PendulumState(
            mass1=mass1, mass2=mass2, length1=length1, length2=length2,
            origin=origin, color=index_color(i, count),
            angle1=angle, angle2=angle,
        ))

    logger.debug(f"Created {count} initial pendulum states at base angle {base_angle:.6f} rad.")
    return states
