# dynamics.py

"""
Double pendulum dynamics.

JIT-compiled physics functions for a two-link pendulum with point masses at
the end of each rod. Angles are measured from the downward vertical, positive
counter-clockwise, and world coordinates are "up is positive y".

These functions are deliberately kept outside any class and operate only on
NumPy arrays and simple scalar values, as required by Numba's nopython mode.
`fastmath` stays off: trajectories must be reproducible run to run and NaN or
infinite values must survive so they can be detected.

Known singularity: the shared denominator of the acceleration formula,
    length2 * (2*mass1 + mass2 - mass2*cos(2*angle1 - 2*angle2)),
is zero only for degenerate masses (it is bounded below by 2*length2*mass1).
When it does vanish the accelerations become non-finite and propagate
forward. They are not clamped.
"""

import math

import numba
import numpy as np

from constants import GRAVITY

TWO_PI = 2.0 * math.pi


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def compute_angular_accelerations(angle1, angle2, velocity1, velocity2, mass1, mass2, length1, length2):
    """
    Closed-form Lagrangian angular accelerations of both rods.

    Returns (accel1, accel2) in rad/s^2. Pure function.
    """
    g = GRAVITY
    delta = angle1 - angle2
    sin_delta = math.sin(delta)
    cos_delta = math.cos(delta)
    denom = length2 * (2.0 * mass1 + mass2 - mass2 * math.cos(2.0 * angle1 - 2.0 * angle2))

    accel1 = (
        -g * (2.0 * mass1 + mass2) * math.sin(angle1)
        - mass2 * g * math.sin(angle1 - 2.0 * angle2)
        - 2.0 * sin_delta * mass2 * (velocity2 * velocity2 * length2 + velocity1 * velocity1 * length1 * cos_delta)
    ) / denom

    accel2 = (
        2.0 * sin_delta * (
            velocity1 * velocity1 * length1 * (mass1 + mass2)
            + g * (mass1 + mass2) * math.cos(angle1)
            + velocity2 * velocity2 * length2 * mass2 * cos_delta
        )
    ) / denom

    return accel1, accel2


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def step_substep(angle1, angle2, velocity1, velocity2, mass1, mass2, length1, length2, dt):
    """
    One explicit-Euler sub-step of size dt.

    v_new = v_old + a * dt
    theta_new = theta_old + v_new * dt

    Returns (angle1, angle2, velocity1, velocity2, accel1, accel2), where the
    accelerations are the ones evaluated at the incoming state.
    """
    accel1, accel2 = compute_angular_accelerations(
        angle1, angle2, velocity1, velocity2, mass1, mass2, length1, length2
    )
    velocity1 += accel1 * dt
    velocity2 += accel2 * dt
    angle1 += velocity1 * dt
    angle2 += velocity2 * dt
    return angle1, angle2, velocity1, velocity2, accel1, accel2


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def normalize_angle(angle):
    """
    Wraps an angle into (-pi, pi].

    fmod brings any finite value into (-2pi, 2pi) exactly; a single
    correction then lands it in range. Both subtractions are exact, so the
    result is idempotent.
    """
    angle = np.fmod(angle, TWO_PI)
    if angle > math.pi:
        angle -= TWO_PI
    elif angle <= -math.pi:
        angle += TWO_PI
    return angle


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def pendulum_coordinates(angle1, angle2, length1, length2):
    """Joint and end positions relative to the pivot: (joint_x, joint_y, end_x, end_y)."""
    joint_x = length1 * math.sin(angle1)
    joint_y = -length1 * math.cos(angle1)
    end_x = joint_x + length2 * math.sin(angle2)
    end_y = joint_y - length2 * math.cos(angle2)
    return joint_x, joint_y, end_x, end_y


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def mechanical_energy(angle1, angle2, velocity1, velocity2, mass1, mass2, length1, length2):
    """
    Total mechanical energy (kinetic + potential) of one pendulum.
    Potential energy is zero at the pivot height.
    """
    kinetic = 0.5 * mass1 * length1 * length1 * velocity1 * velocity1 + 0.5 * mass2 * (
        length1 * length1 * velocity1 * velocity1
        + length2 * length2 * velocity2 * velocity2
        + 2.0 * length1 * length2 * velocity1 * velocity2 * math.cos(angle1 - angle2)
    )
    _, joint_y, _, end_y = pendulum_coordinates(angle1, angle2, length1, length2)
    potential = GRAVITY * (mass1 * joint_y + mass2 * end_y)
    return kinetic + potential


@numba.jit(nopython=True, nogil=True, error_model='numpy')
def advance_range(start, stop, angles, velocities, accelerations, masses, lengths, joint_positions, end_positions, dt, substep_count):
    """
    Numba-accelerated frame update for the pendulums in [start, stop).

    Each row is integrated for `substep_count` sub-steps of size `dt`, its
    angles normalized, and its joint/end positions re-derived. Rows outside
    the range are never read or written, so disjoint ranges may run on
    different threads at the same time.
    """
    for i in range(start, stop):
        angle1 = angles[i, 0]
        angle2 = angles[i, 1]
        velocity1 = velocities[i, 0]
        velocity2 = velocities[i, 1]
        accel1 = accelerations[i, 0]
        accel2 = accelerations[i, 1]
        mass1 = masses[i, 0]
        mass2 = masses[i, 1]
        length1 = lengths[i, 0]
        length2 = lengths[i, 1]

        for _ in range(substep_count):
            angle1, angle2, velocity1, velocity2, accel1, accel2 = step_substep(
                angle1, angle2, velocity1, velocity2, mass1, mass2, length1, length2, dt
            )

        angle1 = normalize_angle(angle1)
        angle2 = normalize_angle(angle2)

        angles[i, 0] = angle1
        angles[i, 1] = angle2
        velocities[i, 0] = velocity1
        velocities[i, 1] = velocity2
        accelerations[i, 0] = accel1
        accelerations[i, 1] = accel2

        joint_x, joint_y, end_x, end_y = pendulum_coordinates(angle1, angle2, length1, length2)
        joint_positions[i, 0] = joint_x
        joint_positions[i, 1] = joint_y
        end_positions[i, 0] = end_x
        end_positions[i, 1] = end_y
