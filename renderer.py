# renderer.py

import logging
from collections import namedtuple

import numpy as np
import pygame

import constants

logger = logging.getLogger("double_pendulum")

# Screen-space drawing instructions for one pendulum.
# rods: ((start, end), (start, end)); markers: ((center, color), (center, color)).
PendulumGeometry = namedtuple('PendulumGeometry', ['index', 'rods', 'markers'])


class PendulumRenderer:
    """
    Turns pendulum world positions into screen geometry and draws it with pygame.

    The physics works in metres with "up is positive y"; the screen works in
    pixels with "down is positive y". This class owns that conversion.

    Data Contract:
    - Inputs:
        - screen_height (int): Height of the target surface in pixels.
        - scale (float): Pixels per metre.
        - rod_thickness (int): Rod width in pixels.
        - marker_radius (float): Mass marker radius in metres.
    - Side Effects: draw() writes to the given pygame.Surface.
    """
    def __init__(self, screen_height: int = constants.HEIGHT, scale: float = constants.SCALE,
                 rod_thickness: int = constants.ROD_THICKNESS, marker_radius: float = constants.MARKER_RADIUS,
                 rod_color: tuple = constants.ROD_COLOR, background_color: tuple = constants.BACKGROUND_COLOR):
        self.screen_height = screen_height
        self.scale = scale
        self.rod_thickness = rod_thickness
        self.marker_radius = marker_radius
        self.rod_color = rod_color
        self.background_color = background_color
        self._reported_non_finite = set()

    @property
    def marker_radius_pixels(self) -> int:
        return max(1, int(round(self.marker_radius * self.scale)))

    def world_to_screen(self, x: float, y: float) -> tuple:
        return (x * self.scale, self.screen_height - y * self.scale)

    def build_geometry(self, population) -> list:
        """
        Builds screen-space rods and markers for every pendulum, in draw order.
        Pendulums with non-finite state are skipped.
        """
        skip = population.non_finite_mask()
        geometry = []
        for index in population.draw_order:
            index = int(index)
            if skip[index]:
                if index not in self._reported_non_finite:
                    logger.warning(f"Pendulum {index} has non-finite state and will not be drawn.")
                    self._reported_non_finite.add(index)
                continue

            origin = population.origins[index]
            pivot = self.world_to_screen(origin[0], origin[1])
            joint = self.world_to_screen(*(origin + population.joint_positions[index]))
            end = self.world_to_screen(*(origin + population.end_positions[index]))
            color = tuple(int(c) for c in population.colors[index])

            geometry.append(PendulumGeometry(
                index=index,
                rods=((pivot, joint), (joint, end)),
                markers=((joint, color), (end, color)),
            ))
        return geometry

    def draw(self, surface: pygame.Surface, population):
        """
        Draws all pendulums. Every rod is drawn before any marker so the
        markers always sit on top.
        """
        surface.fill(self.background_color)
        geometry = self.build_geometry(population)

        for item in geometry:
            for start, end in item.rods:
                pygame.draw.line(surface, self.rod_color, _to_pixel(start), _to_pixel(end), self.rod_thickness)

        radius = self.marker_radius_pixels
        for item in geometry:
            for center, color in item.markers:
                pygame.draw.circle(surface, color, _to_pixel(center), radius)


def _to_pixel(point) -> tuple:
    return (int(np.rint(point[0])), int(np.rint(point[1])))
