# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework.
These are not expected to change between simulation runs.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions
WIDTH = 1000  # Pixels
HEIGHT = 1000  # Pixels

# Framerate cap (0 disables the cap)
FPS = 60  # Frames per second

# Scale of 1 metre in pixels
SCALE = WIDTH / 4.5

# Gravitational acceleration
GRAVITY = 9.81  # m/s^2

# Colors (RGB)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
GREY = (150, 150, 150)

BACKGROUND_COLOR = GREY
ROD_COLOR = BLACK

# Window Title
TITLE = "Double Pendulum"

# Pendulum geometry used for drawing only
ROD_THICKNESS = 5  # Pixels, not metres
MARKER_RADIUS = 0.04  # Metres

# Color seeding frequencies (full cycles across the population)
COLOR_FREQUENCY_R = 5.0
COLOR_FREQUENCY_G = 7.0
COLOR_FREQUENCY_B = 11.0
