# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as window
properties, tick cadence or the default random ranges entities are drawn
from, and are not part of the experimental configuration in config.json.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a fixed-size window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 1400
WINDOW_HEIGHT = 900
WINDOW_TITLE = "Spire"
BACKGROUND_COLOR = (0, 0, 0)

# Distance between the window edge and the arena bounds, in pixels.
ARENA_MARGIN = 35.0

# --- Tick Cadence ---
# The simulation and the renderer run on independent clocks.
UPDATE_TICK_MS = 25
RENDER_TICK_MS = 15

# --- Focal Point ---
DEFAULT_FOCAL_STRENGTH = 0.07
# Amount the +/- keys change the focal strength by.
FOCAL_STRENGTH_STEP = 0.005

# Strength of the inward push an entity receives when it hits a wall.
# 0.0 disables the push and leaves only the random re-target.
BOUNDARY_PUSH_STRENGTH = 1.0

# Lengths below this are treated as zero when normalizing.
EPSILON = 1e-9

# --- Entity Defaults ---
# Per-channel RGBA ranges entity colors are drawn from (max is exclusive).
ENTITY_COLOR_MIN = (15, 0, 0, 10)
ENTITY_COLOR_MAX = (255, 25, 185, 100)
ENTITY_SIZE_RANGE = (1.0, 6.0)

# --- UI ---
UI_FONT_SIZE = 25
UI_HINT_FONT_SIZE = 22
UI_OFFSET = 15
UI_TEXT_COLOR = (255, 255, 255)
CURSOR_RADIUS = 4
CURSOR_FILL_COLOR = (33, 33, 33, 150)
CURSOR_OUTLINE_COLOR = (200, 200, 210)
CURSOR_OUTLINE_WIDTH = 2

# --- Speed Color Mapping ---
# Defines the color spectrum used when color mapping is enabled, as a series
# of keyframes. Each keyframe is a tuple: (normalized_speed, (R, G, B)).
SPEED_GRADIENT_KEYFRAMES = [
    (0.0,   (40, 0, 90)),        # Deep Purple
    (0.25,  (0, 60, 255)),       # Blue
    (0.5,   (0, 220, 200)),      # Teal
    (0.75,  (255, 200, 0)),      # Gold
    (1.0,   (255, 40, 40))       # Red
]
