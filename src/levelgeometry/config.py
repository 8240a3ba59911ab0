"""
Configuration & Global Constants
================================
This module serves as the central registry for numeric tolerances and the
editor preferences the geometry core reads.

Why is this file needed?
------------------------
1. Consistency: every tolerance-based comparison in the geometry stack uses
   the same constants, so simplicity checks and cuts agree with each other.
2. Ownership: rendering preferences belong to the editor, not to the
   geometry core. The core only reads `rendering_settings`.

Exports:
    TOLERANCE (float): Generic tolerance for angle and length comparisons.
    BUFFER_DISTANCE (float): Negative buffer applied to symmetric differences.
    rendering_settings (RenderingSettings): Externally-owned rendering flags.
    editor_settings (EditorSettings): Interactive tool defaults.
"""
import math
from dataclasses import dataclass

# Global Constants
TOLERANCE: float = 0.00000001
DEG_TO_RAD: float = math.pi / 180
RAD_TO_DEG: float = 180 / math.pi

# Strips zero-area slivers the boolean backend leaves behind
BUFFER_DISTANCE: float = -1e-10

DUPLICATE_VERTEX_DISTANCE_SQUARED: float = 1e-16


@dataclass
class RenderingSettings:
    """Rendering flags owned by the editor front-end."""
    # When False, the closing edge of a grass polygon is not a real edge for hit-testing
    show_inactive_grass_edges: bool = True


@dataclass
class EditorSettings:
    capture_radius: float = 0.015
    cut_radius: float = 0.005


rendering_settings = RenderingSettings()
editor_settings = EditorSettings()
