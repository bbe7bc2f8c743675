# entity.py
"""
Manages the kinematic and visual state of the simulated entities.

This module defines two classes:

- EntityBatch, which stores the state of many entities in NumPy arrays
  (one row per entity) and advances them with Numba-jitted kernels.
- Entity, a handle on a single row of a batch. A standalone Entity owns a
  private batch of one row, so every entity runs through the same kernels
  whether it lives inside a World or on its own.

Steering is kept in two fields instead of one: a wander direction written by
the random walk and a force direction written by external forces. The
combination rule is simple: the most recent writer wins.

    target_direction = force_direction if steer_by_force else wander_direction

set_random_target() writes the wander direction and clears steer_by_force,
apply_force() writes the force direction and sets it.
"""
import logging
import numpy as np
from numba import jit, prange
from typing import Optional, Sequence, Tuple

from constants import (
    BOUNDARY_PUSH_STRENGTH, ENTITY_COLOR_MIN, ENTITY_COLOR_MAX,
    ENTITY_SIZE_RANGE, SPEED_GRADIENT_KEYFRAMES
)
from utils import _safe_unit, safe_unit_vector, safe_unit_vectors

Bounds = Tuple[float, float, float, float]

# --- Data Contracts ---
#
# class EntityBatch:
#   - __init__(self, positions, accelerations, max_speeds, rng, target_directions=None, ...):
#     - Inputs:
#       - positions: array-like of shape (N, 2).
#       - accelerations, max_speeds: array-like of shape (N,).
#       - rng: numpy.random.Generator used for every random draw.
#       - target_directions: optional array-like of shape (N, 2). Drawn
#         uniformly in [-1, 1) per axis when omitted.
#     - Side Effects: Draws colors and sizes from rng.
#     - Invariants:
#       - positions, velocities, wander_directions, force_directions are
#         float64 arrays of shape (N, 2).
#       - accelerations, max_speeds, sizes are float64 arrays of shape (N,).
#       - base_colors, colors are uint8 arrays of shape (N, 4) (RGBA).
#       - steer_by_force is a bool array of shape (N,).
#       - N never changes after construction.
#
#   - update(self, bounds, color_mapping=False, push_strength=None, rows=slice(None)) -> None:
#     - Inputs:
#       - push_strength: overrides self.push_strength for this call when
#         not None.
#     - Side Effects: Advances the selected rows by one tick.
#     - Invariants: The upper clamp at max_speed runs before the wall step.
#       An axis that hits a wall is reflected (and pushed) after the clamp,
#       so it can leave the tick above max_speed. Axes that do not hit a
#       wall end the tick <= max_speed. Negative components are never
#       clamped.
#
#   - apply_focus_point(self, origin, inverse, strength) -> None:
#     - Side Effects: Applies an attraction (or repulsion if inverse) force
#       toward origin to every row. Rows exactly on origin are skipped.

@jit(nopython=True, parallel=True)
def _update_entities_numba(
    positions, velocities, accelerations, max_speeds, sizes,
    wander_directions, force_directions, steer_by_force, retargets,
    min_x, min_y, max_x, max_y, push_strength
):
    """
    Numba-jitted per-tick kinematic step for every row of the given arrays.

    The order of operations per entity is fixed:
    1. Integrate the steering target into the velocity.
    2. Clamp each velocity axis from above at max_speed.
    3. Per axis, on a wall hit: reflect that velocity axis, re-target from
       the pre-drawn random candidates and push toward the arena centre.
    4. Integrate the velocity into the position.

    retargets has shape (N, 2, 2): retargets[i, 0] is the wander direction
    used on an x-axis hit, retargets[i, 1] the one used on a y-axis hit.
    Drawing them up front keeps the loop free of shared random state.
    """
    center_x = (min_x + max_x) / 2.0
    center_y = (min_y + max_y) / 2.0

    for i in prange(positions.shape[0]):
        px = positions[i, 0]
        py = positions[i, 1]
        vx = velocities[i, 0]
        vy = velocities[i, 1]

        if steer_by_force[i]:
            tx = force_directions[i, 0]
            ty = force_directions[i, 1]
        else:
            tx = wander_directions[i, 0]
            ty = wander_directions[i, 1]

        # 1. Euler step, no decay
        vx += tx * accelerations[i]
        vy += ty * accelerations[i]

        # 2. Upper bound only
        if vx >= max_speeds[i]:
            vx = max_speeds[i]
        if vy >= max_speeds[i]:
            vy = max_speeds[i]

        # 3. Wall collisions, each axis on its own
        for axis in range(2):
            if axis == 0:
                hit = px <= min_x or px + sizes[i] >= max_x
            else:
                hit = py <= min_y or py + sizes[i] >= max_y
            if not hit:
                continue

            if axis == 0:
                vx = -vx
            else:
                vy = -vy

            wander_directions[i, 0] = retargets[i, axis, 0]
            wander_directions[i, 1] = retargets[i, axis, 1]
            steer_by_force[i] = False

            if push_strength != 0.0:
                ux, uy, ok = _safe_unit(center_x - px, center_y - py)
                if ok:
                    vx += ux * push_strength
                    vy += uy * push_strength
                    force_directions[i, 0] = ux
                    force_directions[i, 1] = uy
                    steer_by_force[i] = True

        # 4. Position is never corrected, only the velocity sign
        positions[i, 0] = px + vx
        positions[i, 1] = py + vy
        velocities[i, 0] = vx
        velocities[i, 1] = vy

@jit(nopython=True, parallel=True)
def _apply_focus_numba(
    positions, velocities, force_directions, steer_by_force,
    origin_x, origin_y, sign, strength
):
    """
    Numba-jitted focal force field.

    Each entity is pushed along the unit vector pointing from itself to the
    origin, multiplied by sign (+1 attracts, -1 repels). Entities sitting on
    the origin have no defined direction and are left untouched.
    """
    for i in prange(positions.shape[0]):
        ux, uy, ok = _safe_unit(origin_x - positions[i, 0], origin_y - positions[i, 1])
        if not ok:
            continue
        dx = sign * ux
        dy = sign * uy
        velocities[i, 0] += dx * strength
        velocities[i, 1] += dy * strength
        force_directions[i, 0] = dx
        force_directions[i, 1] = dy
        steer_by_force[i] = True

def speed_gradient_colors(normalized_speeds: np.ndarray) -> np.ndarray:
    """
    Maps normalized speeds in [0, 1] onto SPEED_GRADIENT_KEYFRAMES.

    Returns a uint8 array of shape (N, 3).
    """
    stops = np.array([key for key, _ in SPEED_GRADIENT_KEYFRAMES], dtype=np.float64)
    palette = np.array([rgb for _, rgb in SPEED_GRADIENT_KEYFRAMES], dtype=np.float64)
    rgb = np.stack(
        [np.interp(normalized_speeds, stops, palette[:, c]) for c in range(3)],
        axis=1
    )
    return np.rint(rgb).astype(np.uint8)

class EntityBatch:
    """
    A container for many entities, managing their state via NumPy arrays.
    """
    def __init__(
        self,
        positions,
        accelerations,
        max_speeds,
        rng: np.random.Generator,
        target_directions=None,
        color_min: Sequence[int] = ENTITY_COLOR_MIN,
        color_max: Sequence[int] = ENTITY_COLOR_MAX,
        size_range: Tuple[float, float] = ENTITY_SIZE_RANGE,
        push_strength: float = BOUNDARY_PUSH_STRENGTH,
    ):
        self.rng = rng
        # Inward push on a wall hit, shared by every row of the batch.
        self.push_strength = float(push_strength)
        self.positions =np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.count = self.positions.shape[0]

        self.velocities = np.zeros((self.count, 2), dtype=np.float64)
        self.accelerations = np.array(accelerations, dtype=np.float64).reshape(self.count)
        self.max_speeds = np.array(max_speeds, dtype=np.float64).reshape(self.count)

        if target_directions is None:
            self.wander_directions = self.rng.uniform(-1.0, 1.0, size=(self.count, 2))
        else:
            self.wander_directions = np.array(target_directions, dtype=np.float64).reshape(self.count, 2)
        self.force_directions = np.zeros((self.count, 2), dtype=np.float64)
        self.steer_by_force = np.zeros(self.count, dtype=np.bool_)

        self.base_colors = self.rng.integers(
            low=np.asarray(color_min),
            high=np.asarray(color_max),
            size=(self.count, 4)
        ).astype(np.uint8)
        self.colors = self.base_colors.copy()
        self.sizes = self.rng.uniform(size_range[0], size_range[1], size=self.count)

    @property
    def target_directions(self) -> np.ndarray:
        """The effective steering target of every row."""
        return np.where(self.steer_by_force[:, np.newaxis], self.force_directions, self.wander_directions)

    @property
    def headings(self) -> np.ndarray:
        """Normalized target directions, zero rows where the target has no length."""
        return safe_unit_vectors(self.target_directions)

    def update(
        self,
        bounds: Bounds,
        color_mapping: bool = False,
        push_strength: Optional[float] = None,
        rows: slice = slice(None),
    ) -> None:
        """
        Advances the selected rows by one tick.

        Args:
            bounds (Bounds): (min_x, min_y, max_x, max_y) of the arena.
            color_mapping (bool): Derive display colors from speed.
            push_strength (float): Inward push applied on a wall hit.
                Defaults to the batch's push_strength.
            rows (slice): The rows to advance. Defaults to all of them.
        """
        if push_strength is None:
            push_strength = self.push_strength
        min_x, min_y, max_x, max_y = (float(b) for b in bounds)
        positions = self.positions[rows]
        retargets = self.rng.uniform(-1.0, 1.0, size=(positions.shape[0], 2, 2))

        _update_entities_numba(
            positions, self.velocities[rows], self.accelerations[rows],
            self.max_speeds[rows], self.sizes[rows],
            self.wander_directions[rows], self.force_directions[rows],
            self.steer_by_force[rows], retargets,
            min_x, min_y, max_x, max_y, float(push_strength)
        )
        self._refresh_colors(rows, color_mapping)

    def _refresh_colors(self, rows: slice, color_mapping: bool) -> None:
        if not color_mapping:
            self.colors[rows] = self.base_colors[rows]
            return

        speeds = np.linalg.norm(self.velocities[rows], axis=1)
        max_speeds = self.max_speeds[rows]
        normalized = np.divide(
            speeds, max_speeds, out=np.ones_like(speeds), where=max_speeds > 0
        )
        self.colors[rows, :3] = speed_gradient_colors(np.clip(normalized, 0.0, 1.0))
        self.colors[rows, 3] = self.base_colors[rows, 3]

    def set_random_target(self, rows: slice = slice(None)) -> None:
        """Redraws the wander direction of the selected rows in [-1, 1)."""
        count = self.positions[rows].shape[0]
        self.wander_directions[rows] = self.rng.uniform(-1.0, 1.0, size=(count, 2))
        self.steer_by_force[rows] = False

    def apply_force(self, direction, strength: float, rows: slice = slice(None)) -> None:
        """Adds direction * strength to the velocity and steers along direction."""
        direction = np.asarray(direction, dtype=np.float64)
        self.velocities[rows] += direction * strength
        self.force_directions[rows] = direction
        self.steer_by_force[rows] = True

    def apply_focus_point(self, origin, inverse: bool, strength: float) -> None:
        """Applies the focal force field to every row."""
        sign = -1.0 if inverse else 1.0
        _apply_focus_numba(
            self.positions, self.velocities, self.force_directions, self.steer_by_force,
            float(origin[0]), float(origin[1]), sign, float(strength)
        )

class Entity:
    """
    A single simulated particle.

    An Entity is a view on one row of an EntityBatch; every accessor reads or
    writes that row in place.
    """
    def __init__(
        self,
        position,
        acceleration: float,
        max_speed: float,
        target_direction=None,
        rng: Optional[np.random.Generator] = None,
        color_min: Sequence[int] = ENTITY_COLOR_MIN,
        color_max: Sequence[int] = ENTITY_COLOR_MAX,
        size_range: Tuple[float, float] = ENTITY_SIZE_RANGE,
        push_strength: float = BOUNDARY_PUSH_STRENGTH,
    ):
        if rng is None:
            rng = np.random.default_rng()
        batch = EntityBatch(
            [position], [acceleration], [max_speed], rng,
            target_directions=None if target_direction is None else [target_direction],
            color_min=color_min, color_max=color_max, size_range=size_range,
            push_strength=push_strength
        )
        self._bind(batch, 0)
        logging.debug(
            f"Entity created: pos={self.position}, acceleration={acceleration}, "
            f"max_speed={max_speed}, size={self.size:.2f}"
        )

    @classmethod
    def from_batch(cls, batch: EntityBatch, index: int) -> "Entity":
        """Creates a handle on row `index` of an existing batch."""
        entity = cls.__new__(cls)
        entity._bind(batch, index)
        return entity

    def _bind(self, batch: EntityBatch, index: int) -> None:
        self._batch = batch
        self._index = index
        self._rows = slice(index, index + 1)

    def __repr__(self):
        return (
            f"Entity(position={self.position.tolist()}, "
            f"velocity={self.velocity.tolist()}, size={self.size:.2f})"
        )

    @property
    def position(self) -> np.ndarray:
        return self._batch.positions[self._index]

    @position.setter
    def position(self, value) -> None:
        self._batch.positions[self._index] = value

    @property
    def velocity(self) -> np.ndarray:
        return self._batch.velocities[self._index]

    @velocity.setter
    def velocity(self, value) -> None:
        self._batch.velocities[self._index] = value

    @property
    def acceleration(self) -> float:
        return float(self._batch.accelerations[self._index])

    @property
    def max_speed(self) -> float:
        return float(self._batch.max_speeds[self._index])

    @property
    def size(self) -> float:
        return float(self._batch.sizes[self._index])

    @property
    def color(self) -> Tuple[int, int, int, int]:
        """The RGBA color to draw with, speed-mapped if enabled on the last update."""
        return tuple(int(c) for c in self._batch.colors[self._index])

    @property
    def base_color(self) -> Tuple[int, int, int, int]:
        return tuple(int(c) for c in self._batch.base_colors[self._index])

    @property
    def target_direction(self) -> np.ndarray:
        if self._batch.steer_by_force[self._index]:
            return self._batch.force_directions[self._index].copy()
        return self._batch.wander_directions[self._index].copy()

    @property
    def heading(self) -> np.ndarray:
        """The normalized target direction, or a zero vector if it has no length."""
        unit, _ = safe_unit_vector(self.target_direction)
        return unit

    @property
    def angle(self) -> float:
        """Heading in degrees, counter-clockwise from the +x axis."""
        heading = self.heading
        return float(np.degrees(np.arctan2(heading[1], heading[0])))

    def update(
        self,
        bounds: Bounds,
        color_mapping: bool = False,
        push_strength: Optional[float] = None,
    ) -> None:
        """
        Advances this entity by one tick.

        Without an explicit push_strength the wall push of the owning batch
        is used, so a handle from World.entities moves exactly as it would
        under World.update.
        """
        self._batch.update(bounds, color_mapping, push_strength, rows=self._rows)

    def set_random_target(self) -> None:
        self._batch.set_random_target(rows=self._rows)

    def apply_force(self, direction, strength: float) -> None:
        """
        Adds direction * strength to the velocity.

        The direction also becomes the steering target, so the entity keeps
        accelerating along it until the next wall hit or force.
        """
        self._batch.apply_force(direction, strength, rows=self._rows)

    def push_towards_position(self, point, strength: float) -> None:
        """Applies a force of the given strength toward point. No-op when on point."""
        offset = np.asarray(point, dtype=np.float64) - self.position
        unit, ok = safe_unit_vector(offset)
        if not ok:
            return
        self.apply_force(unit, strength)
