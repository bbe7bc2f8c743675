# world.py
"""
Owns the entity population and the arena it lives in.

This module defines the World class, which creates every entity at start-up,
advances them all once per tick and applies the focal force field the host
controls with the mouse. It also provides the linear remap the host uses to
turn window coordinates into arena coordinates.
"""
import logging
import numpy as np
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

from constants import (
    BOUNDARY_PUSH_STRENGTH, DEFAULT_FOCAL_STRENGTH, ENTITY_COLOR_MIN,
    ENTITY_COLOR_MAX, ENTITY_SIZE_RANGE
)
from entity import Bounds, Entity, EntityBatch

# --- Data Contracts ---
#
# class World:
#   - __init__(self, count, acceleration_range, max_speed_range, bounds, rng=None, spawn_point=None, ...):
#     - Inputs:
#       - count: int >= 0, number of entities.
#       - acceleration_range: (low, high) with low <= high.
#       - max_speed_range: (low, high) with low <= high.
#       - bounds: (min_x, min_y, max_x, max_y) with min < max on both axes.
#       - rng: numpy.random.Generator. A fresh unseeded one if omitted.
#       - spawn_point: optional (x, y). All entities start there when given,
#         otherwise positions are uniform inside bounds.
#     - Side Effects: Raises ValueError on invalid parameters.
#     - Invariants: The entity count and bounds never change.
#
#   - update(self, color_mapping: bool = False) -> None:
#     - Side Effects: Advances every entity by one tick.
#
#   - set_entity_focus_point(self, origin, inverse: bool, strength: float) -> None:
#     - Side Effects: Attracts (or repels if inverse) every entity toward origin.
#
#   - map(value, in_start, in_stop, out_start, out_stop) -> float:
#     - Pure linear remap. No clamping.

class World:
    """
    A bounded arena holding a fixed population of entities.
    """
    def __init__(
        self,
        count: int,
        acceleration_range: Tuple[float, float],
        max_speed_range: Tuple[float, float],
        bounds: Bounds,
        rng: Optional[np.random.Generator] = None,
        spawn_point: Optional[Sequence[float]] = None,
        boundary_push_strength: float = BOUNDARY_PUSH_STRENGTH,
        color_min: Sequence[int] = ENTITY_COLOR_MIN,
        color_max: Sequence[int] = ENTITY_COLOR_MAX,
        size_range: Tuple[float, float] = ENTITY_SIZE_RANGE,
    ):
        """
        Initializes the world and populates it.

        Args:
            count (int): Number of entities to create.
            acceleration_range (Tuple[float, float]): Range the per-entity
                acceleration scalar is drawn from.
            max_speed_range (Tuple[float, float]): Range the per-entity
                speed cap is drawn from.
            bounds (Bounds): (min_x, min_y, max_x, max_y) of the arena.
            rng (np.random.Generator): Source of all randomness.
            spawn_point (Sequence[float]): Common start position, if any.
            boundary_push_strength (float): Inward push on a wall hit.
                0.0 leaves only the random re-target.
        """
        self._validate(count, acceleration_range, max_speed_range, bounds, color_min, color_max, size_range)

        self.rng = rng if rng is not None else np.random.default_rng()
        self._bounds = tuple(float(b) for b in bounds)
        min_x, min_y, max_x, max_y = self._bounds

        if spawn_point is None:
            positions = self.rng.uniform(low=[min_x, min_y], high=[max_x, max_y], size=(count, 2))
        else:
            positions = np.tile(np.asarray(spawn_point, dtype=np.float64), (count, 1))
        accelerations = self.rng.uniform(acceleration_range[0], acceleration_range[1], size=count)
        max_speeds = self.rng.uniform(max_speed_range[0], max_speed_range[1], size=count)

        self._batch = EntityBatch(
            positions, accelerations, max_speeds, self.rng,
            color_min=color_min, color_max=color_max, size_range=size_range,
            push_strength=boundary_push_strength
        )
        self._entities = tuple(Entity.from_batch(self._batch, i) for i in range(count))

        logging.info(
            f"World initialized with {count} entities in bounds {self._bounds}."
        )
        logging.debug(
            f"Acceleration range: {tuple(acceleration_range)}, "
            f"max speed range: {tuple(max_speed_range)}, "
            f"spawn point: {spawn_point}, boundary push: {self.boundary_push_strength}"
        )

    @classmethod
    def from_config(cls, params: Dict[str, Any], bounds: Bounds) -> "World":
        """
        Builds a World from the "simulation_parameters" config section.

        All randomness is controlled by params["seed"]; a missing or null
        seed gives a non-reproducible run.
        """
        seed = params.get('seed')
        return cls(
            count=params.get('entity_count', 1000),
            acceleration_range=tuple(params.get('acceleration_range', (0.35, 0.5))),
            max_speed_range=tuple(params.get('max_speed_range', (5.0, 12.5))),
            bounds=bounds,
            rng=np.random.default_rng(seed),
            spawn_point=params.get('spawn_point'),
            boundary_push_strength=params.get('boundary_push_strength', BOUNDARY_PUSH_STRENGTH),
            color_min=tuple(params.get('color_min', ENTITY_COLOR_MIN)),
            color_max=tuple(params.get('color_max', ENTITY_COLOR_MAX)),
            size_range=tuple(params.get('size_range', ENTITY_SIZE_RANGE)),
        )

    @staticmethod
    def _validate(count, acceleration_range, max_speed_range, bounds, color_min, color_max, size_range):
        problems = []
        if count < 0:
            problems.append(f"entity count must be non-negative, got {count}")
        for name, (low, high) in (
            ("acceleration_range", acceleration_range),
            ("max_speed_range", max_speed_range),
            ("size_range", size_range),
        ):
            if low > high:
                problems.append(f"{name} low {low} is greater than high {high}")
        if len(bounds) != 4:
            problems.append(f"bounds must be (min_x, min_y, max_x, max_y), got {bounds}")
        elif bounds[0] >= bounds[2] or bounds[1] >= bounds[3]:
            problems.append(f"bounds {tuple(bounds)} are empty")
        if len(color_min) != 4 or len(color_max) != 4:
            problems.append("color ranges must have four RGBA channels")
        elif any(low >= high for low, high in zip(color_min, color_max)):
            problems.append(f"color_min {tuple(color_min)} must be below color_max {tuple(color_max)} on every channel")

        if problems:
            msg = "Configuration error: " + "; ".join(problems) + "."
            logging.critical(msg)
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    @property
    def entities(self) -> Tuple[Entity, ...]:
        return self._entities

    @property
    def batch(self) -> EntityBatch:
        """The array storage behind the entities, for bulk readers like the renderer."""
        return self._batch

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def boundary_push_strength(self) -> float:
        """Inward push on a wall hit, held by the batch so entity handles share it."""
        return self._batch.push_strength

    @property
    def center(self) -> Tuple[float, float]:
        min_x, min_y, max_x, max_y = self._bounds
        return ((min_x + max_x) / 2.0, (min_y + max_y) / 2.0)

    def update(self, color_mapping: bool = False) -> None:
        """
        Executes one simulation tick for every entity.
        """
        self._batch.update(self._bounds, color_mapping)

    def set_entity_focus_point(self, origin, inverse: bool, strength: float = DEFAULT_FOCAL_STRENGTH) -> None:
        """
        Pulls every entity toward origin, or pushes it away if inverse is set.

        The force direction also becomes each entity's steering target, which
        is how a held focal point bends the random walk.
        """
        self._batch.apply_focus_point(origin, inverse, strength)

    def average_speed(self) -> float:
        if not self._entities:
            return 0.0
        return float(np.mean(np.linalg.norm(self._batch.velocities, axis=1)))

    @staticmethod
    def map(value: float, in_start: float, in_stop: float, out_start: float, out_stop: float) -> float:
        """Linearly remaps value from [in_start, in_stop] to [out_start, out_stop]."""
        return ((value - in_start) / (in_stop - in_start)) * (out_stop - out_start) + out_start
