import math

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from constants import SPEED_GRADIENT_KEYFRAMES
from entity import Entity, EntityBatch, speed_gradient_colors

ARENA = (0.0, 0.0, 100.0, 100.0)


def _still_entity(position, velocity=(0.0, 0.0), max_speed=10.0, size=1.0, seed=0):
    """An entity that does not accelerate on its own."""
    entity = Entity(
        position, 0.0, max_speed,
        target_direction=(0.0, 0.0),
        rng=np.random.default_rng(seed),
        size_range=(size, size),
    )
    entity.velocity = velocity
    return entity


def test_new_entity_draws_from_default_ranges():
    entity = Entity((10.0, 20.0), 0.4, 6.0, rng=np.random.default_rng(1))

    assert_array_equal(entity.position, [10.0, 20.0])
    assert_array_equal(entity.velocity, [0.0, 0.0])
    assert entity.acceleration == 0.4
    assert entity.max_speed == 6.0

    r, g, b, a = entity.color
    assert 15 <= r < 255
    assert 0 <= g < 25
    assert 0 <= b < 185
    assert 10 <= a < 100
    assert entity.color == entity.base_color
    assert 1.0 <= entity.size < 6.0
    assert np.all(entity.target_direction >= -1.0)
    assert np.all(entity.target_direction < 1.0)


def test_explicit_target_direction_is_kept():
    entity = Entity((0.0, 0.0), 0.4, 6.0, target_direction=(0.25, -0.5), rng=np.random.default_rng(1))
    assert_array_equal(entity.target_direction, [0.25, -0.5])


def test_velocity_is_clamped_from_above_only():
    entity = Entity(
        (50.0, 50.0), 1.0, 2.0,
        target_direction=(1.0, -1.0),
        rng=np.random.default_rng(0),
        size_range=(1.0, 1.0),
    )
    for _ in range(5):
        entity.update((0.0, 0.0, 1000.0, 1000.0))

    assert entity.velocity[0] == 2.0
    assert entity.velocity[1] == -5.0
    assert_allclose(entity.position, [50.0 + 1 + 2 * 4, 50.0 - 15.0])


def test_min_wall_reflects_only_that_axis():
    entity = _still_entity((0.0, 50.0), velocity=(-3.0, 2.0))
    entity.update(ARENA, push_strength=0.0)

    assert_array_equal(entity.velocity, [3.0, 2.0])
    assert_array_equal(entity.position, [3.0, 52.0])


def test_far_wall_check_includes_size():
    entity = _still_entity((95.0, 50.0), velocity=(4.0, -1.0), size=5.0)
    entity.update(ARENA, push_strength=0.0)

    assert_array_equal(entity.velocity, [-4.0, -1.0])


def test_entity_short_of_far_wall_is_not_reflected():
    entity = _still_entity((90.0, 50.0), velocity=(4.0, -1.0), size=5.0)
    entity.update(ARENA, push_strength=0.0)

    assert_array_equal(entity.velocity, [4.0, -1.0])
    assert_array_equal(entity.target_direction, [0.0, 0.0])


def test_corner_hit_reflects_both_axes():
    entity = _still_entity((0.0, 0.0), velocity=(-1.0, -2.0))
    entity.update(ARENA, push_strength=0.0)

    assert_array_equal(entity.velocity, [1.0, 2.0])


def test_corner_hit_adds_both_pushes_and_steers_along_the_last():
    entity = _still_entity((0.0, 0.0), velocity=(-1.0, -2.0))
    entity.update(ARENA, push_strength=1.0)

    # Each axis is reflected and pushed toward (50, 50) along the diagonal.
    half_root = math.sqrt(0.5)
    assert_allclose(entity.velocity, [1.0 + math.sqrt(2.0), 2.0])
    assert_allclose(entity.target_direction, [half_root, half_root])


def test_reflected_axis_can_exceed_max_speed():
    entity = _still_entity((0.0, 50.0), velocity=(-9.0, 5.0), max_speed=2.0)
    entity.update(ARENA, push_strength=0.0)

    # The clamp runs before the wall step: y is capped, x is reflected after it.
    assert_array_equal(entity.velocity, [9.0, 2.0])


def test_wall_hit_redraws_the_wander_target():
    entity = _still_entity((0.0, 50.0), velocity=(-1.0, 0.0))
    entity.update(ARENA, push_strength=0.0)

    target = entity.target_direction
    assert not np.array_equal(target, [0.0, 0.0])
    assert np.all(target >= -1.0) and np.all(target < 1.0)


def test_wall_hit_pushes_toward_arena_center():
    entity = _still_entity((0.0, 50.0), velocity=(-3.0, 0.0))
    entity.update(ARENA, push_strength=1.0)

    # Reflected to +3, then pushed one unit toward (50, 50).
    assert_array_equal(entity.velocity, [4.0, 0.0])
    assert_array_equal(entity.target_direction, [1.0, 0.0])
    assert_array_equal(entity.position, [4.0, 50.0])


def test_apply_force_adds_velocity_and_steers():
    entity = Entity((50.0, 50.0), 0.5, 10.0, target_direction=(0.5, 0.5), rng=np.random.default_rng(3))
    entity.apply_force((0.0, 1.0), 2.0)

    assert_array_equal(entity.velocity, [0.0, 2.0])
    assert_array_equal(entity.target_direction, [0.0, 1.0])

    # The force direction keeps driving the entity on the next tick.
    entity.update(ARENA)
    assert_allclose(entity.velocity, [0.0, 2.5])


def test_random_target_replaces_force_direction():
    entity = Entity((50.0, 50.0), 0.5, 10.0, rng=np.random.default_rng(3))
    entity.apply_force((0.0, 1.0), 1.0)
    entity.set_random_target()

    target = entity.target_direction
    assert not np.array_equal(target, [0.0, 1.0])
    assert np.all(target >= -1.0) and np.all(target < 1.0)


def test_push_towards_position_uses_unit_direction():
    entity = _still_entity((0.0, 0.0))
    entity.push_towards_position((3.0, 4.0), 5.0)

    assert_allclose(entity.velocity, [3.0, 4.0])
    assert_allclose(entity.target_direction, [0.6, 0.8])


def test_push_towards_own_position_is_a_noop():
    entity = _still_entity((7.0, 7.0), velocity=(1.0, -1.0))
    entity.push_towards_position((7.0, 7.0), 1.0)

    assert_array_equal(entity.velocity, [1.0, -1.0])
    assert_array_equal(entity.target_direction, [0.0, 0.0])
    entity.update(ARENA)
    assert np.all(np.isfinite(entity.position))
    assert np.all(np.isfinite(entity.velocity))


def test_heading_and_angle():
    entity = Entity((0.0, 0.0), 0.1, 1.0, target_direction=(0.0, 2.0), rng=np.random.default_rng(0))
    assert_allclose(entity.heading, [0.0, 1.0])
    assert math.isclose(entity.angle, 90.0)

    still = _still_entity((0.0, 0.0))
    assert_array_equal(still.heading, [0.0, 0.0])


def test_color_mapping_follows_speed():
    entity = _still_entity((50.0, 50.0), max_speed=4.0)
    base_alpha = entity.base_color[3]

    entity.update(ARENA, color_mapping=True)
    assert entity.color == SPEED_GRADIENT_KEYFRAMES[0][1] + (base_alpha,)

    entity.velocity = (10.0, 0.0)
    entity.update(ARENA, color_mapping=True)
    assert entity.velocity[0] == 4.0
    assert entity.color == SPEED_GRADIENT_KEYFRAMES[-1][1] + (base_alpha,)

    entity.update(ARENA, color_mapping=False)
    assert entity.color == entity.base_color


def test_speed_gradient_hits_keyframes():
    stops = np.array([key for key, _ in SPEED_GRADIENT_KEYFRAMES])
    colors = speed_gradient_colors(stops)

    assert colors.dtype == np.uint8
    for row, (_, rgb) in zip(colors, SPEED_GRADIENT_KEYFRAMES):
        assert tuple(int(c) for c in row) == rgb


def test_batch_rows_are_shared_with_entity_handles():
    rng = np.random.default_rng(5)
    batch = EntityBatch([(1.0, 1.0), (2.0, 2.0)], [0.1, 0.2], [3.0, 4.0], rng)
    second = Entity.from_batch(batch, 1)

    second.apply_force((1.0, 0.0), 0.5)

    assert_array_equal(batch.velocities, [[0.0, 0.0], [0.5, 0.0]])
    assert_array_equal(batch.target_directions[1], [1.0, 0.0])
    assert not batch.steer_by_force[0]
