import math
import random

import pytest

from creaturesim.components import Circle, Movement, RicochetTag, Wander
from creaturesim.physics import (
    ClosestObstacle,
    CollisionEvent,
    DebugCollisionEventSystem,
    WanderSystem,
    closest_obstacle_system,
    closest_wall,
    collision_system,
    debug_bounds_system,
    debug_collider_system,
    enforce_bounds_system,
    movement_system,
    ricochet_system,
)
from creaturesim.resources import DebugLines, WorldBounds
from creaturesim.world import Time, Transform, Vector3, World


def _transform(x, y):
    return Transform(translation=Vector3(x, y, 0.0))


def _world(delta=0.5):
    world = World()
    world.add_resource(Time(delta_real_seconds=delta))
    world.add_resource(WorldBounds(-10.0, 10.0, -5.0, 5.0))
    return world


def test_movement_caps_speed():
    world = _world()
    movement = Movement(velocity=Vector3(30.0, 40.0, 0.0), max_movement_speed=2.0)
    world.create_entity(movement, _transform(0.0, 0.0))
    movement_system(world)
    assert movement.velocity.magnitude() == pytest.approx(movement.max_movement_speed)


def test_movement_moves_by_velocity_times_delta():
    world = _world(delta=0.5)
    transform = _transform(1.0, 1.0)
    world.create_entity(Movement(velocity=Vector3(2.0, 4.0, 0.0), max_movement_speed=100.0), transform)
    movement_system(world)
    assert transform.translation.x == pytest.approx(1.0 + 2.0 * 0.5)
    assert transform.translation.y == pytest.approx(1.0 + 4.0 * 0.5)


def test_enforce_bounds_clamps():
    world = _world()
    outside = _transform(20.0, -9.0)
    inside = _transform(1.0, 2.0)
    world.create_entity(outside)
    world.create_entity(inside)
    enforce_bounds_system(world)
    assert outside.translation == Vector3(10.0, -5.0, 0.0)
    assert inside.translation == Vector3(1.0, 2.0, 0.0)


def test_collision_emits_events_and_pushes_apart():
    world = _world()
    reader = world.events(CollisionEvent).register_reader()
    moving = Movement(velocity=Vector3(3.0, 4.0, 0.0), max_movement_speed=10.0)
    a = world.create_entity(Circle(1.0), moving, _transform(0.5, 0.0))
    b = world.create_entity(Circle(1.0), _transform(0.0, 0.0))
    collision_system(world)
    assert world.events(CollisionEvent).read(reader) == [CollisionEvent(a, b)]
    assert moving.velocity.magnitude() == pytest.approx(5.0)
    assert moving.velocity.x > 0 and moving.velocity.y == pytest.approx(0.0)


def test_collision_at_same_spot_reverses_velocity():
    world = _world()
    m1 = Movement(velocity=Vector3(1.0, 2.0, 0.0), max_movement_speed=10.0)
    world.create_entity(Circle(1.0), m1, _transform(0.0, 0.0))
    world.create_entity(Circle(1.0), _transform(0.0, 0.0))
    collision_system(world)
    assert m1.velocity == Vector3(-1.0, -2.0, -0.0)


def test_no_collision_when_apart():
    world = _world()
    reader = world.events(CollisionEvent).register_reader()
    world.create_entity(Circle(0.5), Movement(), _transform(0.0, 0.0))
    world.create_entity(Circle(0.5), Movement(), _transform(3.0, 0.0))
    collision_system(world)
    assert world.events(CollisionEvent).read(reader) == []


def test_ricochet_flips_at_walls():
    world = _world()
    movement = Movement(velocity=Vector3(1.0, 1.0, 0.0), max_movement_speed=5.0)
    world.create_entity(_transform(10.0, 0.0), RicochetTag(), movement)
    ricochet_system(world)
    assert movement.velocity == Vector3(-1.0, 1.0, 0.0)


def test_ricochet_ignores_untagged():
    world = _world()
    movement = Movement(velocity=Vector3(1.0, 1.0, 0.0), max_movement_speed=5.0)
    world.create_entity(_transform(10.0, 5.0), movement)
    ricochet_system(world)
    assert movement.velocity == Vector3(1.0, 1.0, 0.0)


def test_closest_wall_picks_nearest():
    bounds = WorldBounds(-10.0, 10.0, -5.0, 5.0)
    assert closest_wall(Vector3(9.0, 0.0, 0.0), bounds) == Vector3(1.0, 0.0, 0.0)


def test_closest_wall_tie_goes_to_later_wall():
    bounds = WorldBounds(-10.0, 10.0, -5.0, 5.0)
    assert closest_wall(Vector3(0.0, 0.0, 0.0), bounds) == Vector3(0.0, -5.0, 0.0)


def test_closest_obstacle_system_attaches_and_clears():
    world = _world()
    near_transform = _transform(8.5, 0.0)
    near = world.create_entity(near_transform, Movement())
    far = world.create_entity(_transform(0.0, 0.0), Movement(), ClosestObstacle(Vector3(1.0, 0.0, 0.0)))
    closest_obstacle_system(world)
    assert world.get(near, ClosestObstacle).distance == closest_wall(near_transform.translation, world.resource(WorldBounds))
    assert world.get(far, ClosestObstacle) is None


def test_wander_changes_velocity_and_angle():
    world = _world(delta=0.1)
    wander = Wander(angle=0.0, radius=1.0)
    movement = Movement(velocity=Vector3(), max_movement_speed=5.0)
    world.create_entity(wander, movement, _transform(0.0, 0.0))
    WanderSystem(random.Random(1)).run(world)
    assert movement.velocity.x == pytest.approx(0.1)
    assert math.isclose(abs(wander.angle), 1.0)
    assert len(world.resource(DebugLines).lines) == 2


def test_debug_collision_event_system_requires_setup():
    with pytest.raises(RuntimeError):
        DebugCollisionEventSystem().run(World())


def test_debug_collision_event_system_reads_events():
    world = World()
    system = DebugCollisionEventSystem()
    system.setup(world)
    world.events(CollisionEvent).write(CollisionEvent(1, 2))
    assert system.run(world) == [CollisionEvent(1, 2)]
    assert system.run(world) == []


def test_debug_collider_draws_cross():
    world = _world()
    world.create_entity(Circle(2.0), _transform(1.0, 1.0))
    debug_collider_system(world)
    lines = world.resource(DebugLines).lines
    assert len(lines) == 2
    assert lines[0].start == Vector3(-1.0, 1.0, 0.0)
    assert lines[1].end == Vector3(1.0, 3.0, 0.0)


def test_debug_bounds_draws_box_and_axes():
    world = _world()
    debug_bounds_system(world)
    lines = world.resource(DebugLines).lines
    assert len(lines) == 7
    assert lines[0].start == Vector3(-10.0, -5.0, 0.0)
    assert lines[0].end == Vector3(10.0, -5.0, 0.0)
    assert lines[0].color == (0.8, 0.04, 0.6, 1.0)