"""Movement, collision, bounds, ricochet, wall avoidance, wandering and debug drawing."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from functools import reduce

from creaturesim.components import Circle, Movement, RicochetTag, Wander
from creaturesim.resources import DebugLines, WorldBounds
from creaturesim.world import Time, Transform, Vector3, World

logger = logging.getLogger(__name__)

EPSILON = 1.1920929e-07
WALL_AVOID_DISTANCE = 3.0
_COLLIDER_COLOR = (1.0, 0.5, 0.5, 1.0)
_WANDER_COLOR = (1.0, 0.05, 0.65, 1.0)
_BOUNDS_COLOR = (0.8, 0.04, 0.6, 1.0)


@dataclass(frozen=True)
class CollisionEvent:
    entity_a: int
    entity_b: int


@dataclass
class Closest:
    """Offset from an entity to the closest thing of some kind."""

    distance: Vector3


class ClosestObstacle(Closest):
    """Offset to the closest wall."""


def movement_system(world: World) -> None:
    """Cap velocities at the maximum speed and move entities by them."""
    delta = world.resource(Time).delta_seconds
    for _, movement, transform in world.join(Movement, Transform):
        if movement.velocity.magnitude() > movement.max_movement_speed:
            movement.velocity = movement.velocity.normalize() * movement.max_movement_speed
        transform.translate(movement.velocity.x * delta, movement.velocity.y * delta)


def enforce_bounds_system(world: World) -> None:
    """Clamp every transform into the world bounds."""
    bounds = world.resource(WorldBounds)
    for _, transform in world.join(Transform):
        x, y, z = transform.translation
        if x > bounds.right:
            x = bounds.right
        elif x < bounds.left:
            x = bounds.left
        if y > bounds.top:
            y = bounds.top
        elif y < bounds.bottom:
            y = bounds.bottom
        transform.set_xyz(x, y, z)


def collision_system(world: World) -> None:
    """Bounce moving circles off each other and report each overlap."""
    channel = world.events(CollisionEvent)
    for entity_a, circle_a, movement, transform_a in world.join(Circle, Movement, Transform):
        for entity_b, circle_b, transform_b in world.join(Circle, Transform):
            if entity_a == entity_b:
                continue
            allowed = circle_a.radius + circle_b.radius
            direction = transform_a.translation - transform_b.translation
            if direction.magnitude_squared() < allowed * allowed:
                channel.write(CollisionEvent(entity_a, entity_b))
                if direction.magnitude() < EPSILON:
                    movement.velocity = -movement.velocity
                else:
                    movement.velocity = direction.normalize() * movement.velocity.magnitude()


def ricochet_system(world: World) -> None:
    """Reverse the velocity component of tagged entities that reach a wall."""
    bounds = world.resource(WorldBounds)
    for _, transform, _, movement in world.join(Transform, RicochetTag, Movement):
        position = transform.translation
        vx, vy, vz = movement.velocity
        if position.x >= bounds.right or position.x <= bounds.left:
            vx = -vx
        if position.y >= bounds.top or position.y <= bounds.bottom:
            vy = -vy
        movement.velocity = Vector3(vx, vy, vz)


def closest_wall(location: Vector3, bounds: WorldBounds) -> Vector3:
    """Offset from ``location`` to the nearest wall; ties go to the later wall."""
    offsets = [
        Vector3(bounds.left, location.y, location.z) - location,
        Vector3(bounds.right, location.y, location.z) - location,
        Vector3(location.x, bounds.top, location.z) - location,
        Vector3(location.x, bounds.bottom, location.z) - location,
    ]
    return reduce(
        lambda best, other: best if best.magnitude_squared() < other.magnitude_squared() else other,
        offsets,
    )


def closest_obstacle_system(world: World) -> None:
    """Attach ``ClosestObstacle`` to moving entities near a wall."""
    for entity, _ in list(world.join(ClosestObstacle)):
        world.remove(entity, ClosestObstacle)
    bounds = world.resource(WorldBounds)
    for entity, transform, _ in world.join(Transform, Movement):
        wall = closest_wall(transform.translation, bounds)
        if wall.magnitude_squared() < WALL_AVOID_DISTANCE ** 2:
            world.insert(entity, ClosestObstacle(wall))


class WanderSystem:
    """Steer wandering entities towards a point that drifts around ahead of them."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    def run(self, world: World) -> None:
        delta = world.resource(Time).delta_seconds
        debug_lines = world.resource(DebugLines)
        change = 10.0
        for _, wander, movement, transform in world.join(Wander, Movement, Transform):
            position = transform.translation
            future_position = position + movement.velocity * 0.5
            direction = wander.direction()
            desired_velocity = future_position + direction - position
            movement.velocity = movement.velocity + desired_velocity * delta
            if self.rng.random() < 0.5:
                wander.angle += change * delta
            else:
                wander.angle -= change * delta
            debug_lines.draw_line(position, future_position, _WANDER_COLOR)
            debug_lines.draw_direction(future_position, direction, _WANDER_COLOR)


class DebugCollisionEventSystem:
    """Log every collision event."""

    def __init__(self) -> None:
        self._reader: int | None = None

    def setup(self, world: World) -> None:
        self._reader = world.events(CollisionEvent).register_reader()

    def run(self, world: World) -> list[CollisionEvent]:
        """Log and return the collision events seen since the last run."""
        if self._reader is None:
            raise RuntimeError("DebugCollisionEventSystem.setup was not called before run")
        events = world.events(CollisionEvent).read(self._reader)
        for event in events:
            logger.info("Received collision event %r", event)
        return events


def debug_collider_system(world: World) -> None:
    """Draw a cross the size of each collider."""
    debug_lines = world.resource(DebugLines)
    for _, circle, transform in world.join(Circle, Transform):
        x, y = transform.translation.x, transform.translation.y
        r = circle.radius
        debug_lines.draw_line((x - r, y, 0.0), (x + r, y, 0.0), _COLLIDER_COLOR)
        debug_lines.draw_line((x, y - r, 0.0), (x, y + r, 0.0), _COLLIDER_COLOR)


def debug_bounds_system(world: World) -> None:
    """Draw the world bounds and the coordinate axes."""
    debug_lines = world.resource(DebugLines)
    b = world.resource(WorldBounds)
    debug_lines.draw_line((b.left, b.bottom, 0.0), (b.right, b.bottom, 0.0), _BOUNDS_COLOR)
    debug_lines.draw_line((b.left, b.top, 0.0), (b.right, b.top, 0.0), _BOUNDS_COLOR)
    debug_lines.draw_line((b.left, b.bottom, 0.0), (b.left, b.top, 0.0), _BOUNDS_COLOR)
    debug_lines.draw_line((b.right, b.bottom, 0.0), (b.right, b.top, 0.0), _BOUNDS_COLOR)
    debug_lines.draw_line((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 0.0, 0.0, 1.0))
    debug_lines.draw_line((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0, 1.0))
    debug_lines.draw_line((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0, 1.0))