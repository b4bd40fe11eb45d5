"""Predator and prey decisions, swarming, and entity perception."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from creaturesim.components import (
    DetectedEntities,
    FactionPrey,
    HasFaction,
    Movement,
    Perception,
    SwarmBehavior,
    SwarmCenter,
    Wander,
)
from creaturesim.physics import EPSILON, Closest
from creaturesim.resources import DebugLines, SpatialGrid
from creaturesim.spawner import CreatureSpawnEvent
from creaturesim.world import Time, Transform, Vector3, World

CLOSEST_RANGE = 5.0
SWARM_INTERVAL = 10.0
_DETECTION_COLOR = (1.0, 1.0, 0.0, 1.0)


@dataclass
class PreyQuery:
    """Attached to a faction: the entities that faction hunts."""

    entities: set[int] = field(default_factory=set)


@dataclass
class PredatorQuery:
    """Attached to a faction: the entities that hunt that faction."""

    entities: set[int] = field(default_factory=set)


class ClosestPrey(Closest):
    """Offset to the closest prey within range."""


class ClosestPredator(Closest):
    """Offset to the closest predator within range."""


def query_predators_and_prey_system(world: World) -> None:
    """Work out, for every faction, which entities are its prey and which its predators."""
    factions = list(world.join(FactionPrey))
    for faction, _ in factions:
        if world.get(faction, PreyQuery) is None:
            world.insert(faction, PreyQuery())
        predators = world.get(faction, PredatorQuery)
        if predators is None:
            world.insert(faction, PredatorQuery())
        else:
            predators.entities.clear()

    members = list(world.join(HasFaction))
    for faction, faction_preys in factions:
        preys = world.get(faction, PreyQuery)
        preys.entities.clear()
        for prey, prey_faction in members:
            if faction_preys.is_prey(prey_faction.faction):
                preys.entities.add(prey)

    for predator, predator_faction in members:
        predator_preys = world.get(predator_faction.faction, FactionPrey)
        if predator_preys is None:
            raise LookupError(
                f"faction {predator_faction.faction} of entity {predator} has no prey list"
            )
        for prey_faction, _ in factions:
            if predator_preys.is_prey(prey_faction):
                world.get(prey_faction, PredatorQuery).entities.add(predator)


class ClosestSystem:
    """Attach the offset to the closest queried entity within range to each faction member."""

    def __init__(self, query_type: type, closest_type: type[Closest]) -> None:
        self.query_type = query_type
        self.closest_type = closest_type

    def run(self, world: World) -> None:
        limit = CLOSEST_RANGE ** 2
        for entity, transform, faction in list(world.join(Transform, HasFaction)):
            world.remove(entity, self.closest_type)
            query = world.get(faction.faction, self.query_type)
            if query is None:
                continue
            position = transform.translation
            best = None
            min_sq_distance = limit
            for other in sorted(query.entities):
                other_transform = world.get(other, Transform)
                if other_transform is None or not world.is_alive(other):
                    continue
                difference = other_transform.translation - position
                sq_distance = difference.magnitude_squared()
                if sq_distance < min_sq_distance:
                    min_sq_distance = sq_distance
                    best = difference
            if best is not None:
                world.insert(entity, self.closest_type(best))


class SeekSystem:
    """Steer towards the closest entity of a kind, with the steering force turned by an angle.

    An angle of zero seeks, an angle of pi flees.
    """

    def __init__(self, closest_type: type[Closest], attraction_angle: float,
                 attraction_magnitude: float) -> None:
        self.closest_type = closest_type
        self.attraction_angle = attraction_angle
        self.attraction_magnitude = attraction_magnitude

    def run(self, world: World) -> None:
        delta = world.resource(Time).delta_seconds
        for _, movement, closest in world.join(Movement, self.closest_type):
            if closest.distance.magnitude() == 0.0:
                continue
            target_velocity = closest.distance.normalize() * self.attraction_magnitude
            steering = target_velocity - movement.velocity
            movement.velocity = (
                movement.velocity + steering.rotated_z(self.attraction_angle) * delta
            )


class SwarmSpawnSystem:
    """Every ten seconds, spawn a wandering swarm centre with three to nine swarmlings."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.swarm_timer = 0.0

    def run(self, world: World) -> int | None:
        """Advance the timer; return the swarm centre spawned this frame, if any."""
        self.swarm_timer -= world.resource(Time).delta_seconds
        if self.swarm_timer > 0.0:
            return None
        rng = self.rng
        self.swarm_timer = SWARM_INTERVAL
        x = rng.uniform(-10.0, 10.0)
        y = rng.uniform(-10.0, 10.0)
        swarm_entity = world.create_entity(
            Transform(translation=Vector3(x, y, 0.0)),
            Movement(velocity=Vector3(), max_movement_speed=0.8),
            Wander(angle=0.0, radius=1.0),
        )
        swarm_center = SwarmCenter()
        spawn_events = world.events(CreatureSpawnEvent)
        for _ in range(rng.randrange(3, 10)):
            transform = Transform(
                translation=Vector3(rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0), 0.0),
                scale=Vector3(0.3, 0.3, 1.0),
                parent=swarm_entity,
            )
            movement = Movement(
                velocity=Vector3(rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0), 0.0),
                max_movement_speed=5.0,
            )
            swarmling = world.create_entity(
                SwarmBehavior(swarm_center=swarm_entity, attraction=0.5, deviation=0.5),
                transform,
                movement,
            )
            swarm_center.entities.append(swarmling)
            spawn_events.write(CreatureSpawnEvent("Ixie", swarmling))
        world.insert(swarm_entity, swarm_center)
        return swarm_entity


def swarm_center_system(world: World) -> None:
    """Forget swarmlings that lost their swarm behaviour; delete empty swarm centres."""
    for entity, center in list(world.join(SwarmCenter)):
        center.entities = [
            swarmling for swarmling in center.entities
            if world.get(swarmling, SwarmBehavior) is not None
        ]
        if not center.entities and world.is_alive(entity):
            world.delete_entity(entity)


def swarm_behavior_system(world: World) -> None:
    """Pull swarmlings towards their centre while they circle sideways."""
    delta = world.resource(Time).delta_seconds
    if delta <= 0.0:
        return
    time_step = 0.01
    iterations = int(delta / time_step) + 1
    pull_factor = 10.0
    side_factor = 5.0
    for _, transform, behavior, movement in world.join(Transform, SwarmBehavior, Movement):
        original = transform.translation
        position = original
        velocity = movement.velocity
        for step in range(iterations):
            iter_step = min(time_step, delta - time_step * step)
            if position.magnitude_squared() > 0.16:
                center_pull = behavior.attraction * pull_factor * (-position)
            else:
                center_pull = Vector3()
            side = Vector3(velocity.y, -velocity.x, 0.0)
            if not side.magnitude_squared() < EPSILON:
                side = side.normalize()
            side_force = behavior.deviation * side_factor * side
            velocity = velocity + iter_step * (center_pull + side_force)
            speed = velocity.magnitude()
            if speed > movement.max_movement_speed:
                velocity = velocity * (movement.max_movement_speed / speed)
            position = position + iter_step * velocity
        movement.velocity = (position - original) / delta


def spatial_grid_system(world: World) -> None:
    """Rebuild the spatial grid from the global positions of all placed entities."""
    grid = world.resource(SpatialGrid)
    grid.reset()
    for entity, _ in world.join(Transform):
        grid.insert(entity, world.global_position(entity))


def entity_detection_system(world: World) -> None:
    """Record, for every perceiving entity, the other entities within its range."""
    grid = world.resource(SpatialGrid)
    for entity, _ in list(world.join(Perception)):
        if world.get(entity, DetectedEntities) is None:
            world.insert(entity, DetectedEntities())
    for entity, perception, detected, _ in world.join(Perception, DetectedEntities, Transform):
        position = world.global_position(entity)
        sq_range = perception.range * perception.range
        nearby = set(grid.query(position, perception.range))
        nearby.discard(entity)
        detected.entities = [
            other for other in sorted(nearby)
            if world.is_alive(other)
            and world.get(other, Transform) is not None
            and (position - world.global_position(other)).magnitude_squared() < sq_range
        ]


def debug_entity_detection_system(world: World) -> None:
    """Draw a line from each perceiving entity to everything it detected."""
    debug_lines = world.resource(DebugLines)
    for entity, detected, _ in world.join(DetectedEntities, Transform):
        position = world.global_position(entity)
        for other in detected.entities:
            other_position = world.global_position(other)
            debug_lines.draw_line(
                (position.x, position.y, 0.0),
                (other_position.x, other_position.y, 0.0),
                _DETECTION_COLOR,
            )