"""Creature spawning from spawn events, and a debug trigger that spawns regularly."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from creaturesim.resources import CreaturePrefabs
from creaturesim.world import Time, Transform, Vector3, World

SPAWN_INTERVAL = 1.5
_RANDOM_TYPES = ("Herbivore", "Carnivore", "Plant")


@dataclass
class CreatureTag:
    """Marks every spawned organism."""


@dataclass(frozen=True)
class CreatureSpawnEvent:
    creature_type: str
    entity: int


def random_creature_type(rng: random.Random) -> str:
    """Pick Herbivore, Carnivore or Plant with equal chance."""
    return _RANDOM_TYPES[rng.randrange(3)]


class CreatureSpawnerSystem:
    """Give spawned entities the components of their creature type's prefab."""

    def __init__(self) -> None:
        self._reader: int | None = None

    def setup(self, world: World) -> None:
        self._reader = world.events(CreatureSpawnEvent).register_reader()

    def run(self, world: World) -> None:
        if self._reader is None:
            raise RuntimeError("CreatureSpawnerSystem.setup was not called before run")
        prefabs = world.resource(CreaturePrefabs)
        for event in world.events(CreatureSpawnEvent).read(self._reader):
            prefab = prefabs.get(event.creature_type)
            if prefab is None or not world.is_alive(event.entity):
                continue
            prefab.apply(world, event.entity)
            world.insert(event.entity, CreatureTag())


class DebugSpawnTriggerSystem:
    """Spawn a random creature at a random place every 1.5 seconds."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.timer_to_next_spawn = 0.0

    def run(self, world: World) -> int | None:
        """Advance the timer; return the entity spawned this frame, if any."""
        self.timer_to_next_spawn -= world.resource(Time).delta_seconds
        if self.timer_to_next_spawn > 0.0:
            return None
        self.timer_to_next_spawn = SPAWN_INTERVAL
        rng = self.rng
        x = rng.randrange(100) / 5.0 - 10.0
        y = rng.randrange(100) / 5.0 - 10.0
        transform = Transform(translation=Vector3(x, y, 0.02))
        creature_type = random_creature_type(rng)
        if creature_type in ("Carnivore", "Herbivore"):
            transform.scale = Vector3(0.5, 0.5, 1.0)
        if creature_type == "Plant":
            scale = rng.randrange(100) / 250.0 + 0.8
            rotation = rng.randrange(100) / 100.0 * math.pi
            transform.set_xyz(x, y, 0.0)
            transform.scale = Vector3(scale, scale, 1.0)
            transform.rotation = rotation
        entity = world.create_entity(transform)
        world.events(CreatureSpawnEvent).write(CreatureSpawnEvent(creature_type, entity))
        return entity