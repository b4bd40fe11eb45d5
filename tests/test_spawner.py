import random

import pytest

from creaturesim.components import CreaturePrefab, Named, Nutrition
from creaturesim.resources import CreaturePrefabs
from creaturesim.spawner import (
    CreatureSpawnerSystem,
    CreatureSpawnEvent,
    CreatureTag,
    DebugSpawnTriggerSystem,
    random_creature_type,
)
from creaturesim.world import Time, Transform, World


def make_world(delta=0.1):
    world = World()
    world.add_resource(Time(delta_real_seconds=delta))
    return world


def test_random_creature_type_covers_all_three():
    rng = random.Random(7)
    seen = {random_creature_type(rng) for _ in range(200)}
    assert seen == {"Herbivore", "Carnivore", "Plant"}


def make_spawner_world():
    world = make_world()
    prefabs = CreaturePrefabs()
    prefabs.insert("Plant", CreaturePrefab(name=Named("Plant"), nutrition=Nutrition(3.0)))
    world.add_resource(prefabs)
    system = CreatureSpawnerSystem()
    system.setup(world)
    return world, system


def test_spawner_applies_prefab_and_tag():
    world, system = make_spawner_world()
    entity = world.create_entity()
    world.events(CreatureSpawnEvent).write(CreatureSpawnEvent("Plant", entity))
    system.run(world)
    assert world.get(entity, Nutrition) == Nutrition(3.0)
    assert world.get(entity, Named) == Named("Plant")
    assert world.get(entity, CreatureTag) == CreatureTag()


def test_spawner_ignores_unknown_type_and_dead_entities():
    world, system = make_spawner_world()
    unknown = world.create_entity()
    dead = world.create_entity()
    world.delete_entity(dead)
    channel = world.events(CreatureSpawnEvent)
    channel.write(CreatureSpawnEvent("Dragon", unknown))
    channel.write(CreatureSpawnEvent("Plant", dead))
    system.run(world)
    assert world.get(unknown, CreatureTag) is None
    assert list(world.join(CreatureTag)) == []


def test_spawner_requires_setup():
    with pytest.raises(RuntimeError):
        CreatureSpawnerSystem().run(make_world())


def test_debug_trigger_spawns_on_interval():
    world = make_world(delta=1.0)
    reader = world.events(CreatureSpawnEvent).register_reader()
    trigger = DebugSpawnTriggerSystem(random.Random(3))
    first = trigger.run(world)
    assert trigger.run(world) is None
    second = trigger.run(world)
    events = world.events(CreatureSpawnEvent).read(reader)
    assert [event.entity for event in events] == [first, second]
    assert all(event.creature_type in {"Herbivore", "Carnivore", "Plant"} for event in events)


def test_debug_trigger_places_creatures_in_range():
    world = make_world(delta=2.0)
    reader = world.events(CreatureSpawnEvent).register_reader()
    trigger = DebugSpawnTriggerSystem(random.Random(11))
    for _ in range(60):
        trigger.run(world)
    events = world.events(CreatureSpawnEvent).read(reader)
    assert len(events) == 60
    for event in events:
        transform = world.get(event.entity, Transform)
        assert -10.0 <= transform.translation.x < 10.0
        assert -10.0 <= transform.translation.y < 10.0
        if event.creature_type == "Plant":
            assert transform.translation.z == 0.0
            assert 0.8 <= transform.scale.x < 1.2
            assert transform.scale.x == transform.scale.y
        else:
            assert transform.translation.z == 0.02
            assert transform.scale.x == 0.5
            assert transform.scale.y == 0.5