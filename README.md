# creaturesim

A small ecosystem simulation library. Herbivores, carnivores, plants and
swarms of ixies live in a bounded world. They wander around and bounce off
walls. They seek their closest prey and flee their closest predator. When
they collide they attack. They burn fullness over time, and they die when
their health or fullness runs out.

The simulation is built on a lightweight entity–component–system core.
Entities are plain integer ids. Components are small dataclasses such as
`Movement`, `Health`, `Fullness` and `HasFaction`. Systems are functions, or
small classes with a `run(world)` method, that are called once per frame on a
`World`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Using the library

Here are a few systems run by hand:

```python
from creaturesim.world import World, Transform, Time, Vector3
from creaturesim.components import Movement, Circle
from creaturesim.physics import movement_system, collision_system

world = World()
world.add_resource(Time(delta_real_seconds=1 / 60))
transform = Transform()
transform.set_xyz(0.0, 0.0, 0.0)
creature = world.create_entity(
    transform,
    Movement(velocity=Vector3(1.0, 0.0, 0.0), max_movement_speed=2.0),
    Circle(radius=0.5),
)
movement_system(world)
collision_system(world)
```

This is the whole game loop, driven by `MainGameState`:

```python
from creaturesim.world import World, Time
from creaturesim.components import load_factions
from creaturesim.resources import WorldBounds, load_creature_prefabs
from creaturesim.game import MainGameState

world = World()
world.add_resource(Time(delta_real_seconds=1 / 60))
world.add_resource(WorldBounds(left=-12.75, right=12.75, bottom=-11.0, top=11.0))
load_factions(world, [
    {"name": "Plants"},
    {"name": "Herbivores", "faction_preys": {"preys": ["Plants"]}},
])
world.add_resource(load_creature_prefabs("prefabs/creatures"))

state = MainGameState(world)
state.start()
for _ in range(600):
    state.update()
state.handle_action("SpeedUp")   # doubles Time.time_scale
state.stop()
```

`load_creature_prefabs` reads every file in a directory as JSON. Each file
holds one creature prefab, which `CreaturePrefab.from_dict` accepts. The
prefabs are keyed by the creature's `name`. Unknown fields are rejected with
`ValueError`. `load_factions` creates one entity per faction definition, in
order. A faction may name as prey only the factions defined before it or
itself.

## Modules

- `creaturesim.world` is the ECS core: `World`, `Vector3`, `Transform`,
  `Time` and `EventChannel`.
- `creaturesim.components` holds the component types, `CreaturePrefab` and
  `load_factions`.
- `creaturesim.resources` holds `WorldBounds`, `DebugConfig`, `DebugLines`,
  `SpatialGrid`, `CreaturePrefabs` and `load_creature_prefabs`.
- `creaturesim.physics` covers movement, collisions, bounds clamping,
  ricochet, closest-wall detection, wandering and debug drawing of colliders
  and bounds.
- `creaturesim.combat` covers cooldowns, finding and performing attacks,
  death by health, digestion and starvation.
- `creaturesim.spawner` applies creature prefabs to spawned entities and
  holds a debug trigger that spawns a random creature every 1.5 seconds.
- `creaturesim.behaviors` covers predator and prey queries, closest
  prey and predator, seek and flee, swarm spawning and steering, the spatial
  grid update and entity perception.
- `creaturesim.game` holds `MainGameState`, its system schedule, the button
  definitions (`ButtonInfo`), `MainGameUi` and the `Transition` values that
  states return.

## What this package does not do

- It has no command-line program. There is no loading, menu or paused
  state, and no application loop that moves between states. You drive
  `MainGameState` yourself and act on the `Transition` it returns.
- It does no rendering, windowing, audio or input handling. Debug drawing
  only collects line segments in `DebugLines`. Camera movement is not
  provided: the camera is just an entity with a `Named` and a `Transform`.
- The UI is a set of named entities that `MainGameState.start` creates.
  Button clicks are given to `MainGameUi.translate_click` as entity ids.