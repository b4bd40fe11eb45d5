import random

import pytest

from creaturesim.components import CreaturePrefab, Named
from creaturesim.game import (
    CAMERA_NAME,
    MainGameState,
    Transition,
)
from creaturesim.resources import (
    CreaturePrefabs,
    DebugConfig,
    DebugLines,
    SpatialGrid,
    WorldBounds,
)
from creaturesim.spawner import CreatureSpawnEvent, CreatureTag
from creaturesim.world import Time, Transform, World

BOUNDS_COLOR = (0.8, 0.04, 0.6, 1.0)


def make_world():
    world = World()
    world.add_resource(WorldBounds(-12.75, 12.75, -11.0, 11.0))
    world.add_resource(Time(delta_real_seconds=0.02))
    world.add_resource(CreaturePrefabs({
        "Plant": CreaturePrefab(name=Named("Plant")),
        "Nushi": CreaturePrefab(name=Named("Nushi")),
    }))
    return world


@pytest.fixture
def state():
    game = MainGameState(make_world(), random.Random(7))
    game.start()
    return game


def entity_named(world, name):
    return next(entity for entity, named in world.join(Named) if named.name == name)


def test_start_writes_plant_and_nushi_spawn_events():
    world = make_world()
    reader = world.events(CreatureSpawnEvent).register_reader()
    MainGameState(world, random.Random(1)).start()
    events = world.events(CreatureSpawnEvent).read(reader)
    types = [event.creature_type for event in events]
    assert types.count("Plant") == 25
    assert types.count("Nushi") == 1
    bounds = world.resource(WorldBounds)
    for event in events:
        position = world.get(event.entity, Transform).translation
        assert bounds.left <= position.x <= bounds.right
        assert bounds.bottom <= position.y <= bounds.top


def test_start_adds_resources_and_camera(state):
    world = state.world
    assert world.resource(DebugConfig).visible is False
    assert world.resource(SpatialGrid).cell_size == 1.0
    camera = entity_named(world, CAMERA_NAME)
    assert camera == state.camera
    assert world.get(camera, Transform).translation.z == 12.0


def test_update_spawns_creatures(state):
    assert state.update() is Transition.NONE
    names = [named.name for entity, _, named in state.world.join(CreatureTag, Named)]
    assert names.count("Nushi") == 1
    assert names.count("Plant") >= 25


def test_stop_removes_organisms_camera_and_ui(state):
    state.update()
    camera = state.camera
    ui_entities = list(state.ui_entities)
    state.stop()
    world = state.world
    assert list(world.join(CreatureTag)) == []
    assert not world.is_alive(camera)
    assert state.camera is None
    assert all(not world.is_alive(entity) for entity in ui_entities)


def test_speed_actions_scale_time(state):
    time = state.world.resource(Time)
    assert state.handle_action("SpeedUp") is Transition.NONE
    assert time.time_scale == 2.0
    state.handle_action("SlowDown")
    state.handle_action("SlowDown")
    assert time.time_scale == 0.5


@pytest.mark.parametrize("action, expected", [
    ("TogglePause", Transition.PUSH_PAUSED),
    ("Menu", Transition.SWITCH_MENU),
    ("Unbound", Transition.NONE),
])
def test_action_transitions(state, action, expected):
    assert state.handle_action(action) is expected


def test_toggle_debug_enables_debug_drawing(state):
    state.update()
    lines = state.world.resource(DebugLines).lines
    assert [line for line in lines if line.color == BOUNDS_COLOR] == []
    assert state.handle_action("ToggleDebug") is Transition.NONE
    assert state.world.resource(DebugConfig).visible is True
    state.update()
    lines = state.world.resource(DebugLines).lines
    assert len([line for line in lines if line.color == BOUNDS_COLOR]) == 4


def test_click_translation_needs_ui_lookup(state):
    pause_entity = entity_named(state.world, "pause button")
    assert state.ui.translate_click(pause_entity) is None
    state.shadow_update()
    assert state.ui.translate_click(pause_entity) == "TogglePause"
    menu_entity = entity_named(state.world, "menu button")
    assert state.ui.translate_click(menu_entity) == "Menu"
    assert state.ui.translate_click(state.camera) is None


def test_pause_label_toggles(state):
    state.shadow_update()
    assert state.ui.pause_text == "Pause"
    state.handle_action("TogglePause")
    assert state.ui.pause_text == "Play"
    state.handle_action("SpeedUp")
    assert state.ui.pause_text == "Play"
    state.ui.handle_action("TogglePause")
    assert state.ui.pause_text == "Pause"