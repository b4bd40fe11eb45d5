"""The main game state, its system schedule and the in-game button bar."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from creaturesim.behaviors import (
    ClosestPredator,
    ClosestPrey,
    ClosestSystem,
    PredatorQuery,
    PreyQuery,
    SeekSystem,
    SwarmSpawnSystem,
    debug_entity_detection_system,
    entity_detection_system,
    query_predators_and_prey_system,
    spatial_grid_system,
    swarm_behavior_system,
    swarm_center_system,
)
from creaturesim.combat import (
    FindAttackSystem,
    PerformDefaultAttackSystem,
    cooldown_system,
    death_by_health_system,
    debug_fullness_system,
    debug_health_system,
    digestion_system,
    starvation_system,
)
from creaturesim.components import Named
from creaturesim.physics import (
    ClosestObstacle,
    DebugCollisionEventSystem,
    WanderSystem,
    closest_obstacle_system,
    collision_system,
    debug_bounds_system,
    debug_collider_system,
    enforce_bounds_system,
    movement_system,
    ricochet_system,
)
from creaturesim.resources import DebugConfig, DebugLines, SpatialGrid, WorldBounds
from creaturesim.spawner import (
    CreatureSpawnerSystem,
    CreatureSpawnEvent,
    CreatureTag,
    DebugSpawnTriggerSystem,
)
from creaturesim.world import Time, Transform, Vector3, World

logger = logging.getLogger(__name__)

PLANT_COUNT = 25
CAMERA_NAME = "Main camera"
TOGGLE_DEBUG_ACTION = "ToggleDebug"
PLAY_TEXT = "Play"


@dataclass(frozen=True)
class ButtonInfo:
    """A button's widget name, its label and the input action it triggers."""

    name: str
    text: str
    action: str


MENU_BUTTON = ButtonInfo(name="menu button", text="Menu", action="Menu")
PAUSE_BUTTON = ButtonInfo(name="pause button", text="Pause", action="TogglePause")
SLOW_DOWN_BUTTON = ButtonInfo(name="slow down button", text="Slow Down", action="SlowDown")
SPEED_UP_BUTTON = ButtonInfo(name="speed up button", text="Speed Up", action="SpeedUp")
BUTTON_INFOS = (MENU_BUTTON, PAUSE_BUTTON, SLOW_DOWN_BUTTON, SPEED_UP_BUTTON)


class Transition(Enum):
    """What the state machine should do after a state handled something."""

    NONE = "none"
    POP = "pop"
    QUIT = "quit"
    PUSH_PAUSED = "push_paused"
    SWITCH_MENU = "switch_menu"
    SWITCH_MAIN_GAME = "switch_main_game"


@dataclass
class _Label:
    """Text shown by a UI widget."""

    text: str


def _text_name(button_name: str) -> str:
    return f"{button_name}_btn_txt"


def _find_named(world: World, name: str) -> int | None:
    for entity, named in world.join(Named):
        if named.name == name:
            return entity
    return None


class MainGameUi:
    """Turns button clicks into actions and keeps the pause button's label in step."""

    def __init__(self, world: World) -> None:
        self.world = world
        self.buttons: dict[int, ButtonInfo] = {}
        self.pause_text_entity: int | None = None
        self._searched = False

    def _locate(self) -> None:
        if self._searched:
            return
        self._searched = True
        for info in BUTTON_INFOS:
            entity = _find_named(self.world, info.name)
            if entity is not None:
                self.buttons[entity] = info
        self.pause_text_entity = _find_named(self.world, _text_name(PAUSE_BUTTON.name))

    @property
    def pause_text(self) -> str | None:
        """The pause button's current label, if the label widget was found."""
        if self.pause_text_entity is None:
            return None
        label = self.world.get(self.pause_text_entity, _Label)
        return None if label is None else label.text

    def translate_click(self, clicked: int) -> str | None:
        """Return the action of the button that was clicked, if it is one of ours."""
        info = self.buttons.get(clicked)
        return None if info is None else info.action

    def handle_action(self, action: str) -> None:
        """Flip the pause label between Pause and Play when pausing is toggled."""
        if action != PAUSE_BUTTON.action or self.pause_text_entity is None:
            return
        label = self.world.get(self.pause_text_entity, _Label)
        if label is None:
            return
        if label.text == PAUSE_BUTTON.text:
            label.text = PLAY_TEXT
        elif label.text == PLAY_TEXT:
            label.text = PAUSE_BUTTON.text


class MainGameState:
    """The running simulation: its systems, its UI, its camera and its organisms."""

    def __init__(self, world: World, rng: random.Random | None = None) -> None:
        self.world = world
        self.rng = rng if rng is not None else random.Random()
        self.ui = MainGameUi(world)
        self.ui_entities: list[int] = []
        self.camera: int | None = None

        self._wander = WanderSystem(self.rng)
        self._spawn_trigger = DebugSpawnTriggerSystem(self.rng)
        self._swarm_spawn = SwarmSpawnSystem(self.rng)
        self._find_attack = FindAttackSystem()
        self._perform_attack = PerformDefaultAttackSystem()
        self._spawner = CreatureSpawnerSystem()
        self._debug_collisions = DebugCollisionEventSystem()

        self._systems: list[Callable[[World], object]] = [
            spatial_grid_system,
            entity_detection_system,
            query_predators_and_prey_system,
            closest_obstacle_system,
            ClosestSystem(PreyQuery, ClosestPrey).run,
            ClosestSystem(PredatorQuery, ClosestPredator).run,
            SeekSystem(ClosestPrey, 0.0, 1.0).run,
            # Half a turn: run away.
            SeekSystem(ClosestPredator, math.pi, 1.0).run,
            # A little more than perpendicular, so creatures steer away from walls.
            SeekSystem(ClosestObstacle, 2.0 * math.pi / 3.0, 5.0).run,
            ricochet_system,
            self._wander.run,
            movement_system,
            collision_system,
            enforce_bounds_system,
            digestion_system,
            starvation_system,
            cooldown_system,
            self._find_attack.run,
            self._perform_attack.run,
            death_by_health_system,
            debug_health_system,
            self._spawn_trigger.run,
            self._swarm_spawn.run,
            swarm_behavior_system,
            swarm_center_system,
            self._spawner.run,
        ]
        self._debug_systems: list[Callable[[World], object]] = [
            self._debug_collisions.run,
            debug_collider_system,
            debug_bounds_system,
            debug_fullness_system,
            debug_entity_detection_system,
        ]

    def start(self) -> None:
        """Set up systems and resources, build the UI, sow plants, place the camera."""
        world = self.world
        for system in (self._find_attack, self._perform_attack, self._spawner,
                       self._debug_collisions):
            system.setup(world)
        world.add_resource(DebugConfig())
        world.add_resource(SpatialGrid(1.0))

        logger.info("instantiating main game ui...")
        for info in BUTTON_INFOS:
            self.ui_entities.append(world.create_entity(Named(info.name)))
            self.ui_entities.append(
                world.create_entity(Named(_text_name(info.name)), _Label(info.text))
            )

        logger.info("growing plants...")
        bounds = world.resource(WorldBounds)
        spawn_events = world.events(CreatureSpawnEvent)
        for _ in range(PLANT_COUNT):
            x = self.rng.uniform(bounds.left, bounds.right)
            y = self.rng.uniform(bounds.bottom, bounds.top)
            scale = self.rng.uniform(0.8, 1.2)
            rotation = self.rng.uniform(0.0, math.pi)
            plant = world.create_entity(Transform(
                translation=Vector3(x, y, 0.0),
                scale=Vector3(scale, scale, 1.0),
                rotation=rotation,
            ))
            spawn_events.write(CreatureSpawnEvent("Plant", plant))

        x = self.rng.uniform(bounds.left, bounds.right)
        y = self.rng.uniform(bounds.bottom, bounds.top)
        scale = self.rng.uniform(0.8, 1.2)
        nushi = world.create_entity(Transform(
            translation=Vector3(x, y, 0.0), scale=Vector3(scale, scale, 1.0),
        ))
        spawn_events.write(CreatureSpawnEvent("Nushi", nushi))

        logger.info("setting up camera...")
        self.camera = world.create_entity(
            Named(CAMERA_NAME), Transform(translation=Vector3(0.0, 0.0, 12.0))
        )

    def stop(self) -> None:
        """Remove the UI, the camera and every organism."""
        world = self.world
        remaining = []
        for entity in self.ui_entities:
            try:
                world.delete_entity(entity)
            except KeyError:
                remaining.append(entity)
        self.ui_entities = remaining
        if self.camera is not None:
            try:
                world.delete_entity(self.camera)
                self.camera = None
            except KeyError:
                pass
        organisms = [entity for entity, _ in world.join(CreatureTag)]
        failed = False
        for entity in organisms:
            try:
                world.delete_entity(entity)
            except KeyError:
                failed = True
        if failed:
            logger.info("failed to delete all organisms")

    def update(self) -> Transition:
        """Run one frame of the simulation, plus debug drawing when enabled."""
        self.world.resource(DebugLines).clear()
        for system in self._systems:
            system(self.world)
        if self.world.resource(DebugConfig).visible:
            for system in self._debug_systems:
                system(self.world)
        return Transition.NONE

    def shadow_update(self) -> None:
        """Work that runs even while the game is paused: keeping the UI ready."""
        self.ui._locate()

    def handle_action(self, action: str) -> Transition:
        """React to an input action pressed by the player."""
        self.ui.handle_action(action)
        if action == TOGGLE_DEBUG_ACTION:
            config = self.world.resource(DebugConfig)
            config.visible = not config.visible
            return Transition.NONE
        if action == PAUSE_BUTTON.action:
            return Transition.PUSH_PAUSED
        if action == SPEED_UP_BUTTON.action:
            self.world.resource(Time).time_scale *= 2.0
            return Transition.NONE
        if action == SLOW_DOWN_BUTTON.action:
            self.world.resource(Time).time_scale *= 0.5
            return Transition.NONE
        if action == MENU_BUTTON.action:
            return Transition.SWITCH_MENU
        return Transition.NONE