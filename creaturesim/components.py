"""Components attached to creatures and factions, and the prefab data that builds them."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Generic, TypeVar

from creaturesim.world import Vector3, World

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Circle:
    radius: float = 0.0


@dataclass
class Health:
    """Hit points; ``value`` starts at ``max_health`` unless given."""

    max_health: float = 0.0
    value: float | None = None

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.max_health


@dataclass
class Damage:
    """Points subtracted from the target's health per hit."""

    damage: float = 0.0


@dataclass
class Speed:
    attacks_per_second: float = 0.0


@dataclass
class Cooldown:
    """While attached, the entity cannot attack."""

    time_left: timedelta = field(default_factory=timedelta)


@dataclass
class HasFaction(Generic[T]):
    """Membership of a faction, by entity in the world or by name in prefab data."""

    faction: T


@dataclass
class FactionPrey(Generic[T]):
    """The factions this faction hunts."""

    preys: list[T] = field(default_factory=list)

    def is_prey(self, other: T) -> bool:
        return other in self.preys


class Factions(dict):
    """Lookup table from faction name to faction entity."""


@dataclass
class Movement:
    velocity: Vector3 = field(default_factory=Vector3)
    max_movement_speed: float = 0.0


@dataclass
class Wander:
    angle: float = 0.0
    radius: float = 0.0

    def direction(self) -> Vector3:
        return Vector3(self.radius * math.cos(self.angle), self.radius * math.sin(self.angle), 0.0)


@dataclass
class RicochetTag:
    pass


@dataclass
class IntelligenceTag:
    pass


@dataclass
class Named:
    name: str


@dataclass
class Digestion:
    """Points of fullness lost every second."""

    nutrition_burn_rate: float = 0.0


@dataclass
class Fullness:
    max: float = 0.0
    value: float = 0.0


@dataclass
class Nutrition:
    """Nutritional value of the entity when eaten."""

    value: float = 0.0


@dataclass
class SwarmCenter:
    entities: list[int] = field(default_factory=list)


@dataclass
class SwarmBehavior:
    swarm_center: int | None = None
    attraction: float = 0.0
    deviation: float = 0.0


@dataclass
class Perception:
    range: float = 0.0


@dataclass
class DetectedEntities:
    entities: list[int] = field(default_factory=list)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping")
    return data


def _reject_unknown(data: Any, allowed: Iterable[str], what: str) -> Mapping[str, Any]:
    data = _mapping(data, what)
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValueError(f"unknown field(s) in {what}: {', '.join(unknown)}")
    return data


def _floats(data: Any, what: str, *names: str, defaults: Mapping[str, float] | None = None) -> dict[str, float]:
    data = _mapping(data, what)
    values = {}
    for name in names:
        if name in data:
            raw = data[name]
        elif defaults is not None and name in defaults:
            raw = defaults[name]
        else:
            raise ValueError(f"{what} is missing field {name!r}")
        try:
            values[name] = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{what}.{name} must be a number") from None
    return values


def _vector(data: Any, what: str) -> Vector3:
    try:
        x, y, z = (float(value) for value in data)
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be three numbers") from None
    return Vector3(x, y, z)


def _named(data: Any) -> Named:
    if isinstance(data, str):
        return Named(data)
    name = _mapping(data, "name").get("name")
    if not isinstance(name, str):
        raise ValueError("name must be a string")
    return Named(name)


_PREFAB_FIELDS = (
    "name", "graphics", "movement", "wander", "collider", "digestion",
    "combat", "intelligence_tag", "perception", "ricochet_tag",
)
_COMBAT_FIELDS = ("health", "speed", "damage", "has_faction")
_DIGESTION_FIELDS = ("fullness", "digestion", "nutrition")


@dataclass
class CreaturePrefab:
    """Everything a creature may be built from; absent parts are left off the entity."""

    name: Named | None = None
    graphics: Any = None
    movement: Movement | None = None
    wander: Wander | None = None
    collider: Circle | None = None
    fullness: Fullness | None = None
    digestion: Digestion | None = None
    nutrition: Nutrition | None = None
    health: Health | None = None
    speed: Speed | None = None
    damage: Damage | None = None
    faction: str | None = None
    intelligence_tag: IntelligenceTag | None = None
    perception: Perception | None = None
    ricochet_tag: RicochetTag | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CreaturePrefab:
        data = _reject_unknown(data, _PREFAB_FIELDS, "creature prefab")
        prefab = cls(graphics=data.get("graphics"))
        if data.get("name") is not None:
            prefab.name = _named(data["name"])
        if data.get("movement") is not None:
            movement = _mapping(data["movement"], "movement")
            if "velocity" not in movement:
                raise ValueError("movement is missing field 'velocity'")
            prefab.movement = Movement(
                velocity=_vector(movement["velocity"], "movement.velocity"),
                **_floats(movement, "movement", "max_movement_speed"),
            )
        if data.get("wander") is not None:
            prefab.wander = Wander(**_floats(data["wander"], "wander", "angle", "radius"))
        if data.get("collider") is not None:
            prefab.collider = Circle(**_floats(data["collider"], "collider", "radius"))
        if data.get("digestion") is not None:
            digestion = _reject_unknown(data["digestion"], _DIGESTION_FIELDS, "digestion")
            fullness = digestion.get("fullness")
            burn = digestion.get("digestion")
            nutrition = digestion.get("nutrition")
            prefab.fullness = Fullness() if fullness is None else Fullness(
                **_floats(fullness, "fullness", "max", "value")
            )
            prefab.digestion = Digestion() if burn is None else Digestion(
                **_floats(burn, "digestion", "nutrition_burn_rate")
            )
            prefab.nutrition = Nutrition() if nutrition is None else Nutrition(
                **_floats(nutrition, "nutrition", "value")
            )
        if data.get("combat") is not None:
            combat = _reject_unknown(data["combat"], _COMBAT_FIELDS, "combat")
            if combat.get("health") is not None:
                prefab.health = Health(**_floats(combat["health"], "health", "max_health", "value"))
            if combat.get("speed") is not None:
                prefab.speed = Speed(**_floats(combat["speed"], "speed", "attacks_per_second"))
            if combat.get("damage") is not None:
                prefab.damage = Damage(**_floats(combat["damage"], "damage", "damage"))
            if combat.get("has_faction") is not None:
                faction = _mapping(combat["has_faction"], "has_faction").get("faction")
                if not isinstance(faction, str):
                    raise ValueError("has_faction.faction must be a string")
                prefab.faction = faction
        if data.get("intelligence_tag") is not None:
            prefab.intelligence_tag = IntelligenceTag()
        if data.get("perception") is not None:
            prefab.perception = Perception(
                **_floats(data["perception"], "perception", "range", defaults={"range": 0.0})
            )
        if data.get("ricochet_tag") is not None:
            prefab.ricochet_tag = RicochetTag()
        return prefab

    def apply(self, world: World, entity: int) -> None:
        """Attach this prefab's components to ``entity``; the faction is resolved by name."""
        components = (
            self.name, self.movement, self.wander, self.collider, self.fullness,
            self.digestion, self.nutrition, self.health, self.speed, self.damage,
            self.intelligence_tag, self.perception, self.ricochet_tag,
        )
        for component in components:
            if component is not None:
                world.insert(entity, _copy(component))
        if self.faction is not None:
            faction_entity = world.resource(Factions).get(self.faction)
            if faction_entity is None:
                logger.error("Failed to load faction data for %r", self.faction)
            else:
                world.insert(entity, HasFaction(faction_entity))


def _copy(component: Any) -> Any:
    return type(component)(**vars(component))


def load_factions(world: World, definitions: Iterable[Mapping[str, Any]]) -> list[int]:
    """Create one entity per faction definition, in order, and return them.

    A faction may only name as prey the factions defined before it (or itself);
    unknown prey names are logged and skipped.
    """
    factions = world.resource(Factions)
    created = []
    for definition in definitions:
        definition = _reject_unknown(definition, ("name", "faction_preys"), "faction")
        entity = world.create_entity()
        if definition.get("name") is not None:
            named = _named(definition["name"])
            factions[named.name] = entity
            world.insert(entity, named)
        if definition.get("faction_preys") is not None:
            prey_data = _mapping(definition["faction_preys"], "faction_preys")
            names = prey_data.get("preys", [])
            preys = []
            for prey in names:
                prey_entity = factions.get(prey)
                if prey_entity is None:
                    logger.error("Failed to load faction %r", prey)
                else:
                    preys.append(prey_entity)
            world.insert(entity, FactionPrey(preys))
        created.append(entity)
    return created