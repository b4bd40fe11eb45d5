"""Attacks, cooldowns, health, digestion and starvation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

from creaturesim.components import (
    Cooldown,
    Damage,
    FactionPrey,
    Fullness,
    HasFaction,
    Health,
    Nutrition,
    Speed,
    Digestion,
)
from creaturesim.physics import EPSILON, CollisionEvent
from creaturesim.resources import DebugLines
from creaturesim.world import Time, Transform, World

_BAR_COLOR = (0.0, 1.0, 0.0, 1.0)


@dataclass(frozen=True)
class AttackEvent:
    attacker: int
    defender: int


def _cooldown_for(speed: Speed) -> Cooldown:
    """A cooldown lasting one attack period, in whole milliseconds."""
    rate = speed.attacks_per_second
    if rate == 0.0:
        millis = math.inf
    else:
        millis = 1000.0 / rate
    if math.isnan(millis) or millis <= 0.0:
        return Cooldown(timedelta())
    max_millis = timedelta.max // timedelta(milliseconds=1)
    if millis >= max_millis:
        return Cooldown(timedelta.max)
    return Cooldown(timedelta(milliseconds=int(millis)))


def cooldown_system(world: World) -> None:
    """Count cooldowns down; remove those that run out."""
    delta = world.resource(Time).delta_time
    expired = []
    for entity, cooldown in world.join(Cooldown):
        if cooldown.time_left < delta:
            expired.append(entity)
        else:
            cooldown.time_left -= delta
    for entity in expired:
        world.remove(entity, Cooldown)


class PerformDefaultAttackSystem:
    """Apply attack events: damage the defender, feed the attacker on a kill, start a cooldown."""

    def __init__(self) -> None:
        self._reader: int | None = None

    def setup(self, world: World) -> None:
        self._reader = world.events(AttackEvent).register_reader()

    def run(self, world: World) -> None:
        if self._reader is None:
            raise RuntimeError("PerformDefaultAttackSystem.setup was not called before run")
        for event in world.events(AttackEvent).read(self._reader):
            cooldown = None
            damage = world.get(event.attacker, Damage)
            speed = world.get(event.attacker, Speed)
            ready = world.get(event.attacker, Cooldown) is None
            if damage is not None and speed is not None and ready:
                health = world.get(event.defender, Health)
                if health is not None:
                    health.value -= damage.damage
                    cooldown = _cooldown_for(speed)

            fullness = world.get(event.attacker, Fullness)
            defender_health = world.get(event.defender, Health)
            nutrition = world.get(event.defender, Nutrition)
            if (
                fullness is not None
                and defender_health is not None
                and nutrition is not None
                and defender_health.value < EPSILON
            ):
                fullness.value += nutrition.value

            if cooldown is not None and world.is_alive(event.attacker):
                world.insert(event.attacker, cooldown)


class FindAttackSystem:
    """Turn collisions between a hunter's faction and its prey's faction into attack events."""

    def __init__(self) -> None:
        self._reader: int | None = None

    def setup(self, world: World) -> None:
        self._reader = world.events(CollisionEvent).register_reader()

    def run(self, world: World) -> None:
        if self._reader is None:
            raise RuntimeError("FindAttackSystem.setup was not called before run")
        attacks = world.events(AttackEvent)
        for event in world.events(CollisionEvent).read(self._reader):
            faction_a = world.get(event.entity_a, HasFaction)
            faction_b = world.get(event.entity_b, HasFaction)
            if faction_a is None or faction_b is None:
                continue
            preys_a = world.get(faction_a.faction, FactionPrey)
            if preys_a is not None and preys_a.is_prey(faction_b.faction):
                attacks.write(AttackEvent(event.entity_a, event.entity_b))
            preys_b = world.get(faction_b.faction, FactionPrey)
            if preys_b is not None and preys_b.is_prey(faction_a.faction):
                attacks.write(AttackEvent(event.entity_b, event.entity_a))


def death_by_health_system(world: World) -> None:
    """Delete entities whose health reached zero or less."""
    for entity, health in list(world.join(Health)):
        if health.value < EPSILON and world.is_alive(entity):
            world.delete_entity(entity)


def debug_health_system(world: World) -> None:
    """Draw a health bar above each entity."""
    debug_lines = world.resource(DebugLines)
    for entity, health, _ in world.join(Health, Transform):
        pos = world.global_position(entity)
        debug_lines.draw_line(
            (pos.x, pos.y + 0.5, 0.0),
            (pos.x + health.value / 100.0, pos.y + 0.5, 0.0),
            _BAR_COLOR,
        )


def digestion_system(world: World) -> None:
    """Burn fullness at each entity's digestion rate."""
    delta = world.resource(Time).delta_seconds
    for _, digestion, fullness in world.join(Digestion, Fullness):
        fullness.value -= digestion.nutrition_burn_rate * delta


def starvation_system(world: World) -> None:
    """Delete entities whose fullness reached zero or less."""
    for entity, fullness in list(world.join(Fullness)):
        if fullness.value < EPSILON and world.is_alive(entity):
            world.delete_entity(entity)


def debug_fullness_system(world: World) -> None:
    """Draw a fullness bar at each entity."""
    debug_lines = world.resource(DebugLines)
    for entity, fullness, _ in world.join(Fullness, Transform):
        pos = world.global_position(entity)
        debug_lines.draw_line(
            (pos.x, pos.y, 0.0),
            (pos.x + fullness.value / 100.0, pos.y, 0.0),
            _BAR_COLOR,
        )