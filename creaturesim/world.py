"""Entity storage, vector math, transforms, timing and event channels."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from itertools import count
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Vector3:
    """An immutable three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> Vector3:
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Vector3:
        return Vector3(self.x / divisor, self.y / divisor, self.z / divisor)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalize(self) -> Vector3:
        """Return a unit vector in the same direction."""
        length = self.magnitude()
        if length == 0.0:
            raise ValueError("cannot normalize a zero vector")
        return self / length

    def rotated_z(self, angle: float) -> Vector3:
        """Return this vector rotated by ``angle`` radians about the z axis."""
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        return Vector3(
            cos_a * self.x - sin_a * self.y,
            sin_a * self.x + cos_a * self.y,
            self.z,
        )


@dataclass
class Transform:
    """Local position, scale and rotation about z, optionally relative to a parent."""

    translation: Vector3 = field(default_factory=Vector3)
    scale: Vector3 = field(default_factory=lambda: Vector3(1.0, 1.0, 1.0))
    rotation: float = 0.0
    parent: int | None = None

    def set_xyz(self, x: float, y: float, z: float) -> None:
        self.translation = Vector3(x, y, z)

    def translate(self, dx: float, dy: float) -> None:
        self.translation = self.translation + Vector3(dx, dy, 0.0)


@dataclass
class Time:
    """Frame timing; the simulated delta is the real delta times the time scale."""

    delta_real_seconds: float = 0.0
    time_scale: float = 1.0

    @property
    def delta_seconds(self) -> float:
        return self.delta_real_seconds * self.time_scale

    @property
    def delta_time(self) -> timedelta:
        return timedelta(seconds=self.delta_seconds)


class EventChannel(Generic[T]):
    """A broadcast queue; each registered reader sees events written after it registered."""

    def __init__(self) -> None:
        self._events: list[T] = []
        self._start = 0
        self._readers: dict[int, int] = {}
        self._reader_ids = count()

    def write(self, event: T) -> None:
        if self._readers:
            self._events.append(event)

    def register_reader(self) -> int:
        reader_id = next(self._reader_ids)
        self._readers[reader_id] = self._start + len(self._events)
        return reader_id

    def read(self, reader_id: int) -> list[T]:
        """Return the events this reader has not seen yet."""
        try:
            position = self._readers[reader_id]
        except KeyError:
            raise KeyError(f"unknown reader {reader_id}") from None
        events = self._events[position - self._start:]
        self._readers[reader_id] = self._start + len(self._events)
        self._trim()
        return events

    def _trim(self) -> None:
        oldest = min(self._readers.values())
        drop = oldest - self._start
        if drop > 0:
            del self._events[:drop]
            self._start = oldest


class World:
    """Holds entities, their components by type, global resources and event channels."""

    def __init__(self) -> None:
        self._ids = count()
        self._alive: set[int] = set()
        self._storages: dict[type, dict[int, Any]] = {}
        self._resources: dict[type, Any] = {}
        self._channels: dict[type, EventChannel[Any]] = {}

    def create_entity(self, *args: Any) -> int:
        """Create an entity carrying the given components and return its id."""
        entity = next(self._ids)
        self._alive.add(entity)
        for component in args:
            self.insert(entity, component)
        return entity

    def delete_entity(self, entity: int) -> None:
        if entity not in self._alive:
            raise KeyError(f"entity {entity} is not alive")
        self._alive.discard(entity)
        for storage in self._storages.values():
            storage.pop(entity, None)

    def is_alive(self, entity: int) -> bool:
        return entity in self._alive

    def insert(self, entity: int, component: Any) -> None:
        if entity not in self._alive:
            raise KeyError(f"entity {entity} is not alive")
        self._storages.setdefault(type(component), {})[entity] = component

    def remove(self, entity: int, component_type: type[T]) -> T | None:
        return self._storages.get(component_type, {}).pop(entity, None)

    def get(self, entity: int, component_type: type[T]) -> T | None:
        return self._storages.get(component_type, {}).get(entity)

    def join(self, *args: type) -> Iterator[tuple[Any, ...]]:
        """Yield ``(entity, *components)`` for every entity holding all the given types.

        Entities come in ascending id order; ones deleted or stripped during
        iteration are skipped.
        """
        if not args:
            for entity in sorted(self._alive):
                if entity in self._alive:
                    yield (entity,)
            return
        storages = [self._storages.get(component_type, {}) for component_type in args]
        smallest = min(storages, key=len)
        candidates = sorted(
            entity for entity in smallest if all(entity in storage for storage in storages)
        )
        for entity in candidates:
            if entity in self._alive and all(entity in storage for storage in storages):
                yield (entity, *(storage[entity] for storage in storages))

    def global_position(self, entity: int) -> Vector3:
        """Position of the entity after applying the transforms of all its parents."""
        transform = self.get(entity, Transform)
        if transform is None:
            raise KeyError(f"entity {entity} has no transform")
        position = transform.translation
        parent = transform.parent
        seen = {entity}
        while parent is not None:
            if parent in seen:
                raise ValueError(f"transform hierarchy of entity {entity} has a cycle")
            seen.add(parent)
            parent_transform = self.get(parent, Transform)
            if parent_transform is None:
                break
            scale = parent_transform.scale
            scaled = Vector3(position.x * scale.x, position.y * scale.y, position.z * scale.z)
            position = parent_transform.translation + scaled.rotated_z(parent_transform.rotation)
            parent = parent_transform.parent
        return position

    def add_resource(self, resource: Any) -> None:
        self._resources[type(resource)] = resource

    def resource(self, resource_type: type[T]) -> T:
        """Return the resource of this type, creating a default one if absent."""
        try:
            return self._resources[resource_type]
        except KeyError:
            pass
        try:
            instance = resource_type()
        except TypeError as exc:
            raise KeyError(f"no resource of type {resource_type.__name__}") from exc
        self._resources[resource_type] = instance
        return instance

    def events(self, event_type: type[T]) -> EventChannel[T]:
        return self._channels.setdefault(event_type, EventChannel())