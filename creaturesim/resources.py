"""World-wide resources: bounds, debug drawing, the spatial grid and creature prefabs."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from math import ceil, floor
from pathlib import Path

from creaturesim.components import CreaturePrefab
from creaturesim.world import Vector3

Color = tuple[float, float, float, float]


@dataclass
class WorldBounds:
    """The rectangle creatures are kept inside."""

    left: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    top: float = 0.0


@dataclass
class DebugConfig:
    """Whether debug drawing is shown."""

    visible: bool = False


@dataclass(frozen=True)
class DebugLine:
    start: Vector3
    end: Vector3
    color: Color


def _as_vector(value: Vector3 | Iterable[float]) -> Vector3:
    if isinstance(value, Vector3):
        return value
    return Vector3(*value)


@dataclass
class DebugLines:
    """Line segments queued for debug rendering."""

    lines: list[DebugLine] = field(default_factory=list)

    def draw_line(self, start: Vector3 | Iterable[float], end: Vector3 | Iterable[float],
                  color: Iterable[float]) -> None:
        self.lines.append(DebugLine(_as_vector(start), _as_vector(end), tuple(color)))

    def draw_direction(self, origin: Vector3 | Iterable[float],
                       direction: Vector3 | Iterable[float], color: Iterable[float]) -> None:
        """Draw a segment from ``origin`` along ``direction``."""
        start = _as_vector(origin)
        self.draw_line(start, start + _as_vector(direction), color)

    def clear(self) -> None:
        self.lines.clear()


class SpatialGrid:
    """A spatial hash that speeds up neighbour searches."""

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError("cell size must be positive")
        self.cell_size = cell_size
        self._cells: dict[int, dict[int, list[int]]] = {}

    def _cell_of(self, position: Vector3) -> tuple[int, int]:
        return floor(position.x / self.cell_size), floor(position.y / self.cell_size)

    def reset(self) -> None:
        self._cells = {}

    def insert(self, entity: int, position: Vector3) -> None:
        """Put ``entity`` in the cell that holds ``position``."""
        x_cell, y_cell = self._cell_of(position)
        self._cells.setdefault(x_cell, {}).setdefault(y_cell, []).append(entity)

    def query(self, position: Vector3, range_: float) -> list[int]:
        """Entities in the cells around ``position`` that may lie within ``range_``."""
        x_cell, y_cell = self._cell_of(position)
        reach = 1 + ceil(range_ / self.cell_size)
        found: list[int] = []
        for dx in range(-reach, reach):
            column = self._cells.get(x_cell + dx)
            if column is None:
                continue
            for dy in range(-reach, reach):
                found.extend(column.get(y_cell + dy, ()))
        return found


@dataclass
class CreaturePrefabs:
    """Creature prefabs keyed by creature type."""

    prefabs: dict[str, CreaturePrefab] = field(default_factory=dict)

    def insert(self, creature_type: str, prefab: CreaturePrefab) -> None:
        self.prefabs[creature_type] = prefab

    def get(self, creature_type: str) -> CreaturePrefab | None:
        return self.prefabs.get(creature_type)

    def rekey_by_name(self) -> None:
        """Replace the keys with the name each prefab carries."""
        renamed = {}
        for key, prefab in self.prefabs.items():
            if prefab.name is None:
                raise ValueError(f"prefab {key!r} has no name")
            renamed[prefab.name.name] = prefab
        self.prefabs = renamed


def load_creature_prefabs(directory: str | Path) -> CreaturePrefabs:
    """Load every prefab file in ``directory`` and key the prefabs by creature name."""
    files = sorted(path for path in Path(directory).iterdir() if path.is_file())
    prefabs = CreaturePrefabs()
    for number, path in enumerate(files):
        with path.open(encoding="utf-8") as handle:
            data = json.load(handle)
        prefabs.insert(f"temp_prefab_{number}", CreaturePrefab.from_dict(data))
    prefabs.rekey_by_name()
    return prefabs