"""Asset dependency graph and build ordering.

An edge A -> B means "A needs B built first". build_order() is Kahn's
algorithm seeded in registration order, so the result is deterministic for a
given project. When it cannot place every node, a depth-first search recovers
one concrete cycle for the error message.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass

from px_forge.core.errors import CycleError

log = logging.getLogger(__name__)


class AssetKind(enum.Enum):
    PALETTE = 'palette'
    STAMP = 'stamp'
    BRUSH = 'brush'
    SHADER = 'shader'
    SHAPE = 'shape'
    PREFAB = 'prefab'
    MAP = 'map'
    TARGET = 'target'


@dataclass(frozen=True)
class AssetId:
    """(kind, name). The kind partitions the namespace: a shape and a brush may share a name."""

    kind: AssetKind
    name: str

    def __str__(self) -> str:
        return f'{self.kind.value}:{self.name}'

    @classmethod
    def palette(cls, name: str) -> AssetId:
        return cls(AssetKind.PALETTE, name)

    @classmethod
    def stamp(cls, name: str) -> AssetId:
        return cls(AssetKind.STAMP, name)

    @classmethod
    def brush(cls, name: str) -> AssetId:
        return cls(AssetKind.BRUSH, name)

    @classmethod
    def shader(cls, name: str) -> AssetId:
        return cls(AssetKind.SHADER, name)

    @classmethod
    def shape(cls, name: str) -> AssetId:
        return cls(AssetKind.SHAPE, name)

    @classmethod
    def prefab(cls, name: str) -> AssetId:
        return cls(AssetKind.PREFAB, name)

    @classmethod
    def map(cls, name: str) -> AssetId:
        return cls(AssetKind.MAP, name)

    @classmethod
    def target(cls, name: str) -> AssetId:
        return cls(AssetKind.TARGET, name)


class DependencyGraph:
    def __init__(self) -> None:
        # Insertion-ordered: registration order seeds the topological sort
        self._nodes: dict[AssetId, None] = {}
        self._deps: dict[AssetId, dict[AssetId, None]] = {}
        self._dependents: dict[AssetId, dict[AssetId, None]] = {}

    def register(self, asset: AssetId) -> None:
        if asset not in self._nodes:
            self._nodes[asset] = None
            self._deps[asset] = {}
            self._dependents[asset] = {}

    def add_dependency(self, consumer: AssetId, dependency: AssetId) -> None:
        """Record that `consumer` needs `dependency`. Either end may be unregistered."""
        self._deps.setdefault(consumer, {})[dependency] = None
        self._dependents.setdefault(dependency, {})[consumer] = None

    def __contains__(self, asset: object) -> bool:
        return asset in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> list[AssetId]:
        return list(self._nodes)

    def dependencies_of(self, asset: AssetId) -> list[AssetId]:
        return list(self._deps.get(asset, {}))

    def dependents_of(self, asset: AssetId) -> list[AssetId]:
        return list(self._dependents.get(asset, {}))

    def build_order(self) -> list[AssetId]:
        """Every dependency before its consumers. Raises CycleError."""
        pending = {node: sum(1 for dep in self._deps[node] if dep in self._nodes) for node in self._nodes}
        queue = deque(node for node, count in pending.items() if count == 0)
        order: list[AssetId] = []

        while queue:
            node = queue.popleft()
            order.append(node)
            for dependent in self._dependents.get(node, {}):
                if dependent not in pending:
                    continue
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    queue.append(dependent)

        if len(order) < len(self._nodes):
            cycle = self.find_cycle()
            log.debug('build order blocked after %d of %d assets', len(order), len(self._nodes))
            raise CycleError(cycle or [])
        return order

    def find_cycle(self) -> list[AssetId] | None:
        """One concrete cycle, first node repeated at the end, or None when acyclic."""
        visited: set[AssetId] = set()
        path: list[AssetId] = []
        on_path: set[AssetId] = set()

        def visit(node: AssetId) -> list[AssetId] | None:
            visited.add(node)
            path.append(node)
            on_path.add(node)
            for dep in self._deps.get(node, {}):
                if dep not in self._nodes:
                    continue
                if dep in on_path:
                    return [*path[path.index(dep) :], dep]
                if dep not in visited:
                    found = visit(dep)
                    if found:
                        return found
            path.pop()
            on_path.discard(node)
            return None

        for node in self._nodes:
            if node not in visited:
                found = visit(node)
                if found:
                    return found
        return None
