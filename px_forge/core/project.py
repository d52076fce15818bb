"""Project registry: every asset of one build, keyed by kind and name.

Builtins are registered first and user assets second, so a user asset with a
builtin's name replaces it. Registration and edge recording never fail;
dangling references are left for the validation checks and the renderer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from px_forge.core.assets import (
    BUILTIN_BRUSHES,
    BUILTIN_STAMPS,
    BUILTIN_TARGETS,
    DEFAULT_SHADER,
    Brush,
    BrushRef,
    Fill,
    Map,
    Prefab,
    Shader,
    Shape,
    Stamp,
    StampRef,
    Target,
)
from px_forge.core.graph import AssetId, DependencyGraph
from px_forge.core.palette import DEFAULT_PALETTE, PaletteDef

log = logging.getLogger(__name__)


@dataclass
class Project:
    palettes: dict[str, PaletteDef] = field(default_factory=dict)
    stamps: dict[str, Stamp] = field(default_factory=dict)
    brushes: dict[str, Brush] = field(default_factory=dict)
    shaders: dict[str, Shader] = field(default_factory=dict)
    shapes: dict[str, Shape] = field(default_factory=dict)
    prefabs: dict[str, Prefab] = field(default_factory=dict)
    maps: dict[str, Map] = field(default_factory=dict)
    targets: dict[str, Target] = field(default_factory=dict)

    @classmethod
    def with_builtins(cls) -> Project:
        project = cls()
        project.add_palette(DEFAULT_PALETTE)
        for stamp in BUILTIN_STAMPS:
            project.add_stamp(stamp)
        for brush in BUILTIN_BRUSHES:
            project.add_brush(brush)
        project.add_shader(DEFAULT_SHADER)
        for target in BUILTIN_TARGETS:
            project.add_target(target)
        return project

    def add_palette(self, palette: PaletteDef) -> None:
        self.palettes[palette.name] = palette

    def add_stamp(self, stamp: Stamp) -> None:
        self.stamps[stamp.name] = stamp

    def add_brush(self, brush: Brush) -> None:
        self.brushes[brush.name] = brush

    def add_shader(self, shader: Shader) -> None:
        self.shaders[shader.name] = shader

    def add_shape(self, shape: Shape) -> None:
        self.shapes[shape.name] = shape

    def add_prefab(self, prefab: Prefab) -> None:
        self.prefabs[prefab.name] = prefab

    def add_map(self, map_: Map) -> None:
        self.maps[map_.name] = map_

    def add_target(self, target: Target) -> None:
        self.targets[target.name] = target

    def composite_target(self, name: str) -> AssetId | None:
        """What a prefab/map legend name points at: a shape first, then a prefab."""
        if name in self.shapes:
            return AssetId.shape(name)
        if name in self.prefabs:
            return AssetId.prefab(name)
        return None

    def graph(self) -> DependencyGraph:
        """Register every asset, then record one edge per cross-reference."""
        graph = DependencyGraph()
        for name in self.palettes:
            graph.register(AssetId.palette(name))
        for name in self.stamps:
            graph.register(AssetId.stamp(name))
        for name in self.brushes:
            graph.register(AssetId.brush(name))
        for name in self.shaders:
            graph.register(AssetId.shader(name))
        for name in self.shapes:
            graph.register(AssetId.shape(name))
        for name in self.prefabs:
            graph.register(AssetId.prefab(name))
        for name in self.maps:
            graph.register(AssetId.map(name))
        for name in self.targets:
            graph.register(AssetId.target(name))

        for name, palette in self.palettes.items():
            if palette.parent:
                graph.add_dependency(AssetId.palette(name), AssetId.palette(palette.parent))

        for name, shader in self.shaders.items():
            if shader.palette:
                graph.add_dependency(AssetId.shader(name), AssetId.palette(shader.palette))
            if shader.inherits:
                graph.add_dependency(AssetId.shader(name), AssetId.shader(shader.inherits))

        for name, shape in self.shapes.items():
            for entry in shape.legend.values():
                if isinstance(entry, StampRef) and entry.name in self.stamps:
                    graph.add_dependency(AssetId.shape(name), AssetId.stamp(entry.name))
                elif isinstance(entry, (BrushRef, Fill)) and entry.name in self.brushes:
                    graph.add_dependency(AssetId.shape(name), AssetId.brush(entry.name))

        for name, prefab in self.prefabs.items():
            for ref in prefab.referenced_names():
                dependency = self.composite_target(ref)
                if dependency is not None:
                    graph.add_dependency(AssetId.prefab(name), dependency)

        for name, map_ in self.maps.items():
            for ref in map_.referenced_names():
                if ref == Map.EMPTY:
                    continue
                dependency = self.composite_target(ref)
                if dependency is not None:
                    graph.add_dependency(AssetId.map(name), dependency)

        log.debug('dependency graph: %d assets', len(graph))
        return graph

    def build_order(self) -> list[AssetId]:
        return self.graph().build_order()
