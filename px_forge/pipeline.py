"""Build pipeline: project in, images and metadata out.

The pipeline walks the dependency order once. Palettes are built first, then
the active shader and palette are chosen, then shapes, prefabs and maps are
rendered into a write-once table so every composite finds its pieces already
rendered. A failing asset records its error and the build carries on; only a
dependency cycle or a missing target, shader or palette stops it early.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from px_forge.core.assets import DitherMethod, GridAsset, Shader, SheetMode, Target
from px_forge.core.config import Settings
from px_forge.core.errors import BuildError, CycleError, PxError
from px_forge.core.graph import AssetId, AssetKind
from px_forge.core.palette import Palette
from px_forge.core.project import Project
from px_forge.core.types import PlacementMetadata, RenderedShape
from px_forge.render import output
from px_forge.render.composite import Compositor
from px_forge.render.effects import apply_effects
from px_forge.render.quantize import QuantizeConfig, indices_to_image, quantize
from px_forge.render.shape import ShapeRenderer
from px_forge.render.sheet import SheetPacker, fit_frames

log = logging.getLogger(__name__)


class RenderedTable:
    """Name -> RenderedShape, each name published at most once."""

    def __init__(self) -> None:
        self._items: dict[str, RenderedShape] = {}

    def publish(self, name: str, rendered: RenderedShape) -> None:
        if name in self._items:
            raise BuildError(f"'{name}' was rendered twice", help='Shape and prefab names must be distinct')
        self._items[name] = rendered

    def get(self, name: str) -> RenderedShape | None:
        return self._items.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)

    def items(self):
        return self._items.items()


@dataclass
class BuildResult:
    order: list[AssetId] = field(default_factory=list)
    rendered: dict[AssetId, RenderedShape] = field(default_factory=dict)
    metadata: dict[AssetId, dict[str, Any]] = field(default_factory=dict)
    outputs: list[Path] = field(default_factory=list)
    errors: list[tuple[AssetId | None, PxError]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    shader: Shader | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def fail(self, asset: AssetId | None, error: PxError) -> None:
        log.debug('%s failed: %s', asset or 'build', error.message)
        self.errors.append((asset, error))

    def warn(self, message: str) -> None:
        log.debug('warning: %s', message)
        self.warnings.append(message)


class Pipeline:
    def __init__(self, project: Project, settings: Settings | None = None):
        self.project = project
        self.settings = settings or Settings()
        self.palettes: dict[str, Palette] = {}

    # --- configuration ------------------------------------------------------

    def target(self) -> Target:
        name = self.settings.target
        target = self.project.targets.get(name)
        if target is None:
            raise BuildError(
                f'Unknown target: {name}',
                help=f'Available targets: {", ".join(sorted(self.project.targets))}',
            )
        return target

    def resolve_shader(self, name: str) -> Shader:
        """The named shader merged with all of its ancestors."""
        shader = self.project.shaders.get(name)
        if shader is None:
            raise BuildError(
                f'Unknown shader: {name}',
                help=f'Available shaders: {", ".join(sorted(self.project.shaders))}',
            )
        seen = {name}
        while shader.inherits:
            parent = self.project.shaders.get(shader.inherits)
            if parent is None:
                raise BuildError(f"Shader '{name}' inherits unknown shader '{shader.inherits}'")
            if parent.name in seen:
                raise BuildError(f"Shader '{name}' has circular inheritance through '{parent.name}'")
            seen.add(parent.name)
            shader = shader.merged(parent)
        return shader

    def scale_for(self, asset: GridAsset, target: Target) -> int:
        explicit = self.settings.scale
        if explicit is not None and explicit > 1:
            return explicit
        return asset.scale or target.scale or 1

    def sheet_scale(self, target: Target) -> int:
        return self.settings.scale or target.scale or 1

    def dither(self, target: Target) -> DitherMethod:
        return self.settings.dither or target.dither

    # --- stages -------------------------------------------------------------

    def build_palettes(self, order: list[AssetId], result: BuildResult) -> None:
        for asset in order:
            if asset.kind is not AssetKind.PALETTE:
                continue
            definition = self.project.palettes[asset.name]
            try:
                parent = None
                if definition.parent:
                    parent = self.palettes.get(definition.parent)
                    if parent is None:
                        reason = 'failed to build' if definition.parent in self.project.palettes else 'does not exist'
                        raise BuildError(
                            f"Palette '{asset.name}' inherits '{definition.parent}', which {reason}"
                        )
                self.palettes[asset.name] = definition.build(parent)
            except PxError as exc:
                result.fail(asset, exc)

    def render_assets(
        self, order: list[AssetId], renderer: ShapeRenderer, result: BuildResult
    ) -> dict[AssetId, PlacementMetadata]:
        table = RenderedTable()
        placements: dict[AssetId, PlacementMetadata] = {}
        compositor = Compositor(table)
        for asset in order:
            try:
                if asset.kind is AssetKind.SHAPE:
                    rendered = renderer.render(self.project.shapes[asset.name])
                    table.publish(asset.name, rendered)
                elif asset.kind in (AssetKind.PREFAB, AssetKind.MAP):
                    grid = self._grid(asset)
                    rendered, meta = compositor.render(grid)
                    placements[asset] = meta
                    # Maps are never placed inside other composites
                    if asset.kind is AssetKind.PREFAB:
                        table.publish(asset.name, rendered)
                else:
                    continue
            except PxError as exc:
                result.fail(asset, exc)
                continue
            result.rendered[asset] = rendered
            log.debug('rendered %s (%dx%d)', asset, rendered.width, rendered.height)
        return placements

    def _grid(self, asset: AssetId) -> GridAsset:
        if asset.kind is AssetKind.SHAPE:
            return self.project.shapes[asset.name]
        if asset.kind is AssetKind.PREFAB:
            return self.project.prefabs[asset.name]
        return self.project.maps[asset.name]

    def _tags_by_name(self) -> dict[str, list[str]]:
        tags = {name: shape.tags for name, shape in self.project.shapes.items()}
        for name, prefab in self.project.prefabs.items():
            tags.setdefault(name, prefab.tags)
        return tags

    def collect_metadata(self, placements: dict[AssetId, PlacementMetadata], result: BuildResult) -> None:
        tags_by_name = self._tags_by_name()
        for asset, rendered in result.rendered.items():
            grid = self._grid(asset)
            if asset in placements:
                result.metadata[asset] = output.composite_metadata(placements[asset], grid.tags, tags_by_name)
            else:
                result.metadata[asset] = output.shape_metadata(asset.name, rendered.size, grid.tags)

    def _finish(self, image: RenderedShape, shader: Shader, target: Target) -> RenderedShape:
        """Output-time processing: shader effects, then indexed colour for indexed png targets."""
        image = apply_effects(image, shader.effects)
        if target.format == 'png' and target.palette_mode == 'indexed':
            indices = quantize(image.pixels, QuantizeConfig(self.dither(target)))
            image = indices_to_image(image.name, indices, transparent=image.pixels[..., 3] == 0)
        return image

    def write_outputs(self, shader: Shader, target: Target, result: BuildResult) -> None:
        out_dir = self.settings.output_dir
        sheet_mode = self.settings.sheet or target.sheet.enabled or target.format == 'p8'

        if not sheet_mode:
            for asset, rendered in result.rendered.items():
                grid = self._grid(asset)
                image = self._finish(rendered, shader, target)
                scale = self.scale_for(grid, target)
                result.outputs.append(output.write_png(image, out_dir / f'{asset.name}.png', scale))
                result.outputs.append(output.write_metadata(result.metadata[asset], out_dir / f'{asset.name}.json'))
            return

        sprites = [r for a, r in result.rendered.items() if a.kind in (AssetKind.SHAPE, AssetKind.PREFAB)]
        padding = self.settings.padding if self.settings.padding is not None else (target.padding or 0)
        sheet, frames = SheetPacker(padding).pack(sprites)

        if target.format == 'p8':
            width, height = output.P8_SIZE, output.P8_SIZE
            if target.sheet.mode is SheetMode.FIXED:
                width, height = min(width, target.sheet.width), min(height, target.sheet.height)
            _inside, truncated = fit_frames(frames, width, height)
            for frame in truncated:
                result.warn(f"'{frame.name}' does not fit in the {width}x{height} cartridge sheet and is truncated")
            image = apply_effects(sheet, shader.effects)
            config = QuantizeConfig(self.dither(target), transparent_index=0)
            result.outputs.append(output.write_p8(image, out_dir / 'sheet.p8', config))
            return

        if not sprites:
            result.warn('Nothing to pack: no shapes or prefabs were rendered')
            return
        if target.sheet.mode is SheetMode.FIXED:
            _inside, truncated = fit_frames(frames, target.sheet.width, target.sheet.height)
            for frame in truncated:
                result.warn(f"'{frame.name}' lies outside the fixed {target.sheet.width}x{target.sheet.height} sheet")
        scale = self.sheet_scale(target)
        image = self._finish(sheet, shader, target)
        result.outputs.append(output.write_png(image, out_dir / 'sheet.png', scale))
        result.outputs.append(output.write_atlas(frames, sheet.size, out_dir / 'sheet.json', 'sheet.png', scale))

    # --- driver -------------------------------------------------------------

    def run(self, write: bool = True) -> BuildResult:
        result = BuildResult()
        try:
            result.order = self.project.build_order()
        except CycleError as exc:
            result.fail(None, exc)
            return result

        self.build_palettes(result.order, result)

        try:
            target = self.target()
            shader = self.resolve_shader(self.settings.shader or target.shader or 'default')
            palette_name = shader.palette or 'default'
            palette = self.palettes.get(palette_name)
            if palette is None:
                reason = 'failed to build' if palette_name in self.project.palettes else 'does not exist'
                raise BuildError(f"Shader '{shader.name}' uses palette '{palette_name}', which {reason}")
        except BuildError as exc:
            result.fail(None, exc)
            return result

        result.shader = shader
        if shader.variant and not palette.has_variant(shader.variant):
            result.warn(f"Palette '{palette.name}' has no variant '{shader.variant}'; using base colours")

        renderer = ShapeRenderer(palette, self.project.stamps, self.project.brushes, shader.variant)
        placements = self.render_assets(result.order, renderer, result)
        self.collect_metadata(placements, result)

        if write:
            try:
                self.write_outputs(shader, target, result)
            except OSError as exc:
                result.fail(None, BuildError(f'Could not write output: {exc}'))
        return result
