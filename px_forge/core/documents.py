"""JSON project documents.

A project file is one JSON object with optional top-level arrays:

    {
      "palettes": [{"name": "hero", "inherits": "base",
                    "colours": {"skin": "#F5C9A0", "shade": "darken($skin, 20%)"},
                    "variants": {"night": {"skin": "#6B5A80"}}}],
      "stamps":   [{"name": "brick", "glyph": "B", "grid": ["$$", "$."]}],
      "brushes":  [{"name": "dots", "grid": ["AB", "BA"]}],
      "shaders":  [{"name": "crt", "palette": "hero", "variant": "night", "inherits": "default",
                    "effects": [{"type": "scanlines", "opacity": 0.2}]}],
      "shapes":   [{"name": "wall", "tags": ["solid"], "scale": 2, "grid": ["+--+", "|~~|", "+--+"],
                    "legend": {"~": {"fill": "checker", "A": "$edge", "B": "#336699"}}}],
      "prefabs":  [{"name": "room", "grid": ["WW"], "legend": {"W": "wall"}}],
      "maps":     [{"name": "level", "grid": ["R."], "legend": {"R": "room", ".": "empty"}}],
      "targets":  [{"name": "gb", "format": "png", "scale": 4, "sheet": "auto", "padding": 1}]
    }

Shape legend values are a stamp name, {"stamp": name, ...bindings} for one
brush swatch, or {"fill": name, ...bindings} for a tiled brush. Bindings are
single-letter keys mapping brush letters to `$name` or `#hex`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from px_forge.core.assets import (
    Brush,
    BrushRef,
    DitherMethod,
    Fill,
    GridAsset,
    LegendEntry,
    Map,
    Prefab,
    Shader,
    Shape,
    SheetConfig,
    Stamp,
    StampRef,
    Target,
    parse_effect,
)
from px_forge.core.errors import DocumentError, PxError
from px_forge.core.palette import PaletteDef
from px_forge.core.project import Project

log = logging.getLogger(__name__)

SECTIONS = ('palettes', 'stamps', 'brushes', 'shaders', 'shapes', 'prefabs', 'maps', 'targets')


def parse_project_file(path: str | Path) -> Project:
    """Load a project file on top of the builtin assets."""
    path = Path(path)
    if not path.is_file():
        raise DocumentError(f'Project file not found: {path}')
    log.debug('loading project %s', path)
    return parse_project_string(path.read_text(encoding='utf-8'), source=str(path))


def parse_project_string(text: str, source: str = '<string>') -> Project:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(f'{source}: invalid JSON at line {exc.lineno}: {exc.msg}') from exc
    return parse_project(data, source=source)


def parse_project(data: Any, source: str = '<string>') -> Project:
    if not isinstance(data, dict):
        raise DocumentError(f'{source}: project document must be a JSON object')
    unknown = sorted(set(data) - set(SECTIONS))
    if unknown:
        raise DocumentError(
            f'{source}: unknown sections: {", ".join(unknown)}', help=f'Sections: {", ".join(SECTIONS)}'
        )

    project = Project.with_builtins()
    for item in _section(data, 'palettes'):
        project.add_palette(_palette(item))
    for item in _section(data, 'stamps'):
        project.add_stamp(_guarded('stamp', item, _stamp))
    for item in _section(data, 'brushes'):
        project.add_brush(_guarded('brush', item, _brush))
    for item in _section(data, 'shaders'):
        project.add_shader(_guarded('shader', item, _shader))
    for item in _section(data, 'shapes'):
        project.add_shape(_guarded('shape', item, _shape))
    for item in _section(data, 'prefabs'):
        project.add_prefab(_guarded('prefab', item, lambda d: _composite(Prefab, d)))
    for item in _section(data, 'maps'):
        project.add_map(_guarded('map', item, lambda d: _composite(Map, d)))
    for item in _section(data, 'targets'):
        project.add_target(_guarded('target', item, _target))
    return project


def _section(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise DocumentError(f"'{key}' must be a list")
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get('name'), str) or not item['name']:
            raise DocumentError(f"Every entry in '{key}' must be an object with a non-empty 'name'")
    return items


def _guarded(kind: str, item: dict[str, Any], build):
    """Run a builder, re-raising any asset error with the asset named."""
    try:
        return build(item)
    except DocumentError:
        raise
    except (PxError, TypeError, ValueError, OverflowError) as exc:
        message = getattr(exc, 'message', str(exc))
        raise DocumentError(f"{kind} '{item['name']}': {message}", help=getattr(exc, 'help', None)) from exc


def _string_map(owner: str, value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise DocumentError(f'{owner}: expected an object of strings')
    return dict(value)


def _rows(owner: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split('\n')
    if not isinstance(value, list) or not all(isinstance(row, str) for row in value):
        raise DocumentError(f"{owner}: 'grid' must be a list of strings or one newline-separated string")
    return list(value)


def _palette(item: dict[str, Any]) -> PaletteDef:
    name = item['name']
    variants = item.get('variants') or {}
    if not isinstance(variants, dict):
        raise DocumentError(f"palette '{name}': 'variants' must be an object")
    return PaletteDef(
        name=name,
        definitions=_string_map(f"palette '{name}'", item.get('colours')),
        variant_definitions={v: _string_map(f"palette '{name}' variant '{v}'", d) for v, d in variants.items()},
        parent=item.get('inherits'),
    )


def _stamp(item: dict[str, Any]) -> Stamp:
    return Stamp.parse(item['name'], _rows(f"stamp '{item['name']}'", item.get('grid')), item.get('glyph'))


def _brush(item: dict[str, Any]) -> Brush:
    rows = _rows(f"brush '{item['name']}'", item.get('grid'))
    if not any(rows):
        raise DocumentError(f"brush '{item['name']}': pattern is empty")
    return Brush(item['name'], tuple(rows))


def _shader(item: dict[str, Any]) -> Shader:
    effects = item.get('effects') or []
    if not isinstance(effects, list) or not all(isinstance(e, dict) for e in effects):
        raise DocumentError(f"shader '{item['name']}': 'effects' must be a list of objects")
    return Shader(
        name=item['name'],
        palette=item.get('palette'),
        variant=item.get('variant'),
        effects=[parse_effect(effect) for effect in effects],
        inherits=item.get('inherits'),
    )


def _legend_entry(owner: str, glyph: str, value: Any) -> LegendEntry:
    if isinstance(value, str):
        return StampRef(value)
    if not isinstance(value, dict):
        raise DocumentError(f"{owner}: legend entry '{glyph}' must be a name or an object")

    name: str | None = None
    fill = False
    bindings: dict[str, str] = {}
    for key, val in value.items():
        if key in ('stamp', 'brush'):
            name, fill = val, False
        elif key == 'fill':
            name, fill = val, True
        elif len(key) == 1 and isinstance(val, str):
            bindings[key] = val
        else:
            raise DocumentError(f"{owner}: unknown legend key '{key}' for glyph '{glyph}'")
    if not isinstance(name, str) or not name:
        raise DocumentError(f"{owner}: legend entry '{glyph}' is missing a 'stamp' or 'fill' key")
    return Fill(name, bindings) if fill else BrushRef(name, bindings)


def _legend_glyphs(owner: str, legend: Any) -> dict[str, Any]:
    if legend is None:
        return {}
    if not isinstance(legend, dict):
        raise DocumentError(f"{owner}: 'legend' must be an object")
    for glyph in legend:
        if len(glyph) != 1:
            raise DocumentError(f"{owner}: legend glyph must be a single character, got '{glyph}'")
    return legend


def _common(item: dict[str, Any], owner: str) -> dict[str, Any]:
    tags = item.get('tags') or []
    if not isinstance(tags, list):
        raise DocumentError(f"{owner}: 'tags' must be a list")
    scale = item.get('scale')
    if scale is not None and (not isinstance(scale, int) or scale < 1):
        raise DocumentError(f"{owner}: 'scale' must be a positive integer")
    return {
        'name': item['name'],
        'grid': _rows(owner, item.get('grid')),
        'tags': [str(t) for t in tags],
        'scale': scale,
    }


def _shape(item: dict[str, Any]) -> Shape:
    owner = f"shape '{item['name']}'"
    legend = _legend_glyphs(owner, item.get('legend'))
    return Shape(
        legend={glyph: _legend_entry(owner, glyph, value) for glyph, value in legend.items()},
        **_common(item, owner),
    )


def _composite(cls: type[GridAsset], item: dict[str, Any]) -> GridAsset:
    owner = f"{cls.kind} '{item['name']}'"
    legend = _legend_glyphs(owner, item.get('legend'))
    if not all(isinstance(v, str) for v in legend.values()):
        raise DocumentError(f'{owner}: legend values must be asset names')
    return cls(legend=dict(legend), **_common(item, owner))


def _target(item: dict[str, Any]) -> Target:
    scale = item.get('scale')
    padding = item.get('padding')
    return Target(
        name=item['name'],
        format=item.get('format', 'png'),
        scale=int(scale) if scale is not None else None,
        sheet=SheetConfig.parse(item.get('sheet')),
        padding=int(padding) if padding is not None else None,
        palette_mode=item.get('palette_mode', 'rgba'),
        shader=item.get('shader'),
        dither=DitherMethod.parse(item.get('dither')),
    )
