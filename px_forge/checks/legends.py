"""Legend references and glyph coverage.

Errors:
  - a shape legend names a stamp or brush that does not exist
  - a prefab or map legend names a shape or prefab that does not exist
    (maps may use "empty" for blank cells)

Warnings:
  - a grid character with no legend entry, no stamp glyph and no builtin
    meaning (it renders magenta in shapes and is skipped in composites)
  - a legend entry the grid never uses
"""

from px_forge.core.assets import BUILTIN_GLYPHS, GridAsset, Map, StampRef
from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

check = Check(name='legends', help='Unknown legend references, unmapped glyphs, unused entries.')


def _unused(asset: GridAsset, report: ValidationReport) -> None:
    used = set(asset.glyphs())
    for glyph in asset.legend:
        if glyph not in used:
            report.warning('unused-legend', f"{asset.kind} '{asset.name}': legend entry '{glyph}' is never used")


@check.run
def run(project: Project, report: ValidationReport) -> None:
    stamp_glyphs = {stamp.glyph for stamp in project.stamps.values() if stamp.glyph is not None}

    for shape in project.shapes.values():
        for glyph, entry in shape.legend.items():
            if isinstance(entry, StampRef):
                if entry.name not in project.stamps:
                    report.error(
                        'unknown-stamp',
                        f"shape '{shape.name}': legend '{glyph}' references unknown stamp '{entry.name}'",
                        help=f'Known stamps: {", ".join(sorted(project.stamps))}',
                    )
            elif entry.name not in project.brushes:
                report.error(
                    'unknown-brush',
                    f"shape '{shape.name}': legend '{glyph}' references unknown brush '{entry.name}'",
                    help=f'Known brushes: {", ".join(sorted(project.brushes))}',
                )
        for glyph in shape.glyphs():
            if glyph not in shape.legend and glyph not in stamp_glyphs and glyph not in BUILTIN_GLYPHS:
                report.warning(
                    'unmapped-glyph',
                    f"shape '{shape.name}': glyph '{glyph}' has no legend entry and renders as magenta",
                )
        _unused(shape, report)

    for assets in (project.prefabs, project.maps):
        for asset in assets.values():
            for glyph, ref in asset.legend.items():
                if isinstance(asset, Map) and ref == Map.EMPTY:
                    continue
                if project.composite_target(ref) is None:
                    report.error(
                        'unknown-reference',
                        f"{asset.kind} '{asset.name}': legend '{glyph}' references unknown shape or prefab '{ref}'",
                    )
            for glyph in asset.glyphs():
                if glyph != ' ' and glyph not in asset.legend:
                    report.warning(
                        'unmapped-glyph',
                        f"{asset.kind} '{asset.name}': glyph '{glyph}' has no legend entry and is left blank",
                    )
            _unused(asset, report)
