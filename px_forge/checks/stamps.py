"""Stamp glyph clashes and mixed stamp sizes.

Two stamps declaring the same glyph (warning): only the first registered one
is ever used for that glyph, builtins first. User stamps of different sizes
in one project (warning): shapes render one pixel per cell, so mixed sizes
usually mean a stamp was drawn at the wrong resolution.
"""

from px_forge.core.assets import BUILTIN_STAMPS
from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

check = Check(name='stamps', help='Duplicate stamp glyphs and mixed stamp sizes.')


@check.run
def run(project: Project, report: ValidationReport) -> None:
    by_glyph: dict[str, list[str]] = {}
    for stamp in project.stamps.values():
        if stamp.glyph is not None:
            by_glyph.setdefault(stamp.glyph, []).append(stamp.name)
    for glyph, names in by_glyph.items():
        if len(names) > 1:
            report.warning(
                'duplicate-glyph',
                f"Glyph '{glyph}' is declared by stamps {', '.join(names)}; '{names[0]}' wins",
                help='Give each stamp a distinct glyph or reference it through a legend',
            )

    sizes: dict[tuple[int, int], list[str]] = {}
    for stamp in project.stamps.values():
        if stamp not in BUILTIN_STAMPS:
            sizes.setdefault(stamp.size, []).append(stamp.name)
    if len(sizes) > 1:
        summary = '; '.join(f'{w}x{h}: {", ".join(names)}' for (w, h), names in sorted(sizes.items()))
        report.warning('mixed-stamp-sizes', f'Stamps have different sizes ({summary})')
