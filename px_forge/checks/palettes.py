"""Palette builds, shader palette references and brush colour bindings.

Errors:
  - a palette fails to build (bad expression, undefined or circular colour,
    unknown parent)
  - a shader names a palette or parent shader that does not exist

Warnings:
  - a brush binding in a shape legend names a colour that no palette defines,
    or is a malformed hex literal; that letter renders transparent
"""

from px_forge.core.assets import BrushRef, Fill
from px_forge.core.colour import Colour
from px_forge.core.errors import CycleError, ExpressionError
from px_forge.core.expr import strip_sigil
from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport
from px_forge.pipeline import BuildResult, Pipeline

check = Check(name='palettes', help='Palette build failures, unknown shader palettes, unbound brush colours.')


def _binding_ok(value: str, known: set[str]) -> bool:
    value = value.strip()
    if value.startswith('#'):
        try:
            Colour.from_hex(value)
        except ExpressionError:
            return False
        return True
    return strip_sigil(value) in known


@check.run
def run(project: Project, report: ValidationReport) -> None:
    pipeline = Pipeline(project)
    try:
        order = project.build_order()
    except CycleError:
        # Reported by the graph check; nothing can be built in order
        return

    result = BuildResult()
    pipeline.build_palettes(order, result)
    for asset, error in result.errors:
        report.error('palette-build', f"palette '{asset.name}': {error.message}", help=error.help)

    for shader in project.shaders.values():
        if shader.palette and shader.palette not in project.palettes:
            report.error(
                'unknown-palette',
                f"shader '{shader.name}' uses unknown palette '{shader.palette}'",
                help=f'Known palettes: {", ".join(sorted(project.palettes))}',
            )
        if shader.inherits and shader.inherits not in project.shaders:
            report.error('unknown-shader', f"shader '{shader.name}' inherits unknown shader '{shader.inherits}'")

    known: set[str] = set()
    for palette in pipeline.palettes.values():
        known |= set(palette.colours)
        for overlay in palette.variants.values():
            known |= set(overlay)

    for shape in project.shapes.values():
        for glyph, entry in shape.legend.items():
            if not isinstance(entry, (BrushRef, Fill)):
                continue
            for letter, value in entry.bindings.items():
                if not _binding_ok(value, known):
                    report.warning(
                        'unbound-colour',
                        f"shape '{shape.name}': legend '{glyph}' binds '{letter}' to '{value}', "
                        'which no palette defines',
                    )
