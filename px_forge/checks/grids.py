"""Empty grids in shapes, prefabs and maps.

A grid with no characters, or only spaces, renders as nothing useful and is
usually a copy-paste slip (warning).
"""

from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

check = Check(name='grids', help='Empty grids in shapes, prefabs and maps.')


@check.run
def run(project: Project, report: ValidationReport) -> None:
    for assets in (project.shapes, project.prefabs, project.maps):
        for asset in assets.values():
            if asset.is_blank():
                report.warning('empty-grid', f"{asset.kind} '{asset.name}' has an empty grid")
