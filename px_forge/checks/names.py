"""Names shared by a shape and a prefab.

Warnings:
  - a shape and a prefab with the same name. A prefab or map legend naming
    it always places the shape, and the build fails when the prefab is
    rendered under a name that is already taken.
"""

from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

check = Check(name='names', help='Shapes and prefabs sharing a name.')


@check.run
def run(project: Project, report: ValidationReport) -> None:
    for name in sorted(set(project.shapes) & set(project.prefabs)):
        report.warning(
            'duplicate-name',
            f"Name '{name}' is used for both a shape and a prefab",
            help='Use distinct names so legend references are unambiguous',
        )
