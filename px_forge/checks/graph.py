"""Dependency cycles between assets.

Reports one concrete cycle (error). A project with a cycle cannot be built,
because no asset on the loop can be rendered before the others.

Example:
    px-forge validate project.json
"""

from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

check = Check(name='graph', help='Dependency cycles between assets.')


@check.run
def run(project: Project, report: ValidationReport) -> None:
    cycle = project.graph().find_cycle()
    if cycle:
        path = ' -> '.join(str(asset) for asset in cycle)
        report.error(
            'dependency-cycle',
            f'Circular dependency detected: {path}',
            help='Break the loop by removing one of the references',
        )
