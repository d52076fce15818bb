"""Check discovery and execution.

Every module in px_forge/checks/ that defines a module-level `check` (a
Check) is registered under the check's name. run_checks() runs them over a
project in name order, or only the ones asked for, into one report.
"""

import importlib
import logging
import pkgutil
from collections.abc import Iterable

from px_forge.core.project import Project
from px_forge.core.types import Check, ValidationReport

log = logging.getLogger(__name__)

_registry: dict[str, Check] = {}


def discover() -> dict[str, Check]:
    """Import all check modules and return the registry."""
    if _registry:
        return _registry

    import px_forge.checks as pkg

    for _importer, modname, _ispkg in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda m: m.name):
        if modname.startswith('_'):
            continue
        module = importlib.import_module(f'px_forge.checks.{modname}')
        check = getattr(module, 'check', None)
        if isinstance(check, Check):
            _registry[check.name] = check
        else:
            log.debug('px_forge.checks.%s defines no check', modname)

    return _registry


def get(name: str) -> Check:
    """Get a check by name."""
    reg = discover()
    if name not in reg:
        raise KeyError(f'Unknown check: {name}. Available: {", ".join(sorted(reg))}')
    return reg[name]


def all_checks() -> dict[str, Check]:
    """Return all registered checks."""
    return discover()


def run_checks(project: Project, source: str = '', only: Iterable[str] | None = None) -> ValidationReport:
    """Run the named checks (all of them by default) and collect their diagnostics.

    Unknown names raise KeyError before anything runs.
    """
    names = sorted(set(only)) if only is not None else sorted(discover())
    checks = [get(name) for name in names]
    report = ValidationReport(source=source)
    for check in checks:
        before = len(report.diagnostics)
        check.execute(project, report)
        log.debug('check %s: %d diagnostics', check.name, len(report.diagnostics) - before)
    return report
