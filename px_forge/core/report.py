"""Report builder: text and JSON output for build and validation results."""

import json
from typing import TYPE_CHECKING, Any

from px_forge.core.types import Severity, ValidationReport

if TYPE_CHECKING:
    from px_forge.pipeline import BuildResult

_MARKS = {Severity.ERROR: '✗', Severity.WARNING: '!'}


def format_validation_text(report: ValidationReport) -> str:
    """Format validation diagnostics as human-readable text."""
    lines = [f'px-forge validate: {report.source}' if report.source else 'px-forge validate', '']
    for diag in report.diagnostics:
        lines.append(f'{_MARKS[diag.severity]} {diag.severity.value}[{diag.code}]: {diag.message}')
        if diag.help:
            lines.append(f'    help: {diag.help}')
    if report.diagnostics:
        lines.append('')
    counts = f'{len(report.errors)} error(s), {len(report.warnings)} warning(s)'
    lines.append(f'{counts} from {len(report.checks_run)} checks')
    return '\n'.join(lines)


def format_validation_json(report: ValidationReport) -> str:
    obj: dict[str, Any] = {
        'source': report.source,
        'checks': report.checks_run,
        'diagnostics': [
            {'severity': d.severity.value, 'code': d.code, 'message': d.message, 'help': d.help}
            for d in report.diagnostics
        ],
        'summary': {'errors': len(report.errors), 'warnings': len(report.warnings), 'ok': report.ok},
    }
    return json.dumps(obj, indent=2)


def format_build_text(result: 'BuildResult') -> str:
    """Format a build result as human-readable text."""
    lines = []
    for asset, rendered in result.rendered.items():
        lines.append(f'  {str(asset):<28} {rendered.width}×{rendered.height}')
    for path in result.outputs:
        lines.append(f'  wrote {path}')
    for message in result.warnings:
        lines.append(f'! warning: {message}')
    for asset, error in result.errors:
        where = f'{asset}: ' if asset else ''
        lines.append(f'✗ error: {where}{error.message}')
        if error.help:
            lines.append(f'    help: {error.help}')
    status = 'OK' if result.ok else 'FAILED'
    counts = f'{len(result.rendered)} rendered, {len(result.outputs)} file(s), {len(result.errors)} error(s)'
    lines.append(f'{status}: {counts}')
    return '\n'.join(lines)


def format_build_json(result: 'BuildResult') -> str:
    obj: dict[str, Any] = {
        'ok': result.ok,
        'order': [str(asset) for asset in result.order],
        'rendered': {str(asset): list(r.size) for asset, r in result.rendered.items()},
        'outputs': [str(path) for path in result.outputs],
        'warnings': result.warnings,
        'errors': [
            {'asset': str(asset) if asset else None, 'message': error.message, 'help': error.help}
            for asset, error in result.errors
        ],
    }
    return json.dumps(obj, indent=2)
