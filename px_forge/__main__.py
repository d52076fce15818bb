"""px-forge — compile text-described pixel art into images, sheets and cartridges.

Usage: px-forge <command> PROJECT [options]

A project is one JSON document of palettes, stamps, brushes, shaders,
shapes, prefabs, maps and targets (see px_forge.core.documents).
Validation checks are auto-discovered from px_forge/checks/.
Run `px-forge help <check>` for full check docs.

Environment variables / .env loading:
  OS environment variables are always used first.
  If a variable is not set, px-forge looks for a .env file starting from
  the project file's directory (or the cwd) and walking up, stopping at
  the nearest .git boundary.
  Use --env-file to override the .env location explicitly.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path

from px_forge import registry
from px_forge.core.assets import DitherMethod
from px_forge.core.config import Settings
from px_forge.core.documents import parse_project_file
from px_forge.core.env import load_env
from px_forge.core.errors import CycleError, PxError
from px_forge.core.logging_config import setup_logging
from px_forge.core.project import Project
from px_forge.core.report import format_build_json, format_build_text, format_validation_json, format_validation_text
from px_forge.pipeline import BuildResult, Pipeline

log = logging.getLogger('px_forge.cli')


def _load_check_module(name: str) -> object:
    """Load the raw module for a check (for docstring access)."""
    return importlib.import_module(f'px_forge.checks.{name}')


def _short_doc(name: str, fallback: str) -> str:
    doc = (_load_check_module(name).__doc__ or '').strip()
    return doc.splitlines()[0] if doc else fallback


def _build_parser() -> argparse.ArgumentParser:
    epilog = (
        'Examples:\n'
        '  px-forge build sprites.json\n'
        '  px-forge build sprites.json --target sheet --scale 4 -o dist/\n'
        '  px-forge build sprites.json --target p8 --dither floyd-steinberg\n'
        '  px-forge validate sprites.json --json\n'
        '  px-forge validate sprites.json --check legends --check names\n'
        '  px-forge order sprites.json\n'
        '  px-forge palette sprites.json hero --variant night\n'
        '  px-forge help legends\n'
        '\n'
        'Settings env vars (set in .env or environment):\n'
        '  PX_FORGE_OUTPUT     output directory (default: dist)\n'
        '  PX_FORGE_TARGET     target profile (default: web)\n'
        '  PX_FORGE_SHADER     shader name\n'
        '  PX_FORGE_DITHER     none | ordered | floyd-steinberg\n'
        '  PX_FORGE_LOG_LEVEL  DEBUG | INFO | WARNING | ERROR (default: WARNING)\n'
    )
    parser = argparse.ArgumentParser(
        prog='px-forge',
        description='Compile text-described pixel art into images, sprite sheets and cartridges.',
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        '--env-file',
        metavar='PATH',
        default=None,
        help='Path to .env file (default: walk up from cwd to .git boundary)',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug output to stderr')
    sub = parser.add_subparsers(dest='command', help='Command to run')

    build = sub.add_parser('build', help='Render every asset and write outputs')
    build.add_argument('project', help='Path to the project JSON document')
    build.add_argument('-o', '--output', metavar='DIR', help='Output directory (default: $PX_FORGE_OUTPUT or dist)')
    build.add_argument('-t', '--target', help='Target profile: web, sheet, p8, or one defined by the project')
    build.add_argument('-s', '--shader', help='Shader to render with (default: the target\'s, then "default")')
    build.add_argument(
        '--scale', type=int, metavar='N', help='Integer upscale factor; overrides per-asset scale when > 1'
    )
    build.add_argument('--sheet', action='store_true', help='Pack shapes and prefabs into one sprite sheet')
    build.add_argument('--padding', type=int, metavar='N', help='Pixels between sprites in a packed sheet')
    build.add_argument('--dither', help='none | ordered | floyd-steinberg (for indexed and p8 output)')
    build.add_argument('--validate', action='store_true', help='Run validation checks first; stop on errors')
    build.add_argument('-j', '--json', action='store_true', help='Output JSON instead of text')

    validate = sub.add_parser('validate', help='Run every validation check')
    validate.add_argument('project', help='Path to the project JSON document')
    validate.add_argument('-j', '--json', action='store_true', help='Output JSON instead of text')
    validate.add_argument(
        '-c', '--check', action='append', metavar='NAME', help='Run only this check (repeatable)'
    )

    order = sub.add_parser('order', help='Print the dependency build order')
    order.add_argument('project', help='Path to the project JSON document')

    palette = sub.add_parser('palette', help='Print the resolved colours of one palette')
    palette.add_argument('project', help='Path to the project JSON document')
    palette.add_argument('name', help='Palette name')
    palette.add_argument('--variant', help='Apply this variant overlay')

    sub.add_parser('checks', help='List validation checks')

    help_parser = sub.add_parser('help', help='Print full docs for a check')
    help_parser.add_argument('check', nargs='?', help='Check name')

    return parser


def _print_help(name: str | None) -> None:
    """Print full module docstring for a check."""
    checks = registry.all_checks()

    if name is None:
        print('Available checks:\n')
        for check_name, check in sorted(checks.items()):
            print(f'  {check_name:<10} {_short_doc(check_name, check.help)}')
        print('\nRun: px-forge help <check> for full docs.')
        return

    if name not in checks:
        print(f'Unknown check: {name}', file=sys.stderr)
        print(f'Available: {", ".join(sorted(checks))}', file=sys.stderr)
        sys.exit(1)

    doc = (_load_check_module(name).__doc__ or '').strip()
    if not doc:
        print(f'(No module docs for {name!r})')
        return
    print(doc)


def _load_project(path: str) -> Project:
    try:
        return parse_project_file(path)
    except PxError as exc:
        print(f'Error: {exc.message}', file=sys.stderr)
        if exc.help:
            print(f'  help: {exc.help}', file=sys.stderr)
        sys.exit(1)


def _cmd_validate(args: argparse.Namespace) -> None:
    project = _load_project(args.project)
    try:
        report = registry.run_checks(project, args.project, only=args.check)
    except KeyError as exc:
        print(f'Error: {exc.args[0]}', file=sys.stderr)
        sys.exit(1)
    print(format_validation_json(report) if args.json else format_validation_text(report))
    if not report.ok:
        sys.exit(1)


def _cmd_build(args: argparse.Namespace, settings: Settings) -> None:
    project = _load_project(args.project)

    if args.validate:
        report = registry.run_checks(project, args.project)
        if not report.ok:
            print(format_validation_text(report), file=sys.stderr)
            sys.exit(1)

    settings = settings.override(
        output_dir=Path(args.output) if args.output else None,
        target=args.target,
        shader=args.shader,
        scale=args.scale,
        sheet=args.sheet or None,
        padding=args.padding,
        dither=DitherMethod.parse(args.dither) if args.dither else None,
    )
    result: BuildResult = Pipeline(project, settings).run()
    print(format_build_json(result) if args.json else format_build_text(result))
    if not result.ok:
        sys.exit(1)


def _cmd_order(args: argparse.Namespace) -> None:
    project = _load_project(args.project)
    try:
        order = project.build_order()
    except CycleError as exc:
        print(f'Error: {exc.message}', file=sys.stderr)
        sys.exit(1)
    for i, asset in enumerate(order, 1):
        print(f'{i:>4}  {asset}')


def _cmd_palette(args: argparse.Namespace) -> None:
    project = _load_project(args.project)
    if args.name not in project.palettes:
        print(f'Unknown palette: {args.name}', file=sys.stderr)
        print(f'Available: {", ".join(sorted(project.palettes))}', file=sys.stderr)
        sys.exit(1)
    try:
        order = project.build_order()
    except CycleError as exc:
        print(f'Error: {exc.message}', file=sys.stderr)
        sys.exit(1)

    pipeline = Pipeline(project)
    result = BuildResult()
    pipeline.build_palettes(order, result)
    palette = pipeline.palettes.get(args.name)
    if palette is None:
        for asset, error in result.errors:
            print(f'Error: {asset}: {error.message}', file=sys.stderr)
        sys.exit(1)
    if args.variant and not palette.has_variant(args.variant):
        print(f"Palette '{args.name}' has no variant '{args.variant}'", file=sys.stderr)
        sys.exit(1)

    title = f'{palette.name} ({args.variant})' if args.variant else palette.name
    print(title)
    names = list(palette.colours)
    if args.variant:
        names += [n for n in palette.variants[args.variant] if n not in palette.colours]
    for name in names:
        print(f'  ${name:<16} {palette.get(name, args.variant)}')


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Load .env before anything else; OS env vars always win
    project = getattr(args, 'project', None)
    env_path = load_env(env_file=args.env_file, start=Path(project) if project else None)
    settings = Settings.from_env()
    setup_logging('DEBUG' if args.verbose else settings.log_level)
    if env_path:
        log.info('loaded %s', env_path)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == 'help':
        _print_help(args.check)
    elif args.command == 'checks':
        for name, check in sorted(registry.all_checks().items()):
            print(f'  {name:<10} {check.help}')
    elif args.command == 'validate':
        _cmd_validate(args)
    elif args.command == 'build':
        _cmd_build(args, settings)
    elif args.command == 'order':
        _cmd_order(args)
    elif args.command == 'palette':
        _cmd_palette(args)


if __name__ == '__main__':
    main()
