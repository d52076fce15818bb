"""`.env` support for px-forge settings.

Variables already in the OS environment always win. Otherwise the file named
by --env-file is read, or else the nearest `.env` above the project file
(falling back to the cwd), never looking past the enclosing `.git` boundary.
A project checked out next to its `.env` therefore builds the same way from
any working directory.

Accepted line forms:

    PX_FORGE_TARGET=p8
    export PX_FORGE_OUTPUT="build/art"     # quoted values are kept verbatim
    PX_FORGE_SHADER=crt  # trailing comment
"""

import logging
import os
import re
from pathlib import Path

log = logging.getLogger(__name__)

_LINE = re.compile(r'^(?:export\s+)?(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*=\s*(?P<value>.*)$')


def _find_dotenv(start: Path) -> Path | None:
    current = start.resolve()
    if current.is_file():
        current = current.parent
    while True:
        candidate = current / '.env'
        if candidate.is_file():
            return candidate
        # .git is a dir in a normal clone and a file in a worktree
        if (current / '.git').exists() or current.parent == current:
            return None
        current = current.parent


def _value(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in '"\'':
        return raw[1:-1]
    return re.split(r'\s+#', raw, maxsplit=1)[0].rstrip()


def _parse_dotenv(path: Path) -> dict[str, str]:
    result: dict[str, str] = {}
    for lineno, line in enumerate(path.read_text(encoding='utf-8').splitlines(), 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        match = _LINE.match(line)
        if match is None:
            log.warning('%s:%d: ignoring malformed line', path, lineno)
            continue
        result[match['key']] = _value(match['value'])
    return result


def load_env(env_file: str | None = None, start: Path | None = None) -> Path | None:
    """Export unset variables from a `.env` file into os.environ.

    `start` is the project file or directory to search upward from; it
    defaults to the cwd. Returns the file used, or None.
    """
    if env_file:
        path = Path(env_file)
        if not path.is_file():
            log.warning('env file not found: %s', env_file)
            return None
    else:
        path = _find_dotenv(start or Path.cwd())
        if path is None:
            return None

    values = _parse_dotenv(path)
    fresh = {key: value for key, value in values.items() if key not in os.environ}
    os.environ.update(fresh)
    log.debug('loaded %d of %d variables from %s', len(fresh), len(values), path)
    return path
