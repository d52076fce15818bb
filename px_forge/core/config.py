"""Build settings gathered from the environment and overridden by CLI flags.

    PX_FORGE_OUTPUT     output directory (default: dist)
    PX_FORGE_TARGET     target profile name (default: web)
    PX_FORGE_SHADER     shader name (default: the target's shader, then "default")
    PX_FORGE_DITHER     none | ordered | floyd-steinberg (default: the target's)
    PX_FORGE_LOG_LEVEL  logging level (default: WARNING)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from px_forge.core.assets import DitherMethod


@dataclass(frozen=True)
class Settings:
    output_dir: Path = Path('dist')
    target: str = 'web'
    shader: str | None = None
    scale: int | None = None
    sheet: bool = False
    padding: int | None = None
    dither: DitherMethod | None = None
    log_level: str = 'WARNING'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        dither = env.get('PX_FORGE_DITHER')
        return cls(
            output_dir=Path(env.get('PX_FORGE_OUTPUT') or 'dist'),
            target=env.get('PX_FORGE_TARGET') or 'web',
            shader=env.get('PX_FORGE_SHADER') or None,
            dither=DitherMethod.parse(dither) if dither else None,
            log_level=(env.get('PX_FORGE_LOG_LEVEL') or 'WARNING').upper(),
        )

    def override(self, **changes) -> Settings:
        """Copy with every change that is not None applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
