"""Tests for px_forge.core.env and px_forge.core.config: .env loading and settings."""

import os
from pathlib import Path

import pytest
from px_forge.core.assets import DitherMethod
from px_forge.core.config import Settings
from px_forge.core.env import _parse_dotenv, load_env
from px_forge.core.logging_config import get_logging_config


@pytest.fixture
def repo(tmp_path, monkeypatch):
    """A fake checkout: a .git marker bounds the walk-up, cwd is elsewhere inside it."""
    root = tmp_path / 'repo'
    (root / '.git').mkdir(parents=True)
    (root / 'art').mkdir()
    (root / 'work').mkdir()
    monkeypatch.chdir(root / 'work')
    monkeypatch.delenv('PX_FORGE_TARGET', raising=False)
    monkeypatch.delenv('PX_FORGE_SHADER', raising=False)
    yield root
    os.environ.pop('PX_FORGE_TARGET', None)
    os.environ.pop('PX_FORGE_SHADER', None)


class TestParseDotenv:
    def test_line_forms(self, tmp_path):
        f = tmp_path / '.env'
        f.write_text(
            '# settings\n'
            'export PX_FORGE_TARGET=p8\n'
            'PX_FORGE_SHADER = crt  # night look\n'
            'PX_FORGE_OUTPUT="out #1"\n'
        )
        assert _parse_dotenv(f) == {
            'PX_FORGE_TARGET': 'p8',
            'PX_FORGE_SHADER': 'crt',
            'PX_FORGE_OUTPUT': 'out #1',
        }

    def test_malformed_lines_are_reported(self, tmp_path, caplog):
        f = tmp_path / '.env'
        f.write_text('PX_FORGE_TARGET=p8\nnot a setting\n1BAD=x\n')
        with caplog.at_level('WARNING', logger='px_forge.core.env'):
            assert _parse_dotenv(f) == {'PX_FORGE_TARGET': 'p8'}
        assert '.env:2: ignoring malformed line' in caplog.text
        assert '.env:3: ignoring malformed line' in caplog.text


class TestLoadEnv:
    def test_os_environment_wins(self, repo, monkeypatch):
        monkeypatch.setenv('PX_FORGE_SHADER', 'from-os')
        (repo / 'work' / '.env').write_text('PX_FORGE_SHADER=from-file\nPX_FORGE_TARGET=p8\n')
        assert load_env() == repo / 'work' / '.env'
        assert os.environ['PX_FORGE_SHADER'] == 'from-os'
        assert os.environ['PX_FORGE_TARGET'] == 'p8'

    def test_starts_from_project_file(self, repo):
        (repo / 'art' / '.env').write_text('PX_FORGE_TARGET=sheet\n')
        project = repo / 'art' / 'sprites.json'
        project.write_text('{}')
        assert load_env(start=project) == repo / 'art' / '.env'
        assert os.environ['PX_FORGE_TARGET'] == 'sheet'

    def test_walk_stops_at_git_boundary(self, repo):
        (repo.parent / '.env').write_text('PX_FORGE_TARGET=outside\n')
        assert load_env(start=repo / 'art') is None
        assert 'PX_FORGE_TARGET' not in os.environ

    def test_explicit_file_beats_search(self, repo):
        (repo / 'work' / '.env').write_text('PX_FORGE_TARGET=p8\n')
        custom = repo / 'custom.env'
        custom.write_text('PX_FORGE_TARGET=web\n')
        assert load_env(env_file=str(custom)) == custom
        assert os.environ['PX_FORGE_TARGET'] == 'web'

    def test_missing_explicit_file(self, tmp_path, caplog):
        with caplog.at_level('WARNING', logger='px_forge.core.env'):
            assert load_env(env_file=str(tmp_path / 'nope.env')) is None
        assert 'env file not found' in caplog.text


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.output_dir == Path('dist')
        assert settings.target == 'web'
        assert settings.shader is None
        assert settings.dither is None
        assert settings.log_level == 'WARNING'

    def test_from_env(self) -> None:
        env = {
            'PX_FORGE_OUTPUT': 'build/art',
            'PX_FORGE_TARGET': 'p8',
            'PX_FORGE_SHADER': 'crt',
            'PX_FORGE_DITHER': 'fs',
            'PX_FORGE_LOG_LEVEL': 'debug',
        }
        settings = Settings.from_env(env)
        assert settings.output_dir == Path('build/art')
        assert settings.target == 'p8'
        assert settings.shader == 'crt'
        assert settings.dither is DitherMethod.FLOYD_STEINBERG
        assert settings.log_level == 'DEBUG'

    def test_override_skips_none(self) -> None:
        settings = Settings(target='p8').override(target=None, scale=4)
        assert settings.target == 'p8'
        assert settings.scale == 4


class TestLoggingConfig:
    def test_level_applied(self) -> None:
        config = get_logging_config('debug')
        assert config['loggers']['px_forge']['level'] == 'DEBUG'
        assert config['handlers']['stderr']['formatter'] == 'detailed'

    def test_unknown_level_falls_back(self) -> None:
        config = get_logging_config('chatty')
        assert config['loggers']['px_forge']['level'] == 'WARNING'
