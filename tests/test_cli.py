"""Tests for the px-forge command line (px_forge.__main__)."""

import json
import logging
import os
import shutil
import sys
from pathlib import Path

import pytest
from px_forge.__main__ import main

FIXTURE = Path(__file__).parent / 'fixtures' / 'sample_project.json'
ENV_KEYS = ('PX_FORGE_OUTPUT', 'PX_FORGE_TARGET', 'PX_FORGE_SHADER', 'PX_FORGE_DITHER', 'PX_FORGE_LOG_LEVEL')


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    # No stray .env from the host; the fake .git stops the walk-up from
    # both the cwd and the copied project file
    (tmp_path / '.git').mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys.modules[__name__], 'FIXTURE', Path(shutil.copy(FIXTURE, tmp_path)))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    for key in ENV_KEYS:
        os.environ.pop(key, None)
    logger = logging.getLogger('px_forge')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


def write_project(tmp_path, data):
    path = tmp_path / 'project.json'
    path.write_text(json.dumps(data))
    return str(path)


class TestBuild:
    def test_build_writes_files(self, tmp_path, capsys):
        main(['build', str(FIXTURE), '-o', str(tmp_path / 'out')])
        out = capsys.readouterr().out
        assert 'OK:' in out
        assert (tmp_path / 'out' / 'wall.png').exists()
        assert (tmp_path / 'out' / 'level.json').exists()

    def test_build_json(self, tmp_path, capsys):
        main(['build', str(FIXTURE), '-o', str(tmp_path), '--target', 'big', '--json'])
        data = json.loads(capsys.readouterr().out)
        assert data['ok'] is True
        assert data['rendered']['prefab:room'] == [8, 3]
        assert sorted(Path(p).name for p in data['outputs']) == ['sheet.json', 'sheet.png']

    def test_output_dir_from_env(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv('PX_FORGE_OUTPUT', str(tmp_path / 'envout'))
        main(['build', str(FIXTURE)])
        assert (tmp_path / 'envout' / 'coin.png').exists()

    def test_env_file(self, tmp_path, capsys):
        env_file = tmp_path / 'custom.env'
        env_file.write_text(f'PX_FORGE_OUTPUT={tmp_path / "fromfile"}\nPX_FORGE_TARGET=p8\n')
        main(['--env-file', str(env_file), 'build', str(FIXTURE)])
        assert (tmp_path / 'fromfile' / 'sheet.p8').exists()

    def test_dotenv_beside_project(self, tmp_path, monkeypatch, capsys):
        art = tmp_path / 'art'
        art.mkdir()
        (art / '.env').write_text(f'PX_FORGE_OUTPUT={tmp_path / "beside"}\n')
        elsewhere = tmp_path / 'elsewhere'
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        main(['build', shutil.copy(FIXTURE, art)])
        assert (tmp_path / 'beside' / 'coin.png').exists()

    def test_warnings_printed_once(self, tmp_path, capsys):
        project = write_project(tmp_path, {'shaders': [{'name': 's', 'variant': 'night'}]})
        main(['build', project, '-o', str(tmp_path / 'out'), '--shader', 's'])
        captured = capsys.readouterr()
        assert captured.out.count("no variant 'night'") == 1
        assert "no variant 'night'" not in captured.err

    def test_build_failure_exits_1(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(['build', str(FIXTURE), '-o', str(tmp_path), '--target', 'gameboy'])
        assert excinfo.value.code == 1
        assert 'Unknown target: gameboy' in capsys.readouterr().out

    def test_validate_flag_stops_on_errors(self, tmp_path, capsys):
        project = write_project(tmp_path, {'shapes': [{'name': 's', 'grid': ['a'], 'legend': {'a': 'ghost'}}]})
        with pytest.raises(SystemExit):
            main(['build', project, '-o', str(tmp_path / 'out'), '--validate'])
        assert 'unknown-stamp' in capsys.readouterr().err
        assert not (tmp_path / 'out').exists()

    def test_missing_project(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(['build', str(tmp_path / 'nope.json')])
        assert excinfo.value.code == 1
        assert 'Project file not found' in capsys.readouterr().err

    def test_invalid_document(self, tmp_path, capsys):
        project = write_project(tmp_path, {'sprites': []})
        with pytest.raises(SystemExit):
            main(['build', project])
        err = capsys.readouterr().err
        assert 'unknown sections: sprites' in err
        assert 'help: Sections:' in err


class TestValidate:
    def test_clean(self, capsys):
        main(['validate', str(FIXTURE)])
        assert '0 error(s), 0 warning(s) from 6 checks' in capsys.readouterr().out

    def test_errors_exit_1(self, tmp_path, capsys):
        project = write_project(tmp_path, {'shapes': [{'name': 's', 'grid': ['a'], 'legend': {'a': 'ghost'}}]})
        with pytest.raises(SystemExit) as excinfo:
            main(['validate', project, '--json'])
        assert excinfo.value.code == 1
        data = json.loads(capsys.readouterr().out)
        assert data['summary']['ok'] is False
        assert [d['code'] for d in data['diagnostics']] == ['unknown-stamp']

    def test_selected_checks_only(self, tmp_path, capsys):
        project = write_project(
            tmp_path,
            {
                'shapes': [{'name': 'x', 'grid': ['a'], 'legend': {'a': 'ghost'}}],
                'prefabs': [{'name': 'x', 'grid': ['A'], 'legend': {'A': 'x'}}],
            },
        )
        main(['validate', project, '--check', 'names', '--json'])
        data = json.loads(capsys.readouterr().out)
        assert data['checks'] == ['names']
        assert [d['code'] for d in data['diagnostics']] == ['duplicate-name']

    def test_unknown_selected_check(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(['validate', str(FIXTURE), '--check', 'spelling'])
        assert excinfo.value.code == 1
        assert 'Unknown check: spelling' in capsys.readouterr().err


class TestOrder:
    def test_prints_numbered_order(self, capsys):
        main(['order', str(FIXTURE)])
        lines = capsys.readouterr().out.splitlines()
        assets = [line.split()[1] for line in lines]
        assert assets.index('shape:wall') < assets.index('prefab:room') < assets.index('map:level')
        assert lines[0].split()[0] == '1'

    def test_cycle(self, tmp_path, capsys):
        project = write_project(
            tmp_path,
            {
                'prefabs': [
                    {'name': 'a', 'grid': ['b'], 'legend': {'b': 'b'}},
                    {'name': 'b', 'grid': ['a'], 'legend': {'a': 'a'}},
                ]
            },
        )
        with pytest.raises(SystemExit):
            main(['order', project])
        assert 'Circular dependency detected' in capsys.readouterr().err


class TestPalette:
    def test_resolved_colours(self, capsys):
        main(['palette', str(FIXTURE), 'hero'])
        out = capsys.readouterr().out
        assert out.splitlines()[0] == 'hero'
        assert '$gold' in out
        assert '#FFD700' in out
        assert '$skin' in out

    def test_variant(self, capsys):
        main(['palette', str(FIXTURE), 'base', '--variant', 'night'])
        out = capsys.readouterr().out
        assert out.splitlines()[0] == 'base (night)'
        assert '#101040' in out

    def test_unknown_palette(self, capsys):
        with pytest.raises(SystemExit):
            main(['palette', str(FIXTURE), 'neon'])
        assert 'Unknown palette: neon' in capsys.readouterr().err

    def test_unknown_variant(self, capsys):
        with pytest.raises(SystemExit):
            main(['palette', str(FIXTURE), 'base', '--variant', 'dawn'])
        assert "no variant 'dawn'" in capsys.readouterr().err


class TestHelp:
    def test_checks_listed(self, capsys):
        main(['checks'])
        out = capsys.readouterr().out
        for name in ('graph', 'grids', 'legends', 'names', 'palettes', 'stamps'):
            assert name in out

    def test_help_for_check(self, capsys):
        main(['help', 'legends'])
        assert 'Legend references and glyph coverage.' in capsys.readouterr().out

    def test_help_overview(self, capsys):
        main(['help'])
        assert 'Available checks:' in capsys.readouterr().out

    def test_unknown_check(self, capsys):
        with pytest.raises(SystemExit):
            main(['help', 'nope'])
        assert 'Unknown check: nope' in capsys.readouterr().err

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1
