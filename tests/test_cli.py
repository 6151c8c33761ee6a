"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest

from autotranslate import cli
from autotranslate import config as app_config


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "locales" / "en.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"greeting": {"hello": "Hello {name}"}}), encoding="utf-8")
    return path


@pytest.fixture
def missing_config(tmp_path):
    return str(tmp_path / "no-config.json")


class TestCli:
    """argparse front-end."""

    def test_echo_run(self, source_file, missing_config, tmp_path, capsys) -> None:
        """--echo translates without an API key and writes the catalogs."""
        out_dir = tmp_path / "out"
        code = cli.main([
            "-i", str(source_file),
            "-o", str(out_dir),
            "-t", "de,zhHans",
            "--echo",
            "--config", missing_config,
        ])

        assert code == 0
        assert json.loads((out_dir / "de.json").read_text(encoding="utf-8")) == {
            "greeting": {"hello": "Hello {name}"}
        }
        assert (out_dir / "zhHans.json").exists()
        assert "de: 1 translated" in capsys.readouterr().out

    def test_flat_and_format(self, source_file, missing_config) -> None:
        """--flat and --format shape the output file."""
        code = cli.main([
            "-i", str(source_file),
            "-t", "pt-BR",
            "--echo",
            "--flat",
            "--format", "snake_case",
            "--config", missing_config,
        ])

        assert code == 0
        written = source_file.parent / "pt_br.json"
        assert json.loads(written.read_text(encoding="utf-8")) == {"greeting.hello": "Hello {name}"}

    def test_missing_api_key(self, source_file, missing_config, monkeypatch) -> None:
        """Without --echo a missing API key exits with 1."""
        monkeypatch.delenv("DEEPL_API_KEY", raising=False)
        monkeypatch.setattr(app_config, "load_dotenv", lambda *args, **kwargs: False)

        assert cli.main(["-i", str(source_file), "-t", "de", "--config", missing_config]) == 1

    def test_missing_source(self, tmp_path, missing_config) -> None:
        """A missing source file exits with 1."""
        code = cli.main(["-i", str(tmp_path / "nope.json"), "-t", "de", "--echo", "--config", missing_config])
        assert code == 1

    def test_list_languages(self, capsys) -> None:
        """--list-languages prints the supported codes."""
        assert cli.main(["--list-languages"]) == 0
        out = capsys.readouterr().out
        assert "zh-Hans" in out
        assert "Japanese" in out

    def test_usage_error(self) -> None:
        """Bad arguments exit with status 2."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--format", "shouting"])
        assert exc_info.value.code == 2

    def test_parse_languages(self) -> None:
        """Comma lists are split and resolved."""
        assert cli.parse_languages("ko, enGb,,zh_hans") == ["ko", "en-GB", "zh-Hans"]
        assert cli.parse_languages(None) == []
