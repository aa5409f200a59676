import json
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bananaforge_cli import cli
from bananaforge_cli.api import GameBananaAPIError
from bananaforge_cli.core import DownloadablePackage

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(cli, "CONFIG_PATH", tmp_path)
    monkeypatch.setattr(cli, "API_CONFIG_PATH", tmp_path / "gamebanana_api.json")
    monkeypatch.setattr(cli, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    return tmp_path


def _fake_search(packages=None, error=None):
    calls = []

    async def perform_search(api, text, game_id, skip, take):
        calls.append((text, game_id, skip, take))
        if error is not None:
            raise error
        return packages or []

    return perform_search, calls


def test_search_prints_packages(monkeypatch: pytest.MonkeyPatch, isolated_config: Path) -> None:
    package = DownloadablePackage(
        name="Foo Mod", version="2.0.0", authors="Alice", file_size=2048, url="https://gamebanana.com/dl/10"
    )
    fake, calls = _fake_search([package])
    monkeypatch.setattr(cli, "perform_search", fake)

    result = runner.invoke(cli.app, ["search", "foo", "--game-id", "7", "--skip", "50", "--take", "25"])

    assert result.exit_code == 0, result.output
    assert "Foo Mod" in result.output
    assert "2.0.0" in result.output
    assert calls == [("foo", 7, 50, 25)]
    assert (isolated_config / "gamebanana_api.json").exists()


def test_search_json_output(monkeypatch: pytest.MonkeyPatch, isolated_config: Path) -> None:
    (isolated_config / "gamebanana_api.json").write_text("{}")
    fake, _ = _fake_search([DownloadablePackage(name="Foo Mod", url="https://gamebanana.com/dl/10")])
    monkeypatch.setattr(cli, "perform_search", fake)

    result = runner.invoke(cli.app, ["search", "foo", "-g", "7", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data[0]["name"] == "Foo Mod"
    assert data[0]["source"] == "GameBanana"


def test_search_without_results(monkeypatch: pytest.MonkeyPatch) -> None:
    fake, _ = _fake_search([])
    monkeypatch.setattr(cli, "perform_search", fake)

    result = runner.invoke(cli.app, ["search", "nothing", "-g", "7"])

    assert result.exit_code == 0
    assert "No downloadable mods found" in result.output


def test_search_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    fake, _ = _fake_search(error=GameBananaAPIError("Search failed with status 503"))
    monkeypatch.setattr(cli, "perform_search", fake)

    result = runner.invoke(cli.app, ["search", "foo", "-g", "7"])

    assert result.exit_code == 1
    assert "status 503" in result.output


def test_version_flag() -> None:
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert "BananaForge-CLI Version" in result.output


def test_config_command_writes_defaults(isolated_config: Path) -> None:
    result = runner.invoke(cli.app, ["config"])

    assert result.exit_code == 0, result.output
    assert "max_concurrent_downloads" in result.output
    saved = json.loads((isolated_config / "gamebanana_api.json").read_text())
    assert saved["loader_url_prefix"] == "r2:"
