"""Tests for the command-line entry point."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeClock, ScriptedTransport, json_response, make_record
from vndb_provider.main import ApplicationContext, main, parse_arguments
from vndb_provider.services.http_client import VndbHttpClient
from vndb_provider.services.provider import VndbMetadataProvider
from vndb_provider.services.rate_limiter import SlidingWindowRateLimiter


def scripted_provider(scripted: ScriptedTransport):
    """Replacement for ``VndbMetadataProvider.from_config`` that uses scripted HTTP."""

    def factory(config, image_fetcher=None) -> VndbMetadataProvider:
        clock = FakeClock()
        client = VndbHttpClient(
            rate_limiter=SlidingWindowRateLimiter(clock=clock, sleep=clock.sleep),
            transport=scripted.transport,
            sleep=clock.sleep,
        )
        return VndbMetadataProvider(client, image_fetcher=image_fetcher, search_results=config.search_results)

    return factory


def test_parse_search_arguments() -> None:
    args = parse_arguments(["--log-level", "DEBUG", "search", "Clannad"])

    assert args.command == "search"
    assert args.value == "Clannad"
    assert args.log_level == "DEBUG"
    assert args.config is None


def test_parse_get_arguments() -> None:
    args = parse_arguments(["--config", "/tmp/vndb.json", "--image-dir", "/tmp/covers", "get", "v4"])

    assert args.command == "get"
    assert args.value == "v4"
    assert args.config == Path("/tmp/vndb.json")
    assert args.image_dir == Path("/tmp/covers")
    assert args.log_level is None


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        parse_arguments([])


def test_image_dir_overrides_config(tmp_path: Path) -> None:
    context = ApplicationContext(config_path=tmp_path / "missing.json", image_dir=tmp_path / "covers")

    assert context.config.image_directory == tmp_path / "covers"
    assert context.image_store is not None


def test_no_image_store_without_directory(tmp_path: Path) -> None:
    context = ApplicationContext(config_path=tmp_path / "missing.json")

    assert context.image_store is None


def test_search_prints_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    scripted = ScriptedTransport(json_response({"results": [make_record("v4"), make_record("v5", image_url=None)]}))

    with patch.object(VndbMetadataProvider, "from_config", side_effect=scripted_provider(scripted)):
        exit_code = main(["--config", str(tmp_path / "missing.json"), "search", "Clannad"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert [item["provider_data_id"] for item in output] == ["v4"]
    assert output[0]["release_date"] == "2004-04-28"


def test_get_prints_full_metadata(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    scripted = ScriptedTransport(json_response({"results": [make_record("v4")]}))

    with patch.object(VndbMetadataProvider, "from_config", side_effect=scripted_provider(scripted)):
        exit_code = main(["--config", str(tmp_path / "missing.json"), "get", "v4"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["provider_data_url"] == "https://vndb.org/v4"
    assert output["genres"] == [{"provider_slug": "vndb", "provider_data_id": "1", "name": "Visual Novel"}]
    assert output["cover"] is None


def test_not_found_reports_friendly_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    scripted = ScriptedTransport(json_response({"results": []}))

    with patch.object(VndbMetadataProvider, "from_config", side_effect=scripted_provider(scripted)):
        exit_code = main(["--config", str(tmp_path / "missing.json"), "get", "v999999"])

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "No visual novel found with ID: v999999" in captured.err


def test_config_log_level_is_applied(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"log_level": "DEBUG"}))
    scripted = ScriptedTransport(json_response({"results": [make_record("v4")]}))

    with patch.object(VndbMetadataProvider, "from_config", side_effect=scripted_provider(scripted)):
        exit_code = main(["--config", str(config_path), "get", "v4"])

    assert exit_code == 0
    assert logging.getLogger().level == logging.DEBUG


def test_log_level_flag_overrides_config(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"log_level": "DEBUG"}))
    scripted = ScriptedTransport(json_response({"results": [make_record("v4")]}))

    with patch.object(VndbMetadataProvider, "from_config", side_effect=scripted_provider(scripted)):
        exit_code = main(["--config", str(config_path), "--log-level", "ERROR", "get", "v4"])

    assert exit_code == 0
    assert logging.getLogger().level == logging.ERROR
