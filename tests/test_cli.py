from __future__ import annotations

import json
import logging

import pytest

from myob_client import AppSettings, Client, ConfigurationError, cli
from tests.conftest import COMPANY_FILE_URI, COMPANY_FILES, FakeConnection, FakeResponse


@pytest.fixture(autouse=True)
def package_logger():
    logger = logging.getLogger("myob_client")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _direct_settings(log_level: str = "WARNING") -> AppSettings:
    return AppSettings(
        api_key="key",
        api_secret="",
        access_token="",
        refresh_token="",
        redirect_uri="http://localhost",
        scope="CompanyFile",
        api_url="https://api.myob.com/accountright/",
        server_url="http://localhost:8080/accountright",
        company_file_name="Acme",
        company_file_id="",
        company_file_token="tok",
        company_file_username="",
        company_file_password="",
        timeout_seconds=30,
        log_level=log_level,
    )


def _client_with(monkeypatch, *responses) -> FakeConnection:
    connection = FakeConnection(COMPANY_FILES, *responses)
    client = Client(api_key="key", connection=connection, company_file={"name": "Acme", "token": "tok"})
    monkeypatch.setattr(cli, "load_settings", _direct_settings)
    monkeypatch.setattr(cli, "build_client", lambda settings: client)
    return connection


def test_list_prints_records(monkeypatch, capsys):
    connection = _client_with(monkeypatch, {"Items": [{"UID": "1", "CompanyName": "Acme"}]})

    exit_code = cli.main(["list", "Customer", "--top", "2", "--filter", "CompanyName=Acme"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == [{"UID": "1", "CompanyName": "Acme"}]
    assert connection.calls[-1]["url"] == (
        f"{COMPANY_FILE_URI}/Contact/Customer?$top=2&$filter=CompanyName%20eq%20%27Acme%27"
    )
    assert connection.closed is True


def test_list_all_pages(monkeypatch, capsys):
    _client_with(
        monkeypatch,
        {"Items": [{"UID": "1"}], "NextPageLink": f"{COMPANY_FILE_URI}/Contact/Customer?$skip=1"},
        {"Items": [{"UID": "2"}]},
    )

    assert cli.main(["list", "customer", "--all-pages"]) == 0
    assert json.loads(capsys.readouterr().out) == [{"UID": "1"}, {"UID": "2"}]


def test_api_error_exits_with_one(monkeypatch, capsys):
    _client_with(monkeypatch, FakeResponse(200, text="oops"))

    assert cli.main(["find", "Customer", "abc"]) == 1
    assert "ResponseParseError" in capsys.readouterr().err


def test_configuration_error_exits_with_two(monkeypatch, capsys):
    def broken():
        raise ConfigurationError("Missing required settings for cloud mode: MYOB_API_KEY")

    monkeypatch.setattr(cli, "load_settings", broken)

    assert cli.main(["company-files"]) == 2
    assert "MYOB_API_KEY" in capsys.readouterr().err


def test_log_level_from_env_file_configures_logging(monkeypatch, isolated_env, package_logger, capsys):
    env_file = isolated_env / "myob.env"
    env_file.write_text(
        "MYOB_SERVER_URL=http://localhost:8080/accountright\n"
        "MYOB_LOG_LEVEL=DEBUG\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("MYOB_ENV_FILE", str(env_file))
    seen: list[AppSettings] = []

    def build_client(settings):
        seen.append(settings)
        return Client(server_url=settings.server_url, connection=FakeConnection(COMPANY_FILES))

    monkeypatch.setattr(cli, "build_client", build_client)

    assert cli.main(["company-files"]) == 0
    assert package_logger.level == logging.DEBUG
    assert seen[0].log_level == "DEBUG"
    assert json.loads(capsys.readouterr().out) == COMPANY_FILES


def test_log_level_flag_overrides_settings(monkeypatch, isolated_env, package_logger, capsys):
    monkeypatch.setenv("MYOB_SERVER_URL", "http://localhost:8080/accountright")
    monkeypatch.setenv("MYOB_LOG_LEVEL", "DEBUG")
    monkeypatch.setattr(
        cli,
        "build_client",
        lambda settings: Client(server_url=settings.server_url, connection=FakeConnection(COMPANY_FILES)),
    )

    assert cli.main(["--log-level", "ERROR", "company-files"]) == 0
    assert package_logger.level == logging.ERROR
