from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from passport.config import Settings, get_settings
from passport.infrastructure import build_dsn, create_world_state
from passport.infrastructure.world_state import MemoryWorldState

ENV_VARS = [
    "MSP_ID",
    "CERT_PATH",
    "KEY_PATH",
    "TLS_CERT_PATH",
    "CHANNEL_NAME",
    "CHAINCODE_NAME",
    "EVALUATE_TIMEOUT",
    "COMMIT_STATUS_TIMEOUT",
    "LEDGER_BACKEND",
    "DB_HOST",
    "DB_PORT",
    "LOG_JSON",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the way.
    monkeypatch.chdir(tmp_path)


def test_defaults(clean_env: None) -> None:
    settings = Settings()

    assert settings.msp_id == "Org1MSP"
    assert settings.cert_path is None
    assert settings.channel_name == "mychannel"
    assert settings.chaincode_name == "passport"
    assert (
        settings.evaluate_timeout,
        settings.endorse_timeout,
        settings.submit_timeout,
        settings.commit_status_timeout,
    ) == (5.0, 15.0, 5.0, 60.0)
    assert settings.ledger_backend == "memory"
    assert settings.log_json is False


def test_environment_overrides(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MSP_ID", "Org2MSP")
    monkeypatch.setenv("CHANNEL_NAME", "passports")
    monkeypatch.setenv("COMMIT_STATUS_TIMEOUT", "1.5")
    monkeypatch.setenv("LEDGER_BACKEND", "postgres")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = Settings()

    assert settings.msp_id == "Org2MSP"
    assert settings.channel_name == "passports"
    assert settings.commit_status_timeout == 1.5
    assert settings.ledger_backend == "postgres"
    assert settings.log_json is True


def test_dotenv_file_is_read(clean_env: None, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("CHAINCODE_NAME=passport_v2\n", encoding="utf-8")

    assert Settings().chaincode_name == "passport_v2"


def test_unknown_backend_is_rejected(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDGER_BACKEND", "leveldb")

    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


def test_build_dsn_plain_and_tls(clean_env: None) -> None:
    plain = Settings(db_host="db", db_port=6543, db_user="u", db_password="p", db_name="ledger")
    tls = plain.model_copy(update={"tls_cert_path": Path("/etc/ca.pem")})

    assert build_dsn(plain) == "postgresql://u:p@db:6543/ledger"
    assert build_dsn(tls) == (
        "postgresql://u:p@db:6543/ledger?sslmode=verify-full&sslrootcert=/etc/ca.pem"
    )


def test_memory_backend_selected_by_default(clean_env: None) -> None:
    state = create_world_state(namespace="passport", settings=Settings())

    assert isinstance(state, MemoryWorldState)
    assert state.namespace == "passport"
