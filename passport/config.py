"""
Configuration settings for the passport ledger.

Uses Pydantic Settings to load environment variables for the client identity,
the target channel/contract, gateway timeouts, the world-state backend and
logging. Connection material is always injected, never hardcoded.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Identity
    msp_id: str = Field("Org1MSP", alias="MSP_ID")
    cert_path: Optional[Path] = Field(None, alias="CERT_PATH")
    key_path: Optional[Path] = Field(None, alias="KEY_PATH")
    tls_cert_path: Optional[Path] = Field(None, alias="TLS_CERT_PATH")

    # Network
    peer_endpoint: str = Field("localhost:7051", alias="PEER_ENDPOINT")
    gateway_peer: str = Field("peer0.org1.example.com", alias="GATEWAY_PEER")
    channel_name: str = Field("mychannel", alias="CHANNEL_NAME")
    chaincode_name: str = Field("passport", alias="CHAINCODE_NAME")
    orderer_queue_size: int = Field(100, alias="ORDERER_QUEUE_SIZE")

    # Gateway timeouts (seconds)
    evaluate_timeout: float = Field(5.0, alias="EVALUATE_TIMEOUT")
    endorse_timeout: float = Field(15.0, alias="ENDORSE_TIMEOUT")
    submit_timeout: float = Field(5.0, alias="SUBMIT_TIMEOUT")
    commit_status_timeout: float = Field(60.0, alias="COMMIT_STATUS_TIMEOUT")

    # World state
    ledger_backend: Literal["memory", "postgres"] = Field("memory", alias="LEDGER_BACKEND")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("passport_ledger", alias="DB_NAME")
    db_scan_batch_size: int = Field(500, alias="DB_SCAN_BATCH_SIZE")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
