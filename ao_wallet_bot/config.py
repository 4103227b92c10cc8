"""Application configuration management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment or `.env`."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: str = Field(..., alias="TELEGRAM_BOT_TOKEN")
    gemini_api_key: str = Field(..., alias="GEMINI_API_KEY")
    gemini_model: str = Field(
        default="gemini-1.5-flash-latest",
        alias="GEMINI_MODEL",
    )
    encryption_key: str = Field(..., alias="ENCRYPTION_KEY")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./.tmp/wallets.db",
        alias="DATABASE_URL",
    )

    mcp_ao_cmd: str = Field(
        default="node mcp-servers/mcp-ao/index.js",
        alias="MCP_AO_CMD",
    )
    mcp_dex_cmd: str = Field(
        default="node mcp-servers/mcp-dex/index.js",
        alias="MCP_DEX_CMD",
    )

    ao_native_token_process_id: str = Field(
        default="0syT13r0s0tgPmIed95bJnuSqaD29HQNN8D3ElLSrsc",
        alias="AO_NATIVE_TOKEN_PROCESS_ID",
    )
    ao_native_token_decimals: int = Field(
        default=12, alias="AO_NATIVE_TOKEN_DECIMALS", ge=0
    )
    ao_ario_token_process_id: str = Field(
        default="qNvAoz0TgcH7DMg8BCVn8jF32QH5L6T29VjHxhHqqGE",
        alias="AO_ARIO_TOKEN_PROCESS_ID",
    )
    ao_ario_token_decimals: int = Field(default=6, alias="AO_ARIO_TOKEN_DECIMALS", ge=0)
    ao_tracked_tokens: Annotated[List[str], NoDecode] = Field(
        default_factory=list, alias="AO_TRACKED_TOKENS"
    )
    tokens_json: Optional[Path] = Field(default=None, alias="TOKENS_JSON")

    swap_slippage_bps: int = Field(
        default=100, alias="SWAP_SLIPPAGE_BPS", ge=1, le=5000
    )
    confirmation_delay_seconds: float = Field(
        default=2.0, alias="CONFIRMATION_DELAY_SECONDS", ge=0.0, le=30.0
    )
    confirmation_timeout_seconds: float = Field(
        default=10.0, alias="CONFIRMATION_TIMEOUT_SECONDS", gt=0.0, le=60.0
    )

    agent_max_iterations: int = Field(
        default=3, alias="AGENT_MAX_ITERATIONS", ge=1, le=10
    )
    agent_timeout_seconds: int = Field(
        default=60, alias="AGENT_TIMEOUT_SECONDS", ge=5, le=300
    )

    conversation_max_turns: int = Field(
        default=20, alias="CONVERSATION_MAX_TURNS", ge=1, le=200
    )
    conversation_context_turns: int = Field(
        default=10, alias="CONVERSATION_CONTEXT_TURNS", ge=1, le=200
    )
    conversation_ttl_minutes: Optional[int] = Field(
        default=None, alias="CONVERSATION_TTL_MINUTES", ge=1
    )

    holders_top_n: int = Field(default=10, alias="HOLDERS_TOP_N", ge=1, le=100)
    holders_query_limit: int = Field(
        default=1000, alias="HOLDERS_QUERY_LIMIT", ge=1, le=10000
    )

    rate_limit_per_user_per_min: int = Field(
        default=10,
        alias="RATE_LIMIT_PER_USER_PER_MIN",
        ge=1,
        le=60,
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("encryption_key")
    @classmethod
    def _check_encryption_key(cls, value: str) -> str:
        if len(value.encode("utf-8")) != 32:
            raise ValueError("ENCRYPTION_KEY must be exactly 32 characters long")
        return value

    @field_validator("ao_tracked_tokens", mode="before")
    @classmethod
    def _parse_tracked_tokens(cls, value: Any) -> List[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(v).strip() for v in value if str(v).strip()]
        return [str(value)]


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return cached Settings instance, raising a helpful message on failure."""
    try:
        return Settings()
    except (
        ValidationError
    ) as exc:  # pragma: no cover - configuration failure visible on boot
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "load_settings"]
