"""Process-wide assertion configuration."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from assertive.errors import ConfigurationError

TimeoutKey = Literal["assert_receive_timeout", "refute_receive_timeout"]


class AssertiveSettings(BaseSettings):
    """Settings for assertion helpers.

    Loads from environment variables automatically:
        ASSERTIVE_ASSERT_RECEIVE_TIMEOUT, ASSERTIVE_REFUTE_RECEIVE_TIMEOUT

    Or pass values directly to configure().
    """

    assert_receive_timeout: int = Field(
        default=100, ge=0, description="Default wait in milliseconds for assert_receive"
    )
    refute_receive_timeout: int = Field(
        default=100, ge=0, description="Default wait in milliseconds for refute_receive"
    )

    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="ASSERTIVE_",
        frozen=True,
    )


_settings: AssertiveSettings | None = None


def get_settings() -> AssertiveSettings:
    global _settings
    if _settings is None:
        _settings = _build()
    return _settings


def configure(**overrides: Any) -> AssertiveSettings:
    """Replace the current settings, keeping values that are not overridden."""
    global _settings
    current = get_settings().model_dump()
    _settings = _build(**{**current, **overrides})
    return _settings


def reset_settings() -> None:
    """Drop configured values; the next lookup reads the environment again."""
    global _settings
    _settings = None


def _build(**values: Any) -> AssertiveSettings:
    try:
        return AssertiveSettings(**values)
    except ValidationError as error:
        msg = f"invalid assertion settings: {error}"
        raise ConfigurationError(msg) from error


def resolve_timeout(timeout: Any, key: TimeoutKey) -> int:
    """Return ``timeout`` if it is a valid timeout, or the configured default when None."""
    if timeout is None:
        return getattr(get_settings(), key)
    if isinstance(timeout, int) and not isinstance(timeout, bool) and timeout >= 0:
        return timeout
    msg = f"timeout must be a non-negative integer, got: {timeout!r}"
    raise ConfigurationError(msg)
