"""
Server configuration management
"""
from pathlib import Path

import pydantic
from pydantic import model_validator
from pydantic_settings import BaseSettings

from pwgen.exceptions import ConfigurationError
from pwgen.protocol import (
    DEFAULT_BACKLOG,
    DEFAULT_HOST,
    DEFAULT_PORT,
    MAX_PASSWORD_LENGTH,
)


class Settings(BaseSettings):
    """Password service settings"""

    # Listener settings
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    backlog: int = DEFAULT_BACKLOG  # pending connections queued by listen()

    # Sessions are served one at a time unless this is enabled
    concurrent_sessions: bool = False

    # Password policy
    min_password_length: int = 6
    max_password_length: int = MAX_PASSWORD_LENGTH
    default_password_length: int = 8  # used by the client when no length is typed
    system_random: bool = False  # use random.SystemRandom instead of the module PRNG

    # Override with PWGEN_LOG_DIR
    log_dir: Path = Path.home() / ".pwgen" / "logs"

    class Config:
        env_prefix = "PWGEN_"
        env_file = ".env"

    @model_validator(mode="after")
    def _check_values(self) -> "Settings":
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port {self.port} is out of range")
        if self.backlog < 0:
            raise ValueError("backlog cannot be negative")
        if self.min_password_length < 1:
            raise ValueError("min_password_length must be at least 1")
        if self.max_password_length > MAX_PASSWORD_LENGTH:
            raise ValueError(
                f"max_password_length cannot exceed the wire capacity ({MAX_PASSWORD_LENGTH})"
            )
        if self.min_password_length > self.max_password_length:
            raise ValueError("min_password_length is greater than max_password_length")
        if not self.min_password_length <= self.default_password_length <= self.max_password_length:
            raise ValueError("default_password_length is outside the configured bounds")
        return self


def load_settings(**overrides) -> Settings:
    """
    Build Settings from the environment plus explicit overrides.

    Raises:
        ConfigurationError: If the resulting settings are invalid
    """
    try:
        return Settings(**overrides)
    except pydantic.ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "error": err["msg"]}
            for err in e.errors()
        ]
        raise ConfigurationError(
            f"Invalid settings: {len(errors)} error(s)",
            details={"errors": errors},
        ) from e


settings = load_settings()
