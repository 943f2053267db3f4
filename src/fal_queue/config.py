import os

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_QUEUE_BASE = "https://queue.fal.run"
DEFAULT_SYNC_BASE = "https://fal.run"
DEFAULT_API_BASE = "https://api.fal.ai/v1"
DEFAULT_REQUEST_TIMEOUT = 120.0


class ClientConfig(BaseModel):
    api_key: str | None = Field(default_factory=lambda: os.getenv("FAL_KEY"))
    queue_base: str = DEFAULT_QUEUE_BASE  # queued jobs: submit, status, result, cancel
    sync_base: str = DEFAULT_SYNC_BASE  # synchronous + SSE streaming runs
    api_base: str = DEFAULT_API_BASE  # platform API: models, pricing
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    verbose: bool = False

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid client configuration: {e}") from e

    @field_validator("queue_base", "sync_base", "api_base")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value or not value.startswith(("http://", "https://")):
            raise ConfigurationError(f"base URL must be http(s), got {value!r}")
        return value.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {value}")
        return value

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Build a config from FAL_* environment variables; keyword overrides win."""
        values: dict = {}
        env_map = {
            "api_key": "FAL_KEY",
            "queue_base": "FAL_QUEUE_BASE",
            "sync_base": "FAL_SYNC_BASE",
            "api_base": "FAL_API_BASE",
            "request_timeout": "FAL_REQUEST_TIMEOUT",
        }
        for field_name, env_var in env_map.items():
            value = os.getenv(env_var)
            if value:
                values[field_name] = value
        if "request_timeout" in values:
            try:
                values["request_timeout"] = float(values["request_timeout"])
            except ValueError:
                raise ConfigurationError(
                    f"FAL_REQUEST_TIMEOUT must be a number, got {values['request_timeout']!r}"
                )
        values.update(overrides)
        return cls(**values)

    def require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "No API key configured. Set FAL_KEY or pass api_key=..."
            )
        return self.api_key
