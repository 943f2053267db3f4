import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import DecodeError


class WebhookStatus(str, Enum):
    OK = "OK"
    ERROR = "ERROR"


@dataclass
class WebhookRequest:
    """
    A result delivered by fal to a `webhook_url` given at submission.

    Build it from the raw request body with `from_json`, or from an already
    decoded dict with `from_dict`.
    """

    request_id: str | None = None
    gateway_request_id: str | None = None
    status: str | None = None  # "OK" / "ERROR" when present
    error: str | None = None
    response: Any = None  # model-specific payload
    logs: list[dict[str, Any]] | None = None
    metrics: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "WebhookRequest":
        return cls(
            request_id=payload.get("request_id"),
            gateway_request_id=payload.get("gateway_request_id"),
            status=payload.get("status"),
            error=payload.get("error"),
            response=payload.get("payload"),
            logs=payload.get("logs"),
            metrics=payload.get("metrics"),
            raw=payload,
        )

    @classmethod
    def from_json(cls, body: str | bytes) -> "WebhookRequest":
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON in webhook body: {e}") from e
        if not isinstance(payload, dict):
            raise DecodeError("webhook body must be a JSON object")
        return cls.from_dict(payload)

    @property
    def success(self) -> bool:
        if self.status is None:
            return self.error is None
        return self.status == WebhookStatus.OK.value

    @property
    def is_error(self) -> bool:
        return not self.success

    @property
    def payload(self) -> Any:
        return self.response

    @property
    def error_detail(self) -> Any:
        if isinstance(self.response, dict):
            return self.response.get("detail")
        return None
