"""
Queued requests against fal model endpoints.

A `Request` is the client-side record of one submitted job. It is created by
`Request.create` (queue submission), `Request.find_by` (status lookup) or
`Request.stream` (SSE run), and moves forward with `reload`:

    IN_QUEUE -> IN_PROGRESS -> COMPLETED

See: https://docs.fal.ai/model-apis/model-endpoints/queue
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from .client import FalClient, default_client
from .stream import Stream
from .util.validation import get_model_from_payload
from .warnings import maybe_warn


class Status(str, Enum):
    IN_QUEUE = "IN_QUEUE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {Status.IN_QUEUE: 0, Status.IN_PROGRESS: 1, Status.COMPLETED: 2}


class SubmitPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    request_id: str
    status: Status | None = None
    queue_position: int | None = None


class StatusPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    request_id: str | None = None
    status: Status | None = None
    queue_position: int | None = None
    logs: list[dict[str, Any]] | None = None


def endpoint_namespace(endpoint_id: str) -> str:
    """Queue status/result/cancel paths drop any subpath: "fal-ai/flux/dev" -> "fal-ai/flux"."""
    return "/".join(endpoint_id.split("/")[:2])


def _status_path(endpoint_id: str, request_id: str) -> str:
    return f"/{endpoint_namespace(endpoint_id)}/requests/{request_id}/status"


def _result_path(endpoint_id: str, request_id: str) -> str:
    return f"/{endpoint_namespace(endpoint_id)}/requests/{request_id}"


def _cancel_path(endpoint_id: str, request_id: str) -> str:
    return f"/{endpoint_namespace(endpoint_id)}/requests/{request_id}/cancel"


@dataclass
class Request:
    # request identity
    endpoint_id: str  # the endpoint the job was submitted to, e.g. "fal-ai/flux/dev"
    id: str | None = None

    # lifecycle state
    status: Status | None = Status.IN_QUEUE
    queue_position: int | None = None
    logs: list[dict[str, Any]] | None = None
    response: Any = None  # result payload, only set once COMPLETED

    client: FalClient = field(default_factory=default_client, repr=False, compare=False)

    # construction ------------------------------------------------------------
    @classmethod
    def create(
        cls,
        endpoint_id: str,
        input: dict | None = None,
        webhook_url: str | None = None,
        client: FalClient | None = None,
    ) -> "Request":
        """
        Submit a job to the queue: POST https://queue.fal.run/{endpoint_id}.
        With `webhook_url`, fal delivers the result there as well
        (`fal_webhook` query param).
        """
        client = client or default_client()
        path = f"/{endpoint_id}"
        if webhook_url:
            path = f"{path}?fal_webhook={quote_plus(webhook_url)}"
        data = client.post(path, input or {})
        payload = get_model_from_payload(data, SubmitPayload, "submit")
        return cls(
            endpoint_id=endpoint_id,
            id=payload.request_id,
            status=payload.status or Status.IN_QUEUE,
            queue_position=payload.queue_position,
            client=client,
        )

    @classmethod
    def fetch_status(
        cls,
        id: str,
        endpoint_id: str,
        logs: bool = False,
        client: FalClient | None = None,
    ) -> StatusPayload:
        """One-shot status lookup; builds nothing and mutates nothing."""
        client = client or default_client()
        data = client.get(_status_path(endpoint_id, id), query={"logs": 1} if logs else None)
        return get_model_from_payload(data, StatusPayload, "status")

    @classmethod
    def find_by(
        cls,
        id: str,
        endpoint_id: str,
        logs: bool = False,
        client: FalClient | None = None,
    ) -> "Request":
        client = client or default_client()
        request = cls(endpoint_id=endpoint_id, id=id, client=client)
        request._apply_status(cls.fetch_status(id, endpoint_id, logs=logs, client=client))
        return request

    @classmethod
    def stream(
        cls,
        endpoint_id: str,
        input: dict | None = None,
        callback: Callable[[Any], Any] | None = None,
        client: FalClient | None = None,
    ) -> "Request":
        """
        Run `endpoint_id` synchronously over SSE (POST https://fal.run/{endpoint_id}/stream).

        `callback` receives each event's data as it arrives. The returned record
        is built from the last event only: its nested `response` (or the whole
        data when there is none) becomes `response`, and `status`/`id` are read
        from it when present. A last event without a status leaves `status` as
        None even though a payload was received.
        """
        client = client or default_client()
        last_data: Any = None

        def on_event(event) -> None:
            nonlocal last_data
            last_data = event.data
            if callback is not None:
                callback(event.data)

        Stream(path=f"/{endpoint_id}/stream", input=input, client=client).each(on_event)

        if isinstance(last_data, dict):
            response_payload = last_data.get("response", last_data)
            request_id = last_data.get("request_id")
            status = last_data.get("status")
        else:
            response_payload, request_id, status = last_data, None, None

        return cls(
            endpoint_id=endpoint_id,
            id=request_id,
            status=_parse_status(status),
            response=response_payload,
            client=client,
        )

    # lifecycle ---------------------------------------------------------------
    @property
    def in_queue(self) -> bool:
        return self.status is Status.IN_QUEUE

    @property
    def in_progress(self) -> bool:
        return self.status is Status.IN_PROGRESS

    @property
    def completed(self) -> bool:
        return self.status is Status.COMPLETED

    def reload(self, logs: bool = False) -> "Request":
        """
        Refresh status from the queue, then fetch the result if completed.

        Once COMPLETED the status call is skipped, but the result is fetched on
        every call.
        """
        if self.id is None:
            raise ValueError("request has no id; it cannot be reloaded")

        if self.status is not Status.COMPLETED:
            self._apply_status(
                self.fetch_status(self.id, self.endpoint_id, logs=logs, client=self.client)
            )

        if self.status is Status.COMPLETED:
            self.response = self.client.get(_result_path(self.endpoint_id, self.id))

        return self

    def cancel(self) -> Any:
        """Ask the queue to cancel; the server decides, its answer is returned as is."""
        if self.id is None:
            raise ValueError("request has no id; it cannot be cancelled")
        return self.client.put(_cancel_path(self.endpoint_id, self.id))

    def wait(
        self,
        poll_interval: float = 1.0,
        timeout: float | None = None,
        logs: bool = False,
        show_progress: bool = False,
    ) -> "Request":
        """Block, calling `reload` every `poll_interval` seconds until COMPLETED."""
        start_time = time.monotonic()
        console = Console() if show_progress else None
        live = Live(console=console, refresh_per_second=10) if console else None

        if live:
            live.start()
        try:
            while True:
                self.reload(logs=logs)
                elapsed = time.monotonic() - start_time
                if live:
                    live.update(_create_status_display(self, elapsed))
                if self.completed:
                    break
                if timeout is not None and elapsed + poll_interval > timeout:
                    raise TimeoutError(
                        f"request {self.id} not completed after {elapsed:.1f}s (status: {self.status})"
                    )
                time.sleep(poll_interval)
        finally:
            if live:
                live.stop()

        if console:
            console.print(f"✅ Request {self.id} completed!", style="green bold")
        return self

    def _apply_status(self, payload: StatusPayload) -> None:
        # sparse merge: absent fields keep what we already know
        if payload.request_id:
            self.id = payload.request_id
        if payload.status is not None:
            if self.status is not None and payload.status.rank < self.status.rank:
                maybe_warn(
                    "WARN_STATUS_REGRESSION",
                    reported=payload.status.value,
                    request_id=self.id,
                    current=self.status.value,
                    stacklevel=4,
                )
            else:
                self.status = payload.status
        elif self.status is None:
            self.status = Status.IN_QUEUE
        if payload.queue_position is not None:
            self.queue_position = payload.queue_position
        if payload.logs is not None:
            self.logs = payload.logs
        if self.status is not Status.COMPLETED:
            self.response = None


def _parse_status(value: Any) -> Status | None:
    try:
        return Status(value)
    except ValueError:
        return None


def _create_status_display(request: Request, elapsed: float):
    minutes = int(elapsed // 60)
    seconds = int(elapsed % 60)
    elapsed_str = f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"

    progress_text = ""
    if request.in_queue and request.queue_position is not None:
        progress_text = f" • position {request.queue_position}"

    status = request.status.value if request.status else "UNKNOWN"
    grid = Table.grid()
    grid.add_column()
    grid.add_column()
    grid.add_row(
        Spinner("dots", style="blue", text=""),
        Text(
            f" Request {request.id} • {status} • {elapsed_str}{progress_text}",
            style="white",
        ),
    )
    return grid
