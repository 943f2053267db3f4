import json
from typing import Any, Callable

import requests
from rich.console import Console

from .config import ClientConfig
from .errors import DecodeError, TransportError, error_for_status


class FalClient:
    """
    Blocking HTTP transport for the three fal bases.

    - queue base: `post`, `get`, `put` (submit, status, result, cancel)
    - sync base: `post_stream` (SSE runs, chunks handed to a callback)
    - platform API base: `get_api`, `post_api` (models, pricing)

    Every call blocks until the response has been read. Non-2xx statuses are
    raised as the matching `FalError` subclass; nothing is retried here.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: requests.Session | None = None,
        require_key: bool = False,
    ):
        self.config = config or ClientConfig()
        if require_key:
            self.config.require_key()
        self.session = session or requests.Session()
        self._console = Console(stderr=True, highlight=False) if self.config.verbose else None

    def __enter__(self) -> "FalClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    # queue base ----------------------------------------------------------------
    def post(self, path: str, payload: dict | None = None) -> Any:
        return self._request("POST", self.config.queue_base + path, payload=payload)

    def get(self, path: str, query: dict | None = None) -> Any:
        return self._request("GET", self.config.queue_base + path, query=query)

    def put(self, path: str) -> Any:
        return self._request("PUT", self.config.queue_base + path, payload={})

    # platform API base ---------------------------------------------------------
    def post_api(self, path: str, payload: dict | None = None) -> Any:
        return self._request("POST", self.config.api_base + path, payload=payload)

    def get_api(self, path: str, query: dict | None = None) -> Any:
        return self._request("GET", self.config.api_base + path, query=query)

    # sync base -----------------------------------------------------------------
    def post_stream(
        self,
        path: str,
        payload: dict | None = None,
        *,
        on_chunk: Callable[[bytes], None],
    ) -> None:
        """
        POST to the sync base and hand every raw body chunk to `on_chunk` as it
        arrives. Returns once the server closes the stream.
        """
        url = self.config.sync_base + path
        headers = self._headers(
            {
                "Accept": "text/event-stream",
                "Cache-Control": "no-store",
                "Content-Type": "application/json",
            }
        )
        try:
            with self.session.post(
                url,
                data=_encode_body(payload),
                headers=headers,
                timeout=self.config.request_timeout,
                stream=True,
            ) as response:
                self._trace("POST", url, response.status_code)
                if not response.ok:
                    raise error_for_status(response.status_code, response.text)
                for chunk in response.iter_content(chunk_size=None):
                    if chunk:
                        on_chunk(chunk)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"stream to {url} failed: {e}") from e

    # helpers -------------------------------------------------------------------
    def _headers(self, extra: dict[str, str]) -> dict[str, str]:
        headers = dict(extra)
        if self.config.api_key:
            headers["Authorization"] = f"Key {self.config.api_key}"
        return headers

    def _request(
        self,
        method: str,
        url: str,
        payload: dict | None = None,
        query: dict | None = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        data = None
        if method != "GET":
            headers["Content-Type"] = "application/json"
            data = _encode_body(payload)
        try:
            response = self.session.request(
                method,
                url,
                params=query or None,
                data=data,
                headers=self._headers(headers),
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        self._trace(method, url, response.status_code)
        if not response.ok:
            raise error_for_status(response.status_code, response.text)
        return parse_json(response.text)

    def _trace(self, method: str, url: str, status_code: int) -> None:
        if self._console is None:
            return
        style = "green" if 200 <= status_code < 300 else "red"
        self._console.print(f"[dim]{method}[/dim] {url} -> [{style}]{status_code}[/{style}]")


def _encode_body(payload: dict | None) -> str:
    # top-level None values are dropped, nested ones are sent as null
    body = {k: v for k, v in (payload or {}).items() if v is not None}
    return json.dumps(body)


def parse_json(body: str | None) -> Any:
    if body is None or not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON in response body: {e}", body=body) from e


_default_client: FalClient | None = None


def default_client() -> FalClient:
    """Lazily build a shared client from FAL_* environment variables."""
    global _default_client
    if _default_client is None:
        _default_client = FalClient(ClientConfig.from_env())
    return _default_client


def configure(require_key: bool = False, **kwargs) -> FalClient:
    """Replace the shared client; keyword arguments override the environment."""
    global _default_client
    _default_client = FalClient(ClientConfig.from_env(**kwargs), require_key=require_key)
    return _default_client
