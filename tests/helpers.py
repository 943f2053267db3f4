from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class Call:
    method: str
    path: str
    query: dict | None = None
    payload: Any = None


class FakeClient:
    """
    In-memory stand-in for FalClient.

    `stubs` maps (method, path) to a response: a plain value is returned every
    time, a list is consumed one entry per call, and a callable gets
    `(query, payload)`. Method names match the FalClient methods
    ("get", "post", "put", "get_api", "post_api"). `chunks` feed `post_stream`;
    an Exception among them is raised at that point of the stream.
    """

    def __init__(self, stubs: dict | None = None, chunks: list | None = None):
        self.stubs = stubs or {}
        self.chunks = chunks or []
        self.calls: list[Call] = []

    def post(self, path: str, payload: dict | None = None):
        return self._call("post", path, payload=payload)

    def get(self, path: str, query: dict | None = None):
        return self._call("get", path, query=query)

    def put(self, path: str):
        return self._call("put", path, payload={})

    def post_api(self, path: str, payload: dict | None = None):
        return self._call("post_api", path, payload=payload)

    def get_api(self, path: str, query: dict | None = None):
        return self._call("get_api", path, query=query)

    def post_stream(self, path: str, payload: dict | None = None, *, on_chunk: Callable):
        self.calls.append(Call("post_stream", path, payload=payload))
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            on_chunk(chunk)

    def calls_to(self, method: str, path: str | None = None) -> list[Call]:
        return [
            c for c in self.calls if c.method == method and (path is None or c.path == path)
        ]

    def _call(self, method: str, path: str, query=None, payload=None):
        self.calls.append(Call(method, path, query=query, payload=payload))
        responder = self.stubs.get((method, path))
        if responder is None:
            raise AssertionError(f"No stub for {method} {path}")
        if callable(responder):
            return responder(query, payload)
        if isinstance(responder, list):
            assert responder, f"stub for {method} {path} exhausted"
            return responder.pop(0)
        return responder


def sse(*payloads: str) -> str:
    """Join raw JSON strings into an SSE body, one `data:` event each."""
    return "".join(f"data: {p}\n\n" for p in payloads)
