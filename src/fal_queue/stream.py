from typing import TYPE_CHECKING, Any, Callable, Iterator

from .sse import LineBuffer, SSEDecoder, SSEvent
from .warnings import maybe_warn

if TYPE_CHECKING:
    from .client import FalClient


class Stream:
    """
    Consume an SSE run on the sync base and hand decoded events to a callback.

    Delivery is synchronous and ordered: each event reaches the callback before
    the next line of the stream is decoded, and `each` returns only when the
    underlying HTTP call has finished. A partial line left over when the
    connection ends (or fails) is dropped, never turned into an event; a
    final lone `\\r` still terminates its line.
    """

    def __init__(self, path: str, input: dict | None, client: "FalClient"):
        self.path = path  # e.g. "/fal-ai/flux/dev/stream"
        self.input = input
        self.client = client

    def each(self, callback: Callable[[SSEvent], Any]) -> int:
        """Stream events into `callback`. Returns the number of events delivered."""
        buffer = LineBuffer()
        decoder = SSEDecoder()
        delivered = 0

        def deliver(lines: list[str]) -> None:
            nonlocal delivered
            for line in lines:
                event = decoder.decode(line)
                if event is not None:
                    callback(event)
                    delivered += 1

        self.client.post_stream(
            self.path, self.input or {}, on_chunk=lambda chunk: deliver(buffer.feed(chunk))
        )
        deliver(buffer.close())

        if delivered == 0:
            maybe_warn("WARN_EMPTY_STREAM", path=self.path)
        return delivered

    def __iter__(self) -> Iterator[SSEvent]:
        # the transport is callback-driven, so events are collected first and
        # yielded once the call returns; order is preserved
        events: list[SSEvent] = []
        self.each(events.append)
        yield from events
