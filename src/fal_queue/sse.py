"""Incremental SSE (Server-Sent Events) decoding."""

import codecs
import json
from dataclasses import dataclass
from typing import Any

from .errors import DecodeError
from .warnings import maybe_warn


@dataclass
class SSEvent:
    """A decoded Server-Sent Event. `data` is already JSON-parsed."""

    data: Any
    event: str = ""
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    """
    Parse Server-Sent Events one line at a time.

    Usage:
        decoder = SSEDecoder()
        for line in lines:
            event = decoder.decode(line)
            if event:
                # Process event
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._event = ""
        self._data = ""
        self._id: str | None = None
        self._retry: int | None = None

    def decode(self, line: str) -> SSEvent | None:
        """
        Process a single line (terminator already removed).

        Returns an SSEvent when a blank line completes an event that carried
        data, otherwise None.
        """
        if not line:
            return self._flush()

        # Comment line, e.g. ":heartbeat"
        if line.startswith(":"):
            return None

        field_name, _, value = line.partition(":")
        # Remove single leading space from value if present
        if value.startswith(" "):
            value = value[1:]

        if field_name == "event":
            self._event = value
        elif field_name == "data":
            self._data += value + "\n"
        elif field_name == "id":
            self._id = value
        elif field_name == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                maybe_warn("WARN_NON_NUMERIC_RETRY", value=value)
                self._retry = 0
        # Unknown fields are ignored

        return None

    def _flush(self) -> SSEvent | None:
        # blank lines before any data line are not events
        if not self._data:
            return None

        raw = self._data[:-1] if self._data.endswith("\n") else self._data
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON in SSE data field: {e}", body=raw) from e

        event = SSEvent(data=parsed, event=self._event, id=self._id, retry=self._retry)
        self._reset()
        return event


class LineBuffer:
    """
    Split a stream of chunks into complete lines.

    `\\r\\n` and lone `\\r` both count as one line terminator, including when
    the two bytes of a `\\r\\n` arrive in different chunks. The unterminated
    tail is carried to the next `feed` call and never returned on its own.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: bytes | str) -> list[str]:
        if isinstance(chunk, bytes):
            try:
                text = self._decoder.decode(chunk)
            except UnicodeDecodeError as e:
                raise DecodeError(f"invalid UTF-8 in event stream: {e}") from e
        else:
            text = chunk
        combined = self._pending + text

        # a trailing \r may be the first half of \r\n; decide on the next chunk
        held_cr = combined.endswith("\r")
        if held_cr:
            combined = combined[:-1]

        combined = combined.replace("\r\n", "\n").replace("\r", "\n")
        lines = combined.split("\n")
        self._pending = lines.pop() + ("\r" if held_cr else "")
        return lines

    def close(self) -> list[str]:
        """
        End of stream. A held `\\r` can no longer start a `\\r\\n`, so it
        terminates the pending line; any other unterminated tail is discarded.
        """
        pending, self._pending = self._pending, ""
        if pending.endswith("\r"):
            return [pending[:-1]]
        return []
