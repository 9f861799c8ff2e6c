"""Incremental decoder for ``text/event-stream`` bodies."""

from dataclasses import dataclass, field

DEFAULT_EVENT_TYPE = "message"


@dataclass
class SSEEvent:
    """One dispatched server-sent event."""

    event: str
    data: str


@dataclass
class SSEDecoder:
    """
    Turns arbitrarily split text chunks into complete events.

    Lines are buffered until a newline arrives, so chunk boundaries need not
    line up with line or event boundaries. ``event:`` sets the type for the
    current event, ``data:`` lines accumulate, a blank line dispatches, and
    comment lines (leading ``:``) are skipped. Events whose data is blank are
    dropped.
    """

    _buffer: str = ""
    _event_type: str = DEFAULT_EVENT_TYPE
    _data_lines: list[str] = field(default_factory=list)

    def feed(self, chunk: str) -> list[SSEEvent]:
        self._buffer += chunk
        events: list[SSEEvent] = []

        while True:
            idx = self._buffer.find("\n")
            if idx == -1:
                break
            line = self._buffer[:idx]
            self._buffer = self._buffer[idx + 1 :]
            if line.endswith("\r"):
                line = line[:-1]

            if line == "":
                event = self._dispatch()
                if event is not None:
                    events.append(event)
            elif line.startswith(":"):
                continue
            elif line.startswith("event:"):
                self._event_type = line[len("event:") :].strip() or DEFAULT_EVENT_TYPE
            elif line.startswith("data:"):
                self._data_lines.append(line[len("data:") :].removeprefix(" "))

        return events

    def _dispatch(self) -> SSEEvent | None:
        data = "\n".join(self._data_lines)
        event_type = self._event_type or DEFAULT_EVENT_TYPE
        self._event_type = DEFAULT_EVENT_TYPE
        self._data_lines = []
        if not data.strip():
            return None
        return SSEEvent(event=event_type, data=data)
