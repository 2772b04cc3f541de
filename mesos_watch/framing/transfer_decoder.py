import re

import orjson

from mesos_watch.errors import ClientInitError
from mesos_watch.logging import DecoderDebug, DecoderError, LoggerStream

from .stream_state import DecoderPhase, Framing, StreamState
from .subscriber import Subscriber

NEW_LINE = b"\r\n"
HEADER_END = b"\r\n\r\n"
CONTENT_LENGTH = b"content-length"
CHUNKED_TERMINATOR = b"}\r\n0\r\n"

MAX_HEADER_BYTES = 65536
MAX_CONTENT_LENGTH = 2**63 - 2
MAX_CONTENT_LENGTH_DIGITS = len(str(MAX_CONTENT_LENGTH))

digits_pattern = re.compile(rb"\d+")


class TransferDecoder:
    """
    Reassembles a raw HTTP response stream into JSON documents.

    Bytes are fed in whatever pieces the socket delivered them. Each
    response is framed either by its ``Content-Length`` header or, when
    the header region carries none, as a chunked body ending at the
    ``}\\r\\n0\\r\\n`` terminator. Every completed cycle delivers exactly
    one call to the subscriber: the document text, or ``""`` when the
    cycle could not be decoded. Decode failures are never raised.
    """

    def __init__(
        self,
        subscriber: Subscriber | None = None,
        logger: LoggerStream | None = None,
    ) -> None:
        self.subscriber = subscriber
        self.documents = 0
        self.failures = 0
        self.last_outcome: DecoderPhase | None = None

        self._state = StreamState()
        self._logger = logger or LoggerStream(name="decoder")

    @property
    def phase(self) -> DecoderPhase:
        return self._state.phase

    @property
    def framing(self) -> Framing:
        return self._state.framing

    @property
    def declared_length(self) -> int | None:
        return self._state.declared_length

    @property
    def buffered(self) -> int:
        return len(self._state.buffer)

    def reset(self):
        self._state.reset()

    def feed(self, data: bytes):
        if self.subscriber is None:
            raise ClientInitError("Cannot parse data (no subscriber bound).")

        pending = bytes(data)
        while pending:
            pending = self._consume(pending)

    def _consume(self, data: bytes) -> bytes:
        state = self._state

        if state.in_body:
            return self._accumulate(data)

        state.buffer.extend(data)

        header_end = state.buffer.find(HEADER_END)
        if header_end == -1:
            if len(state.buffer) > MAX_HEADER_BYTES:
                self._fail(f"No header end within {MAX_HEADER_BYTES} bytes.")

            return b""

        headers = bytes(state.buffer[:header_end])
        body = bytes(state.buffer[header_end + len(HEADER_END):])
        state.buffer.clear()

        if self._classify(headers) is False:
            return b""

        state.in_body = True

        self._logger.log(
            DecoderDebug(
                message="Response headers received",
                framing=state.framing.value,
                buffered=len(body),
            )
        )

        return self._accumulate(body)

    def _classify(self, headers: bytes) -> bool:
        state = self._state

        for line in headers.split(NEW_LINE):
            name, separator, value = line.partition(b":")
            if not separator or name.strip().lower() != CONTENT_LENGTH:
                continue

            value = value.strip()
            declared_length = 0
            if len(value) > MAX_CONTENT_LENGTH_DIGITS:
                declared_length = MAX_CONTENT_LENGTH + 1

            elif digits_pattern.fullmatch(value):
                declared_length = int(value)

            if declared_length == 0 or declared_length > MAX_CONTENT_LENGTH:
                self._fail(
                    f"Invalid Content-Length {value[:32]!r} detected."
                )

                return False

            state.declared_length = declared_length
            state.framing = Framing.LENGTH

            return True

        state.framing = Framing.CHUNKED

        return True

    def _accumulate(self, data: bytes) -> bytes:
        state = self._state
        state.buffer.extend(data)

        if state.framing == Framing.LENGTH:
            if len(state.buffer) < state.declared_length:
                return b""

            payload = bytes(state.buffer[:state.declared_length])
            leftover = bytes(state.buffer[state.declared_length:])

            self._finalize(payload, chunked=False)

            return leftover

        search_start = max(0, state.scan_offset - len(CHUNKED_TERMINATOR) + 1)
        end_pos = state.buffer.find(CHUNKED_TERMINATOR, search_start)

        if end_pos == -1:
            state.scan_offset = len(state.buffer)
            return b""

        payload = bytes(state.buffer[:end_pos + 1])
        leftover = bytes(state.buffer[end_pos + len(CHUNKED_TERMINATOR):])

        if leftover.startswith(NEW_LINE):
            leftover = leftover[len(NEW_LINE):]

        self._finalize(payload, chunked=True)

        return leftover

    def _finalize(self, payload: bytes, chunked: bool):
        if chunked:
            purged = self._purge_chunked_markers(payload)

            if purged is None:
                self._fail("Invalid Mesos or Marathon JSON data detected (chunked transfer).")
                return

            payload = purged

        try:
            orjson.loads(payload)

        except orjson.JSONDecodeError:
            self._fail(
                "Invalid Mesos or Marathon JSON data detected ({transfer} transfer).".format(
                    transfer="chunked" if chunked else "non-chunked"
                )
            )
            return

        self._complete(payload)

    def _purge_chunked_markers(self, payload: bytes) -> bytes | None:
        # The body opens with the first chunk-size line.
        first_line_end = payload.find(NEW_LINE)
        if first_line_end == -1:
            return None

        data = payload[first_line_end + len(NEW_LINE):]

        parts: list[bytes] = []
        position = 0

        while (begin := data.find(NEW_LINE, position)) != -1:
            end = data.find(NEW_LINE, begin + len(NEW_LINE))

            # newlines must come in pairs
            if end == -1:
                return None

            parts.append(data[position:begin])
            position = end + len(NEW_LINE)

        parts.append(data[position:])

        return b"".join(parts)

    def _complete(self, payload: bytes):
        self._state.reset()
        self.last_outcome = DecoderPhase.COMPLETED
        self.documents += 1

        self.subscriber.emit(payload.decode())

    def _fail(self, reason: str):
        state = self._state

        self._logger.log(
            DecoderError(
                message=reason,
                framing=state.framing.value,
                buffered=len(state.buffer),
            )
        )

        state.reset()
        self.last_outcome = DecoderPhase.FAILED
        self.failures += 1

        self.subscriber.fail()
