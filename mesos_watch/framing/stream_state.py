from dataclasses import dataclass, field
from enum import Enum


class DecoderPhase(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"
    FAILED = "failed"


class Framing(Enum):
    PENDING = "pending"
    LENGTH = "length"
    CHUNKED = "chunked"


@dataclass(slots=True)
class StreamState:
    """
    Reassembly state for one watch socket.

    While ``in_body`` is False the buffer holds response header bytes,
    afterwards it holds body bytes only.
    """

    buffer: bytearray = field(default_factory=bytearray)
    declared_length: int | None = None
    framing: Framing = Framing.PENDING
    in_body: bool = False
    scan_offset: int = 0

    @property
    def phase(self) -> DecoderPhase:
        if not self.buffer and self.declared_length is None and self.in_body is False:
            return DecoderPhase.EMPTY

        return DecoderPhase.ACCUMULATING

    def reset(self):
        self.buffer.clear()
        self.declared_length = None
        self.framing = Framing.PENDING
        self.in_body = False
        self.scan_offset = 0
