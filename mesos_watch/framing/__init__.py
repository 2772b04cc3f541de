from .stream_state import (
    DecoderPhase as DecoderPhase,
    Framing as Framing,
    StreamState as StreamState,
)
from .subscriber import Consumer as Consumer, Subscriber as Subscriber
from .transfer_decoder import TransferDecoder as TransferDecoder
