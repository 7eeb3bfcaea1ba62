"""
Packet codec for the printer link.

- PacketDecoder: streaming host-to-printer packet decoder
- PacketEncoder: host-to-printer packet serializer
- response_trailer / parse_response_trailer: printer-to-host status bytes
"""

from gbprinter.codec.decoder import (
    NEED_MORE,
    DecodeEvent,
    DecodeResult,
    DecoderState,
    PacketDecoder,
    decode_packets,
)
from gbprinter.codec.encoder import DEFAULT_PACKET_ENCODER, PacketEncoder, encode_packet
from gbprinter.codec.responder import parse_response_trailer, response_trailer

__all__ = [
    # Decoding
    "PacketDecoder",
    "DecoderState",
    "DecodeResult",
    "DecodeEvent",
    "NEED_MORE",
    "decode_packets",
    # Encoding
    "PacketEncoder",
    "DEFAULT_PACKET_ENCODER",
    "encode_packet",
    # Response
    "response_trailer",
    "parse_response_trailer",
]
