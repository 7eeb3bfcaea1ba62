"""
Data models for the link protocol.

This module contains Pydantic models representing the data structures
exchanged with the printer:

- Packet (decoded host-to-printer message)
- StatusBitfield (printer status byte)
- PrintInstruction (Print packet payload)
- PrintJob (image handed to the printing consumer)
"""

from gbprinter.models.records import Packet, PrintInstruction, PrintJob
from gbprinter.models.status import STATUS_FIELD_BITS, StatusBitfield

__all__ = [
    "Packet",
    "PrintInstruction",
    "PrintJob",
    "StatusBitfield",
    "STATUS_FIELD_BITS",
]
