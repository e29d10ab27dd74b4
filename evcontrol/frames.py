"""CAN frame container and the packet checksum used on the vehicle buses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

MAX_STANDARD_ID = 0x7FF
MAX_EXTENDED_ID = 0x1FFFFFFF
MAX_DATA_LENGTH = 8
CHECKSUM_SPAN = 7


@dataclass(frozen=True)
class CanFrame:
    """A classic CAN data frame with up to eight payload bytes."""

    arbitration_id: int
    data: bytes = b""
    extended: bool = False

    def __post_init__(self) -> None:
        payload = bytes(self.data)
        limit = MAX_EXTENDED_ID if self.extended else MAX_STANDARD_ID
        if not 0 <= self.arbitration_id <= limit:
            raise ValueError(
                f"arbitration id {self.arbitration_id:#x} out of range for "
                f"{'extended' if self.extended else 'standard'} frame"
            )
        if len(payload) > MAX_DATA_LENGTH:
            raise ValueError(f"CAN payload holds at most {MAX_DATA_LENGTH} bytes")
        object.__setattr__(self, "data", payload)

    @property
    def dlc(self) -> int:
        """Data length code: the number of payload bytes."""
        return len(self.data)


def calculate_checksum(message: Iterable[int]) -> int:
    """XOR of the first seven bytes; 0 when the message is shorter than that."""
    payload = bytes(message)
    if len(payload) < CHECKSUM_SPAN:
        return 0
    checksum = 0
    for byte in payload[:CHECKSUM_SPAN]:
        checksum ^= byte
    return checksum