import pytest

from evcontrol.frames import CanFrame, calculate_checksum


def test_frame_keeps_payload_as_bytes():
    frame = CanFrame(0x185, [1, 2, 3])
    assert frame.data == b"\x01\x02\x03"
    assert frame.dlc == 3
    assert frame.extended is False


def test_standard_id_limit():
    assert CanFrame(0x7FF).arbitration_id == 0x7FF
    with pytest.raises(ValueError):
        CanFrame(0x800)


def test_extended_id_allows_29_bits():
    assert CanFrame(0x1FFFFFFF, extended=True).arbitration_id == 0x1FFFFFFF
    with pytest.raises(ValueError):
        CanFrame(0x20000000, extended=True)


def test_negative_id_rejected():
    with pytest.raises(ValueError):
        CanFrame(-1)


def test_payload_longer_than_eight_rejected():
    with pytest.raises(ValueError):
        CanFrame(0x100, bytes(9))


def test_checksum_short_message_is_zero():
    assert calculate_checksum([0xFF] * 6) == 0


def test_checksum_of_zeros_is_zero():
    assert calculate_checksum(bytes(8)) == 0


def test_checksum_of_single_repeated_byte():
    # Seven equal bytes XOR to the byte itself.
    assert calculate_checksum([0x5A] * 7) == 0x5A


def test_checksum_ignores_bytes_after_seventh():
    base = [1, 2, 4, 8, 16, 32, 64]
    assert calculate_checksum(base + [0]) == calculate_checksum(base + [0xFF])


def test_checksum_single_bit_flip_changes_result():
    base = [0x10, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77]
    flipped = list(base)
    flipped[3] ^= 0x01
    assert calculate_checksum(base) ^ calculate_checksum(flipped) == 0x01