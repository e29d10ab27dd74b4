"""Board pins, pin states and the bus/GPIO interfaces the controller drives."""

from __future__ import annotations

import enum
from typing import Protocol

from evcontrol.frames import CanFrame

CAN1 = 1
CAN2 = 2
CAN_CHANNELS = (CAN1, CAN2)


class PinState(enum.IntEnum):
    """Logic level of a GPIO pin."""

    RESET = 0
    SET = 1


class Pin(enum.Enum):
    """Board pins as (port letter, pin number)."""

    OUT_INT_LED = ("C", 13)
    BTN_CLIMATE = ("C", 3)
    IN_TEMP_INV = ("A", 1)
    IN_TEMP_EXT = ("A", 2)
    IN_CHARGER_PP = ("A", 3)
    IN_CLIMATE_ADC = ("A", 4)
    EXT_46 = ("A", 5)
    IN_BRAKE = ("A", 6)
    IN_BRAKE_FAULT = ("A", 7)
    IN_BTN_LOCKUP = ("C", 4)
    IN_LOW_BEAM = ("C", 5)
    IN_HIGH_BEAM = ("B", 0)
    IN_TURN_RIGHT = ("B", 1)
    IN_TURN_LEFT = ("B", 2)
    IN_POSITION_LIGHTS = ("E", 7)
    IN_FRONT_FOG = ("E", 8)
    IN_REAR_FOG = ("E", 9)
    IN_PARK_BRAKE = ("E", 10)
    IN_RR_DOOR = ("E", 11)
    IN_RL_DOOR = ("E", 12)
    IN_FR_DOOR = ("E", 13)
    IN_FL_DOOR = ("E", 14)
    IN_IGNITION = ("E", 15)
    IN_BTN_AC = ("B", 10)
    IN_BTN_ECO = ("B", 11)
    OUT_PWM_HEATER = ("B", 14)
    IN_FB_RESERVE3_4 = ("B", 15)
    OUT_PUMP = ("D", 8)
    OUT_CP_LED = ("D", 9)
    IN_FB_RESERVE1_2 = ("D", 10)
    OUT_IGCT = ("D", 11)
    OUT_FAN2 = ("D", 12)
    IN_FB_FANS = ("D", 13)
    OUT_FAN1 = ("D", 14)
    OUT_DIFFLOCK = ("D", 15)
    IN_FB_ECO_DIFFLOCK = ("C", 6)
    OUT_ECO = ("C", 7)
    OUT_PARK = ("C", 8)
    IN_FB_REV_PARK = ("C", 9)
    OUT_REVERSE = ("A", 8)
    OUT_DRIVE = ("A", 9)
    IN_FB_DRIVE_IGN = ("A", 10)
    OUT_IGN = ("A", 11)

    @property
    def port(self) -> str:
        return self.value[0]

    @property
    def number(self) -> int:
        return self.value[1]

    @property
    def mask(self) -> int:
        """Bit mask of the pin within its port."""
        return 1 << self.number

    @property
    def is_output(self) -> bool:
        return self.name.startswith("OUT_")


class CanBus(Protocol):
    """Something that can transmit CAN frames on a numbered channel."""

    def send(self, channel: int, frame: CanFrame) -> None: ...


class Gpio(Protocol):
    """Digital pin access."""

    def write(self, pin: Pin, state: PinState) -> None: ...

    def read(self, pin: Pin) -> PinState: ...

    def toggle(self, pin: Pin) -> PinState: ...


def _check_channel(channel: int) -> None:
    if channel not in CAN_CHANNELS:
        raise ValueError(f"unknown CAN channel {channel}")


class RecordingBus:
    """A CAN bus that keeps every frame handed to it, in order."""

    def __init__(self) -> None:
        self.frames: list[tuple[int, CanFrame]] = []

    def send(self, channel: int, frame: CanFrame) -> None:
        _check_channel(channel)
        self.frames.append((channel, frame))

    def sent_on(self, channel: int) -> list[CanFrame]:
        """Frames sent on one channel."""
        _check_channel(channel)
        return [frame for ch, frame in self.frames if ch == channel]

    def clear(self) -> None:
        self.frames.clear()


class SimulatedGpio:
    """In-memory pin levels; every pin starts low."""

    def __init__(self) -> None:
        self._levels: dict[Pin, PinState] = {}
        self.history: list[tuple[Pin, PinState]] = []

    def write(self, pin: Pin, state) -> None:
        level = PinState(int(state))
        self._levels[pin] = level
        self.history.append((pin, level))

    def read(self, pin: Pin) -> PinState:
        return self._levels.get(pin, PinState.RESET)

    def toggle(self, pin: Pin) -> PinState:
        level = PinState.RESET if self.read(pin) == PinState.SET else PinState.SET
        self.write(pin, level)
        return level