"""On-board charger and DC-DC converter messages and charger state."""

from __future__ import annotations

import enum
from dataclasses import dataclass

DCDC_STATUS_MSG_ID = 0x377
MMC_HEARTBEAT_MSG_ID = 0x285
OBC_COMMAND_MSG_ID = 0x286
OBC_STATUS1_MSG_ID = 0x389
OBC_STATUS2_MSG_ID = 0x38A

CHARGER_MAX_CURRENT = 120
CHARGER_MAX_VOLTAGE = 370

CHARGER_EVSE_CONNECTED = 0xB6
CHARGER_EVSE_DISCONNECTED = 0x14

TEMPERATURE_OFFSET = 40
CHARGER2_TEMPERATURE_CORRECTION = 5


class ChargerState(enum.IntEnum):
    BLOCKED = 0
    CONNECTED = 1
    CHARGING = 2
    CHARGED = 3
    DISCONNECTED = 4


class ProximityState(enum.IntEnum):
    EMPTY = 0
    PLUGGED = 1
    BUTTON_PUSHED = 2


class LedAction(enum.Enum):
    """What to do with the charge-port LED."""

    TOGGLE = "toggle"
    ON = "on"
    OFF = "off"


@dataclass
class Charger:
    """Charger command state as driven by the controller."""

    proximity_pilot: int = 0
    pp_state: ProximityState = ProximityState.EMPTY
    current: int = 0
    voltage: int = 0
    contactor_request: int = 0
    state: ChargerState = ChargerState.BLOCKED


@dataclass
class DCDCStatus:
    battery_voltage: float = 0.0
    supply_current: float = 0.0
    temperature1: int = 0
    temperature2: int = 0
    temperature3: int = 0
    status_byte: int = 0
    error: bool = False
    in_operation: bool = False
    ready: bool = False


@dataclass
class ChargerStatus1:
    hv_battery_voltage: int = 0
    ac_mains_voltage: int = 0
    dc_charge_current1: float = 0.0
    temperature1: int = 0
    temperature2: int = 0
    status_byte: int = 0
    mains_voltage_present: bool = False
    charging: bool = False
    error: bool = False
    dc_dc_converter_request: bool = False
    pilot_present: bool = False
    ac_mains_current: float = 0.0
    dc_charge_current2: float = 0.0


@dataclass
class ChargerStatus2:
    temperature1: int = 0
    temperature2: int = 0
    dc_bus_voltage: int = 0
    pwm_signal: int = 0
    status: int = 0
    wait_for_mains: bool = False
    ready_for_charging: bool = False


def _int8(value: int) -> int:
    return (value + 128) % 256 - 128


def _temperature(raw: int) -> int:
    return _int8(raw - TEMPERATURE_OFFSET)


def _payload(data, needed: int) -> bytes:
    payload = bytes(data)
    if len(payload) < needed:
        raise ValueError(f"payload needs {needed} bytes, got {len(payload)}")
    return payload


def decode_dcdc_status(data) -> DCDCStatus:
    """Decode the DC-DC converter status message."""
    d = _payload(data, 8)
    status = d[7]
    return DCDCStatus(
        battery_voltage=int.from_bytes(d[0:2], "big") * 0.01,
        supply_current=int.from_bytes(d[2:4], "big") * 0.1,
        temperature1=_temperature(d[4]),
        temperature2=_temperature(d[5]),
        temperature3=_temperature(d[6]),
        status_byte=status,
        error=bool(status & 0x01),
        in_operation=bool(status & 0x02),
        ready=bool(status & 0x20),
    )


def decode_charger_status1(data) -> ChargerStatus1:
    """Decode the first charger status message."""
    d = _payload(data, 8)
    status = d[5]
    return ChargerStatus1(
        hv_battery_voltage=d[0] * 2,
        ac_mains_voltage=d[1],
        dc_charge_current1=d[2] * 0.1,
        temperature1=_temperature(d[3]),
        temperature2=_temperature(d[4]),
        status_byte=status,
        mains_voltage_present=bool(status & 0x02),
        charging=bool(status & 0x08),
        error=bool(status & 0x10),
        dc_dc_converter_request=bool(status & 0x40),
        pilot_present=bool(status & 0x80),
        ac_mains_current=d[6] * 0.1,
        dc_charge_current2=d[7] * 0.1,
    )


def decode_charger_status2(data) -> ChargerStatus2:
    """Decode the second charger status message."""
    d = _payload(data, 5)
    status = d[4]
    return ChargerStatus2(
        temperature1=_int8(_temperature(d[0]) + CHARGER2_TEMPERATURE_CORRECTION),
        temperature2=_temperature(d[1]),
        dc_bus_voltage=d[2] * 2,
        pwm_signal=d[3],
        status=status,
        wait_for_mains=bool(status & 0x04),
        ready_for_charging=bool(status & 0x08),
    )


def charger_led(charger: Charger) -> LedAction:
    """Blink while charging, steady when charged, off otherwise."""
    if charger.state == ChargerState.CHARGING and charger.voltage > 0 and charger.current > 0:
        return LedAction.TOGGLE
    if charger.state == ChargerState.CHARGED:
        return LedAction.ON
    return LedAction.OFF