"""Drive modes, climate power mapping and charger sequencing."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from evcontrol.bms import BMS_HYSTERESIS, BatteryManagementSystem
from evcontrol.climate import (
    AC_MAX_RPM,
    AC_MIN_RPM,
    HEATER_MAX_PWM,
    HEATER_MIN_PWM,
    AcState,
    ClimateState,
)
from evcontrol.frames import CanFrame
from evcontrol.hardware import Gpio, Pin, PinState
from evcontrol.obc import (
    CHARGER_EVSE_CONNECTED,
    CHARGER_EVSE_DISCONNECTED,
    CHARGER_MAX_CURRENT,
    CHARGER_MAX_VOLTAGE,
    MMC_HEARTBEAT_MSG_ID,
    OBC_COMMAND_MSG_ID,
    Charger,
    ChargerState,
    ProximityState,
)

ECO_MODE_HYST = 5
ECO_MIN_CHARGE = 20
ECO_MODE_TEMP = 40

CLIMATE_HEATER_PWM = 66

WAKE_CLUSTER_MSG_ID = 0x102
DEBUG_MSG_ID = 0x777

PP_PLUGGED_MAX = 0x0900
PP_BUTTON_MAX = 0x0C80

OBC_COMMAND_MARKER = 55

# Regulator readings: below 1216 drives the compressor, from 1344 the heater.
AC_ZONE_END = 1216
HEATER_ZONE_START = 1344
_AC_THRESHOLDS = (128, 256, 384, 512, 640, 768, 896, 1024, 1152, 1216)
_AC_RPMS = (AC_MAX_RPM, 77, 69, 61, 53, 45, 37, 31, 24, 16)
_HEATER_THRESHOLDS = (1408, 1536, 1664, 1792, 1920, 2048, 2176, 2304, 2431)
_HEATER_PWMS = (9, 18, 27, 36, 45, 54, 63, 72, 81, HEATER_MAX_PWM)


@dataclass
class Control:
    """Driver requests and the resulting mode states."""

    request_eco: bool = False
    request_ac: bool = False
    request_ignition: bool = False
    eco_state: bool = False
    ac_state: bool = False
    ignition_state: bool = False


def _eco_may_be_off(control: Control, bms: BatteryManagementSystem) -> bool:
    if control.request_eco:
        return False
    hyst = ECO_MODE_HYST if control.eco_state else 0
    return (
        bms.maximum_temp < ECO_MODE_TEMP - hyst
        and bms.battery_capacity_percentage > ECO_MIN_CHARGE + hyst
    )


def update_modes(
    control: Control, bms: BatteryManagementSystem, climate: ClimateState, gpio: Gpio
) -> int:
    """Apply eco mode, pump and compressor state; return the heater PWM duty."""
    if _eco_may_be_off(control, bms):
        gpio.write(Pin.OUT_ECO, PinState.SET)
        control.eco_state = False
    else:
        gpio.write(Pin.OUT_ECO, PinState.RESET)
        control.eco_state = True

    if climate.allowed:
        climate.heater_pwm = CLIMATE_HEATER_PWM
        gpio.write(Pin.OUT_PUMP, PinState.SET)
    else:
        climate.heater_pwm = HEATER_MIN_PWM
        gpio.write(Pin.OUT_PUMP, PinState.RESET)

    climate.ac_state = AcState.START if control.request_ac else AcState.STANDBY
    return climate.heater_pwm


def set_climate_power(climate: ClimateState, input_value: int) -> None:
    """Map the climate regulator reading to compressor speed and heater PWM."""
    if input_value >= AC_ZONE_END:
        climate.ac_rpm = AC_MIN_RPM
    if input_value < HEATER_ZONE_START:
        climate.heater_pwm = HEATER_MIN_PWM

    if input_value < AC_ZONE_END:
        climate.ac_rpm = _AC_RPMS[bisect_right(_AC_THRESHOLDS, input_value)]
    elif input_value >= HEATER_ZONE_START:
        climate.heater_pwm = _HEATER_PWMS[bisect_right(_HEATER_THRESHOLDS, input_value)]


def update_charger(charger: Charger, bms: BatteryManagementSystem, gpio: Gpio) -> CanFrame:
    """Advance the charging sequence from the proximity pilot and build the OBC command."""
    pp = charger.proximity_pilot
    if PP_PLUGGED_MAX < pp <= PP_BUTTON_MAX:
        charger.pp_state = ProximityState.BUTTON_PUSHED
        charger.current = 0
        charger.voltage = 0
        charger.state = ChargerState.BLOCKED
    elif pp <= PP_PLUGGED_MAX:
        charger.pp_state = ProximityState.PLUGGED
        if charger.state in (ChargerState.BLOCKED, ChargerState.DISCONNECTED):
            charger.state = ChargerState.CONNECTED
        if charger.state == ChargerState.CONNECTED:
            gpio.write(Pin.OUT_IGCT, PinState.SET)
            charger.voltage = CHARGER_MAX_VOLTAGE
            charger.contactor_request = CHARGER_EVSE_CONNECTED
            charger.state = ChargerState.CHARGING
        elif charger.state == ChargerState.CHARGING:
            if bms.maximum_voltage >= bms.charging_protection_voltage:
                charger.state = ChargerState.CHARGED
                charger.voltage = 0
                charger.current = 0
            elif charger.current < CHARGER_MAX_CURRENT:
                charger.current += 1
        elif charger.state == ChargerState.CHARGED:
            if bms.maximum_voltage < bms.charging_protection_voltage - BMS_HYSTERESIS:
                charger.state = ChargerState.CHARGING
    else:
        gpio.write(Pin.OUT_IGCT, PinState.RESET)
        charger.pp_state = ProximityState.EMPTY
        charger.current = 0
        charger.voltage = 0
        charger.contactor_request = CHARGER_EVSE_DISCONNECTED
        charger.state = ChargerState.DISCONNECTED

    high = (charger.voltage >> 8) & 0xFF
    # Sending the command leaves only the low byte of the voltage stored.
    charger.voltage &= 0xFF
    return CanFrame(
        OBC_COMMAND_MSG_ID,
        bytes([high, charger.voltage, charger.current & 0xFF, OBC_COMMAND_MARKER, 0, 0, 0, 0]),
    )


def heartbeat_frame(contactor_request: int) -> CanFrame:
    """Heartbeat for the AC compressor and charger modules."""
    return CanFrame(
        MMC_HEARTBEAT_MSG_ID,
        bytes([0, 0, contactor_request & 0xFF, 0x39, 0x91, 0xFE, 0x0C, 0x10]),
    )


def wake_cluster_frame() -> CanFrame:
    """Frame that keeps the instrument cluster awake."""
    return CanFrame(
        WAKE_CLUSTER_MSG_ID,
        bytes([0x22, 0xB3, 0x88, 0x04, 0x92, 0x30, 0x11, 0x0C]),
    )


def debug_frame(
    minimum_voltage: int, maximum_voltage: int, regulator: int, charger_pp: int
) -> CanFrame:
    """Diagnostic frame with four big-endian 16-bit values."""
    payload = b"".join(
        (value & 0xFFFF).to_bytes(2, "big")
        for value in (minimum_voltage, maximum_voltage, regulator, charger_pp)
    )
    return CanFrame(DEBUG_MSG_ID, payload)