"""Climate control state: heater PWM and electric AC compressor commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from evcontrol.frames import CanFrame

AC_COMMAND_MSG_ID = 0x185

AC_STATUS_START = 0x0B
AC_STATUS_STANDBY = 0x08
AC_MIN_RPM = 0x08
AC_MAX_RPM = 0x54

HEATER_MIN_PWM = 0
HEATER_MAX_PWM = 95


class AcState(enum.IntEnum):
    """Compressor command state."""

    START = AC_STATUS_START
    STANDBY = AC_STATUS_STANDBY


@dataclass
class ClimateState:
    """Heater and compressor commands plus the regulator input."""

    heater_pwm: int = HEATER_MIN_PWM
    ac_state: int = AcState.STANDBY
    ac_rpm: int = AC_MIN_RPM
    regulator_position: int = 0
    allowed: bool = False

    def reset(self) -> None:
        """Return the commands to their idle values and block the climate."""
        self.heater_pwm = HEATER_MIN_PWM
        self.ac_state = AcState.STANDBY
        self.ac_rpm = AC_MIN_RPM
        self.allowed = False


def clamp_ac_rpm(rpm: int) -> int:
    """Limit the compressor speed value to its accepted range."""
    return max(AC_MIN_RPM, min(AC_MAX_RPM, rpm))


def ac_command_frame(status: int, rpm: int) -> CanFrame:
    """Build the compressor command frame, sent every 100 ms."""
    return CanFrame(
        AC_COMMAND_MSG_ID,
        bytes([status, 0, 0x1D, 0, 0, clamp_ac_rpm(rpm), 0, 0]),
    )