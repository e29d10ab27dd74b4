"""Battery management system state and decoding of its CAN data groups."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

from evcontrol.frames import CanFrame

MAX_CELL_COUNT = 192
MAX_MODULE_COUNT = 16

BMS_TX_MSG_ID = 0x000000F4
BMS_RX_MSG_ID = 0x000000F5

BMS_GROUP_ID_MIN = 0x01
BMS_GROUP_ID_MAX = 0x54

# Hysteresis for charge after a charged battery was discharged.
BMS_HYSTERESIS = 100

FRAME_LENGTH = 8
_PADDED_LENGTH = 9

CELL_GROUP_FIRST = 0x07
CELL_GROUP_LAST = 0x46
CELLS_PER_GROUP = 3

_STATUS_BITS = (
    ("host_temperature_below_zero", 0x0100),
    ("channel_status", 0x0080),
    ("current_polarity", 0x0040),
    ("balancing", 0x0020),
    ("over_discharge", 0x0010),
    ("over_current", 0x0008),
    ("battery_string_error", 0x0004),
    ("over_charging", 0x0002),
    ("over_temperature", 0x0001),
)

# Position in this tuple plus one is the log code the BMS reports.
_LOG_FIELDS = (
    "overcurrent_protection",
    "over_discharge_protection",
    "overcharge_protection",
    "over_temperature_protection",
    "battery_string_error_protection",
    "damaged_charging_relay",
    "damaged_discharge_relay",
    "low_voltage_power_outage_protection",
    "voltage_difference_protection",
    "low_temperature_protection",
)

# Groups made of three big-endian words at bytes 2, 4 and 6: (field, signed).
_WORD_GROUPS = {
    0x01: (
        ("discharge_protection_voltage", False),
        ("protective_current", False),
        ("battery_pack_capacity", False),
    ),
    0x02: (
        ("number_of_battery_strings", False),
        ("charging_protection_voltage", False),
        ("protection_temperature", False),
    ),
    0x03: (
        ("total_voltage", False),
        ("total_current", True),
        ("total_power", False),
    ),
    0x04: (
        ("battery_usage_capacity", False),
        ("battery_capacity_percentage", False),
        ("charging_capacity", False),
    ),
    0x05: (
        ("charging_recovery_voltage", False),
        ("discharge_recovery_voltage", False),
        ("remaining_capacity", False),
    ),
    0x50: (
        ("low_voltage_power_outage_protection", False),
        ("low_voltage_power_outage_delayed", False),
        ("num_of_triggering_protection_cells", False),
    ),
    0x51: (
        ("balanced_reference_voltage", False),
        ("minimum_voltage", False),
        ("maximum_voltage", False),
    ),
    0x53: (
        ("differential_pressure_setting_value", False),
        ("use_capacity_to_automatically_reset", False),
        ("low_temp_protection_setting_value", True),
    ),
    0x54: (
        ("hall_sensor_type", False),
        ("fan_start_setting_value", False),
        ("ptc_heating_start_setting_value", False),
    ),
}


@dataclass
class StatusAccounting:
    """Current alarms and status flags reported by the BMS."""

    host_temperature_below_zero: bool = False
    channel_status: bool = False
    current_polarity: bool = False
    balancing: bool = False
    over_discharge: bool = False
    over_current: bool = False
    battery_string_error: bool = False
    over_charging: bool = False
    over_temperature: bool = False

    @classmethod
    def from_word(cls, status_data: int) -> "StatusAccounting":
        """Decode the 16-bit status word."""
        return cls(**{name: bool(status_data & mask) for name, mask in _STATUS_BITS})


@dataclass
class ProtectingHistoricalLogs:
    """The last protection event recorded by the BMS; at most one flag is set."""

    overcurrent_protection: bool = False
    over_discharge_protection: bool = False
    overcharge_protection: bool = False
    over_temperature_protection: bool = False
    battery_string_error_protection: bool = False
    damaged_charging_relay: bool = False
    damaged_discharge_relay: bool = False
    low_voltage_power_outage_protection: bool = False
    voltage_difference_protection: bool = False
    low_temperature_protection: bool = False

    @classmethod
    def from_code(cls, logs_data: int) -> "ProtectingHistoricalLogs":
        """Decode the historical log code byte."""
        return cls(
            **{name: logs_data == code for code, name in enumerate(_LOG_FIELDS, start=1)}
        )


def _zero_cells() -> list[int]:
    return [0] * MAX_CELL_COUNT


def _zero_modules() -> list[int]:
    return [0] * MAX_MODULE_COUNT


def _false_modules() -> list[bool]:
    return [False] * MAX_MODULE_COUNT


@dataclass
class BatteryManagementSystem:
    """Everything the BMS reports, updated group by group."""

    # Groups 1-2
    discharge_protection_voltage: int = 0
    protective_current: int = 0
    battery_pack_capacity: int = 0
    number_of_battery_strings: int = 0
    charging_protection_voltage: int = 0
    protection_temperature: int = 0
    # Group 3
    total_voltage: int = 0
    total_current: int = 0
    total_power: int = 0
    # Group 4
    battery_usage_capacity: int = 0
    battery_capacity_percentage: int = 0
    charging_capacity: int = 0
    # Group 5
    charging_recovery_voltage: int = 0
    discharge_recovery_voltage: int = 0
    remaining_capacity: int = 0
    # Group 6
    host_temperature: int = 0
    status_accounting: StatusAccounting = field(default_factory=StatusAccounting)
    balancing_starting_voltage: int = 0
    # Groups 7-70
    cell_voltages: list[int] = field(default_factory=_zero_cells)
    # Groups 71-79
    module_temperature_polarity: list[bool] = field(default_factory=_false_modules)
    module_temperatures: list[int] = field(default_factory=_zero_modules)
    # Group 80
    low_voltage_power_outage_protection: int = 0
    low_voltage_power_outage_delayed: int = 0
    num_of_triggering_protection_cells: int = 0
    # Group 81
    balanced_reference_voltage: int = 0
    minimum_voltage: int = 0
    maximum_voltage: int = 0
    charging_discharging_mos_status: int = 0
    # Group 82
    accumulated_total_capacity: int = 0
    pre_charge_delay_time: int = 0
    lcd_status: int = 0
    # Group 83
    differential_pressure_setting_value: int = 0
    use_capacity_to_automatically_reset: int = 0
    low_temp_protection_setting_value: int = 0
    protecting_historical_logs: ProtectingHistoricalLogs = field(
        default_factory=ProtectingHistoricalLogs
    )
    # Group 84
    hall_sensor_type: int = 0
    fan_start_setting_value: int = 0
    ptc_heating_start_setting_value: int = 0
    default_channel_state: int = 0

    connected: bool = False
    minimum_temp: int = 0
    maximum_temp: int = 0

    def process_data(self, group_id: int, data) -> None:
        """Store one data group received from the BMS.

        Group ids outside the known range are ignored. Groups that carry a
        ninth byte read it as zero when the payload holds only eight.
        """
        payload = bytes(data)
        if len(payload) < FRAME_LENGTH:
            raise ValueError(f"BMS payload needs {FRAME_LENGTH} bytes, got {len(payload)}")
        if not BMS_GROUP_ID_MIN <= group_id <= BMS_GROUP_ID_MAX:
            return
        payload = payload.ljust(_PADDED_LENGTH, b"\0")

        def word(offset: int, signed: bool = False) -> int:
            return int.from_bytes(payload[offset:offset + 2], "big", signed=signed)

        for offset, (name, signed) in zip((2, 4, 6), _WORD_GROUPS.get(group_id, ())):
            setattr(self, name, word(offset, signed))

        if group_id == 0x06:
            self.host_temperature = word(2, signed=True)
            self.process_status_accounting(word(4))
            self.balancing_starting_voltage = word(6)
        elif CELL_GROUP_FIRST <= group_id <= CELL_GROUP_LAST:
            base = (group_id - CELL_GROUP_FIRST) * CELLS_PER_GROUP
            for i in range(CELLS_PER_GROUP):
                if base + i < MAX_CELL_COUNT:
                    self.cell_voltages[base + i] = word(1 + i * 2)
        elif group_id == 0x47:
            self.module_temperature_polarity[0] = bool(payload[3] & 0x01)
            self.module_temperatures[0] = word(4, signed=True)
        elif group_id == 0x51:
            self.charging_discharging_mos_status = payload[8]
        elif group_id == 0x52:
            self.accumulated_total_capacity = int.from_bytes(payload[2:6], "big")
            self.pre_charge_delay_time = word(6)
            self.lcd_status = payload[8]
        elif group_id == 0x53:
            self.process_historical_logs(payload[8])
        elif group_id == 0x54:
            self.default_channel_state = payload[8]

    def process_status_accounting(self, status_data: int) -> None:
        """Store the decoded status word."""
        self.status_accounting = StatusAccounting.from_word(status_data)

    def process_historical_logs(self, logs_data: int) -> None:
        """Store the decoded historical log code."""
        self.protecting_historical_logs = ProtectingHistoricalLogs.from_code(logs_data)

    def reset(self) -> None:
        """Clear reported values; the temperature extremes are left alone."""
        keep = {"minimum_temp", "maximum_temp"}
        fresh = BatteryManagementSystem()
        for f in fields(self):
            if f.name not in keep:
                setattr(self, f.name, getattr(fresh, f.name))


def connect_request_frames() -> tuple[CanFrame, CanFrame]:
    """The two request frames that ask the BMS to send its data."""
    return (
        CanFrame(BMS_TX_MSG_ID, bytes([0x10, 0x00, 0x02]), extended=True),
        CanFrame(BMS_TX_MSG_ID, bytes([0x1C, 0x00, 0x02]), extended=True),
    )