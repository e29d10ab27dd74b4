"""The vehicle control unit: reacts to CAN traffic, ADC samples and timer ticks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from evcontrol.bms import BMS_RX_MSG_ID, BatteryManagementSystem, connect_request_frames
from evcontrol.climate import ClimateState, ac_command_frame
from evcontrol.control import (
    Control,
    debug_frame,
    heartbeat_frame,
    update_charger,
    update_modes,
    wake_cluster_frame,
)
from evcontrol.frames import CanFrame
from evcontrol.hardware import CAN1, CAN2, CanBus, Gpio, Pin, PinState
from evcontrol.obc import (
    DCDC_STATUS_MSG_ID,
    OBC_STATUS1_MSG_ID,
    OBC_STATUS2_MSG_ID,
    Charger,
    ChargerStatus1,
    ChargerStatus2,
    DCDCStatus,
    LedAction,
    charger_led,
    decode_charger_status1,
    decode_charger_status2,
    decode_dcdc_status,
)

# CAN timer ticks every 10 ms; periods are in ticks.
CAN_TIM_PERIOD_10 = 1
CAN_TIM_PERIOD_20 = 2
CAN_TIM_PERIOD_100 = 10
CAN_TIM_PERIOD_500 = 50
CAN_TIM_PERIOD_1000 = 100

# GPIO timer ticks every 100 ms.
GPIO_TIM_PERIOD_100 = 1
GPIO_TIM_PERIOD_500 = 5
GPIO_TIM_PERIOD_1000 = 10

ADC_CHANNELS = 4
ADC_CHARGER_PP = 2
ADC_CLIMATE_REGULATOR = 3

# Values used in place of live BMS data when the BMS is not in use.
STANDIN_CHARGING_PROTECTION_VOLTAGE = 4150
STANDIN_MAXIMUM_VOLTAGE = 4000


@dataclass
class VehicleController:
    """All controller state, driven by bus callbacks and periodic ticks."""

    bus: CanBus
    gpio: Gpio
    use_bms: bool = False
    bms: BatteryManagementSystem = field(default_factory=BatteryManagementSystem)
    charger: Charger = field(default_factory=Charger)
    dcdc_status: DCDCStatus = field(default_factory=DCDCStatus)
    charger_status1: ChargerStatus1 = field(default_factory=ChargerStatus1)
    charger_status2: ChargerStatus2 = field(default_factory=ChargerStatus2)
    climate: ClimateState = field(default_factory=ClimateState)
    control: Control = field(default_factory=Control)
    adc_samples: list[int] = field(default_factory=lambda: [0] * ADC_CHANNELS)
    adc_ready: bool = False
    adc_conversions_started: int = 1
    heater_pwm_duty: int = 0
    can_ticks: int = 0
    gpio_ticks: int = 0
    bms_watchdog_restarts: int = 0

    def __post_init__(self) -> None:
        self.bms.reset()
        if not self.use_bms:
            self.bms.charging_protection_voltage = STANDIN_CHARGING_PROTECTION_VOLTAGE
            self.bms.maximum_voltage = STANDIN_MAXIMUM_VOLTAGE

    def on_can1_frame(self, frame: CanFrame) -> None:
        """Handle a frame from the powertrain bus: charger and DC-DC status."""
        if frame.extended:
            return
        if frame.arbitration_id == DCDC_STATUS_MSG_ID:
            self.dcdc_status = decode_dcdc_status(frame.data)
        elif frame.arbitration_id == OBC_STATUS1_MSG_ID:
            self.charger_status1 = decode_charger_status1(frame.data)
        elif frame.arbitration_id == OBC_STATUS2_MSG_ID:
            self.charger_status2 = decode_charger_status2(frame.data)

    def on_can2_frame(self, frame: CanFrame) -> None:
        """Handle a frame from the BMS bus."""
        if not (frame.extended and frame.arbitration_id == BMS_RX_MSG_ID):
            return
        self.bms.connected = True
        self.bms_watchdog_restarts += 1
        group_id = frame.data[0] if frame.data else 0
        self.bms.process_data(group_id, frame.data)

    def on_adc_complete(self, samples: Iterable[int]) -> None:
        """Store a finished ADC scan and mark it ready."""
        values = list(samples)
        if len(values) != ADC_CHANNELS:
            raise ValueError(f"ADC scan has {ADC_CHANNELS} channels, got {len(values)}")
        self.adc_samples = values
        self.adc_ready = True

    def store_adc_data(self) -> bool:
        """Start a new conversion if the previous one finished; report whether it did."""
        if not self.adc_ready:
            return False
        self.adc_ready = False
        self.adc_conversions_started += 1
        return True

    def tick_can(self) -> None:
        """One 10 ms tick of the CAN scheduler."""
        self.can_ticks += 1
        count = self.can_ticks

        if count % CAN_TIM_PERIOD_10 == 0:
            self.store_adc_data()
            self.climate.regulator_position = self.adc_samples[ADC_CLIMATE_REGULATOR]
            self.charger.proximity_pilot = self.adc_samples[ADC_CHARGER_PP]
            self.bus.send(CAN1, heartbeat_frame(self.charger.contactor_request))

        if count % CAN_TIM_PERIOD_100 == 0:
            self.bus.send(CAN1, ac_command_frame(self.climate.ac_state, self.climate.ac_rpm))
            self.bus.send(CAN1, update_charger(self.charger, self.bms, self.gpio))

        if count % CAN_TIM_PERIOD_1000 == 0:
            if not self.bms.connected:
                for request in connect_request_frames():
                    self.bus.send(CAN2, request)
            self.bus.send(CAN1, wake_cluster_frame())
            self._apply_charger_led()
            self.bus.send(
                CAN1,
                debug_frame(
                    self.bms.minimum_voltage,
                    self.bms.maximum_voltage,
                    self.climate.regulator_position,
                    self.charger.proximity_pilot,
                ),
            )

    def tick_gpio(self) -> None:
        """One 100 ms tick: read the driver's switches and apply the modes."""
        self.gpio_ticks += 1
        self.control.request_ignition = self.gpio.read(Pin.IN_IGNITION) == PinState.SET
        self.control.request_eco = self.gpio.read(Pin.IN_BTN_ECO) == PinState.SET
        self.climate.allowed = self.gpio.read(Pin.BTN_CLIMATE) == PinState.SET
        self.control.request_ac = self.gpio.read(Pin.IN_BTN_AC) == PinState.SET
        self.heater_pwm_duty = update_modes(self.control, self.bms, self.climate, self.gpio)

    def bms_timeout(self) -> None:
        """No BMS message arrived within the watchdog period."""
        self.bms.connected = False

    def _apply_charger_led(self) -> None:
        action = charger_led(self.charger)
        if action is LedAction.TOGGLE:
            self.gpio.toggle(Pin.OUT_CP_LED)
        elif action is LedAction.ON:
            self.gpio.write(Pin.OUT_CP_LED, PinState.SET)
        else:
            self.gpio.write(Pin.OUT_CP_LED, PinState.RESET)