# evcontrol

Control logic for the vehicle control unit of an electric vehicle
conversion. It decodes CAN frames from the battery management system (BMS),
the on-board charger and the DC-DC converter. It decides charger, eco-mode
and climate states, and builds the CAN frames the unit sends back.

The logic does not touch hardware itself. You pass the outputs in as a
`CanBus` and a `Gpio` (both defined in `evcontrol.hardware` as protocols).
`RecordingBus` and `SimulatedGpio` from the same module keep everything in
memory, so the logic can be run and tested anywhere.

## Install

```
pip install .
pip install .[test]    # with pytest
```

## Modules

- `evcontrol.frames`: `CanFrame`, a classic CAN data frame (standard or
  extended id, at most eight bytes, checked on creation), and
  `calculate_checksum`, the XOR of the first seven bytes of a message
  (0 when the message is shorter).
- `evcontrol.bms`: `BatteryManagementSystem` stores the decoded BMS data
  groups (`process_data(group_id, data)`), with `StatusAccounting` and
  `ProtectingHistoricalLogs` for the status word and the log code.
  `connect_request_frames()` returns the two extended request frames sent
  to the BMS.
- `evcontrol.obc`: `decode_dcdc_status`, `decode_charger_status1` and
  `decode_charger_status2`; the `Charger` state with `ChargerState` and
  `ProximityState`; `charger_led`, which returns a `LedAction`
  (`TOGGLE` while charging, `ON` when charged, `OFF` otherwise).
- `evcontrol.climate`: `ClimateState`, `AcState`, `clamp_ac_rpm` and
  `ac_command_frame`.
- `evcontrol.hardware`: the `Pin` map of the board, `PinState`, the
  `CanBus` and `Gpio` protocols, `RecordingBus` (its `frames` list holds
  `(channel, frame)` pairs; `sent_on(channel)` filters them) and
  `SimulatedGpio`.
- `evcontrol.control`: `Control`, `update_modes`, `set_climate_power`,
  `update_charger` (advances the charging sequence from the proximity
  pilot and returns the charger command frame), plus `heartbeat_frame`,
  `wake_cluster_frame` and `debug_frame`.
- `evcontrol.board`: `ClockConfig`, `CanTiming`, `TimerConfig` and
  `BoardConfig`; `default_board()` gives the board's setup, from which the
  CAN bitrates (`can_bitrates()`) and timer periods (`timer_period(name)`)
  are derived.
- `evcontrol.controller`: `VehicleController` joins these together.

## The controller

`VehicleController(bus, gpio, use_bms=False)` holds all state. With
`use_bms=False` the BMS values used for charging are replaced by fixed
stand-ins (charging protection voltage 4150, maximum voltage 4000).

- `on_can1_frame(frame)`: decodes DC-DC and charger status frames.
- `on_can2_frame(frame)`: stores BMS data groups and marks the BMS connected.
- `on_adc_complete(samples)`: stores a four-channel ADC scan;
  `store_adc_data()` consumes it.
- `tick_can()`: call every 10 ms. Each tick sends the heartbeat on CAN 1;
  every 10th tick the compressor and charger commands; every 100th tick the
  BMS requests on CAN 2 (while the BMS is not connected), the cluster
  wake-up frame, the charge-port LED update and the debug frame.
- `tick_gpio()`: call every 100 ms. Reads the ignition, eco, climate and AC
  switches and applies eco mode, pump and compressor state.
- `bms_timeout()`: call when no BMS message arrived in the watchdog period.

## Example

```python
from evcontrol.controller import VehicleController
from evcontrol.hardware import RecordingBus, SimulatedGpio

bus = RecordingBus()
gpio = SimulatedGpio()
vcu = VehicleController(bus, gpio, use_bms=False)

vcu.on_adc_complete([0, 0, 0x0700, 1280])
for _ in range(10):
    vcu.tick_can()

for channel, frame in bus.frames:
    print(channel, hex(frame.arbitration_id), frame.data.hex())
```

## What it does not do

There is no driver for a real CAN interface or GPIO, no timer or scheduler
that calls the ticks, and no command-line program. An application supplies
its own `CanBus` and `Gpio` and calls the controller's methods at the
stated intervals.

## Tests

```
pytest
```