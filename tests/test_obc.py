import pytest

from evcontrol.obc import (
    Charger,
    ChargerState,
    LedAction,
    ProximityState,
    decode_charger_status1,
    decode_charger_status2,
    decode_dcdc_status,
)


def test_dcdc_scaling_against_raw_words():
    data = bytes([0x04, 0xD2, 0x00, 0x96, 40, 0, 80, 0x21])
    status = decode_dcdc_status(data)
    assert status.battery_voltage * 100 == pytest.approx(int.from_bytes(data[0:2], "big"))
    assert status.supply_current * 10 == pytest.approx(int.from_bytes(data[2:4], "big"))
    assert status.temperature1 == 0
    assert status.temperature2 == -40
    assert status.temperature3 == 40


def test_dcdc_flags():
    status = decode_dcdc_status(bytes([0, 0, 0, 0, 40, 40, 40, 0x21]))
    assert status.status_byte == 0x21
    assert status.error is True
    assert status.in_operation is False
    assert status.ready is True


def test_temperature_wraps_like_signed_byte():
    status = decode_dcdc_status(bytes([0, 0, 0, 0, 255, 0, 0, 0]))
    assert -128 <= status.temperature1 <= 127


def test_charger_status1_fields():
    data = bytes([180, 230, 55, 60, 20, 0xCA, 16, 30])
    status = decode_charger_status1(data)
    assert status.hv_battery_voltage == 2 * data[0]
    assert status.ac_mains_voltage == 230
    assert status.dc_charge_current1 * 10 == pytest.approx(data[2])
    assert status.temperature1 == data[3] - 40
    assert status.temperature2 == data[4] - 40
    assert status.mains_voltage_present is True
    assert status.charging is True
    assert status.error is False
    assert status.dc_dc_converter_request is True
    assert status.pilot_present is True
    assert status.ac_mains_current * 10 == pytest.approx(data[6])
    assert status.dc_charge_current2 * 10 == pytest.approx(data[7])


def test_charger_status2_offsets():
    status = decode_charger_status2(bytes([40, 40, 200, 77, 0x0C, 0, 0, 0]))
    assert status.temperature1 == 5
    assert status.temperature2 == 0
    assert status.dc_bus_voltage == 2 * 200
    assert status.pwm_signal == 77
    assert status.wait_for_mains is True
    assert status.ready_for_charging is True


def test_short_payloads_raise():
    with pytest.raises(ValueError):
        decode_dcdc_status(bytes(7))
    with pytest.raises(ValueError):
        decode_charger_status1(bytes(4))
    with pytest.raises(ValueError):
        decode_charger_status2(bytes(4))


def test_charger_defaults():
    charger = Charger()
    assert charger.state is ChargerState.BLOCKED
    assert charger.pp_state is ProximityState.EMPTY


def test_led_toggles_while_charging():
    charger = Charger(state=ChargerState.CHARGING, voltage=370, current=5)
    assert charger_led_action(charger) is LedAction.TOGGLE


def test_led_off_when_charging_without_current():
    charger = Charger(state=ChargerState.CHARGING, voltage=370, current=0)
    assert charger_led_action(charger) is LedAction.OFF


def test_led_on_when_charged_and_off_otherwise():
    assert charger_led_action(Charger(state=ChargerState.CHARGED)) is LedAction.ON
    assert charger_led_action(Charger(state=ChargerState.DISCONNECTED)) is LedAction.OFF


def charger_led_action(charger):
    from evcontrol.obc import charger_led

    return charger_led(charger)