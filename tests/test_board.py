import dataclasses

import pytest

from evcontrol.board import (
    BoardConfig,
    CanTiming,
    ClockConfig,
    TimerConfig,
    default_board,
)
from evcontrol.hardware import Pin


@pytest.fixture
def board():
    return default_board()


def test_sysclk_of_default_clock(board):
    assert board.clock.sysclk() == pytest.approx(168_000_000)


def test_can_bitrates(board):
    can1, can2 = board.can_bitrates()
    assert can1 == pytest.approx(500_000)
    assert can2 == pytest.approx(250_000)
    assert can1 == pytest.approx(2 * can2)


def test_apb_clocks_follow_dividers(board):
    clock = board.clock
    assert clock.apb1_clock() * clock.apb1_divider == pytest.approx(clock.hclk())
    assert clock.apb2_clock() * clock.apb2_divider == pytest.approx(clock.hclk())
    assert clock.hclk() * clock.ahb_divider == pytest.approx(clock.sysclk())


def test_apb1_timer_clock_doubles_when_divided(board):
    assert board.clock.apb1_timer_clock() == pytest.approx(2 * board.clock.apb1_clock())
    undivided = ClockConfig(apb1_divider=1)
    assert undivided.apb1_timer_clock() == pytest.approx(undivided.apb1_clock())


def test_sysclk_is_vco_over_pllp():
    clock = ClockConfig(pllp=4)
    assert clock.sysclk() * 4 == pytest.approx(clock.pll_vco())


def test_can_timing_bitrate_scales_inversely_with_prescaler():
    fast = CanTiming(prescaler=3, time_seg1=11, time_seg2=2)
    slow = CanTiming(prescaler=6, time_seg1=11, time_seg2=2)
    assert fast.bitrate(42e6) == pytest.approx(2 * slow.bitrate(42e6))


def test_quanta_and_sample_point(board):
    assert board.can1.quanta_per_bit == 1 + 11 + 2
    assert board.can1.sample_point == pytest.approx(12 / 14)


def test_timer_tick_roundtrip():
    timer = TimerConfig("TIM2", prescaler=839, period=1000)
    assert timer.tick_hz(84e6) * (timer.prescaler + 1) == pytest.approx(84e6)
    assert timer.period_seconds(84e6) * timer.tick_hz(84e6) == pytest.approx(timer.period + 1)


def test_default_timers_present(board):
    assert set(board.timers) == {"TIM2", "TIM3", "TIM4", "TIM12"}
    assert board.timer("TIM4").prescaler == 42000 - 1
    assert board.timer("TIM12").period == 100 - 1


def test_tim3_slower_than_tim2(board):
    assert board.timer_period("TIM3") > board.timer_period("TIM2")


def test_unknown_timer_raises(board):
    with pytest.raises(KeyError):
        board.timer("TIM9")


def test_adc_pins_and_range(board):
    assert board.adc_pins == (
        Pin.IN_TEMP_INV,
        Pin.IN_TEMP_EXT,
        Pin.IN_CHARGER_PP,
        Pin.IN_CLIMATE_ADC,
    )
    assert board.adc_max == (1 << board.adc_resolution_bits) - 1


@pytest.mark.parametrize(
    "kwargs",
    [{"pllp": 3}, {"pllm": 1}, {"plln": 500}, {"apb1_divider": 3}, {"hse_hz": 0}],
)
def test_invalid_clock_config(kwargs):
    with pytest.raises(ValueError):
        ClockConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"prescaler": 0},
        {"prescaler": 1, "time_seg1": 0},
        {"prescaler": 1, "time_seg2": 9},
        {"prescaler": 1, "sync_jump_width": 5},
    ],
)
def test_invalid_can_timing(kwargs):
    with pytest.raises(ValueError):
        CanTiming(**kwargs)


def test_bitrate_rejects_non_positive_clock(board):
    with pytest.raises(ValueError):
        board.can1.bitrate(0)


def test_timer_rejects_bad_values():
    with pytest.raises(ValueError):
        TimerConfig("TIMX", prescaler=-1, period=10)
    with pytest.raises(ValueError):
        TimerConfig("TIMX", prescaler=1, period=10, clock_division=3)
    with pytest.raises(ValueError):
        TimerConfig("TIMX", prescaler=1, period=10).tick_hz(-5)


def test_configs_are_frozen(board):
    original_pllm = board.clock.pllm
    with pytest.raises(dataclasses.FrozenInstanceError):
        board.clock.pllm = 4
    assert board.clock.pllm == original_pllm
    assert board.clock.sysclk() == pytest.approx(168_000_000)


def test_default_board_equals_fresh_config():
    assert default_board() == BoardConfig()