"""Clock tree, CAN bit timing and timer settings of the controller board."""

from __future__ import annotations

from dataclasses import dataclass, field

from evcontrol.hardware import Pin

_VALID_PLLP = (2, 4, 6, 8)
_VALID_AHB_DIVIDERS = (1, 2, 4, 8, 16, 64, 128, 256, 512)
_VALID_APB_DIVIDERS = (1, 2, 4, 8, 16)


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


def _check_clock(clock_hz: float) -> None:
    if clock_hz <= 0:
        raise ValueError(f"clock frequency must be positive, got {clock_hz}")


@dataclass(frozen=True)
class ClockConfig:
    """PLL and bus divider settings, fed from the external oscillator."""

    hse_hz: int = 25_000_000
    pllm: int = 25
    plln: int = 336
    pllp: int = 2
    pllq: int = 4
    ahb_divider: int = 1
    apb1_divider: int = 4
    apb2_divider: int = 2
    flash_latency: int = 5

    def __post_init__(self) -> None:
        _check_clock(self.hse_hz)
        _check_range("PLLM", self.pllm, 2, 63)
        _check_range("PLLN", self.plln, 50, 432)
        _check_range("PLLQ", self.pllq, 2, 15)
        _check_range("flash latency", self.flash_latency, 0, 7)
        if self.pllp not in _VALID_PLLP:
            raise ValueError(f"PLLP must be one of {_VALID_PLLP}, got {self.pllp}")
        if self.ahb_divider not in _VALID_AHB_DIVIDERS:
            raise ValueError(f"AHB divider {self.ahb_divider} is not supported")
        for name, divider in (("APB1", self.apb1_divider), ("APB2", self.apb2_divider)):
            if divider not in _VALID_APB_DIVIDERS:
                raise ValueError(f"{name} divider {divider} is not supported")

    def pll_vco(self) -> float:
        """Frequency of the PLL voltage-controlled oscillator."""
        return self.hse_hz / self.pllm * self.plln

    def sysclk(self) -> float:
        """System clock taken from the main PLL output."""
        return self.pll_vco() / self.pllp

    def hclk(self) -> float:
        """AHB bus clock."""
        return self.sysclk() / self.ahb_divider

    def apb1_clock(self) -> float:
        """Low-speed peripheral bus clock, which also drives both CAN controllers."""
        return self.hclk() / self.apb1_divider

    def apb2_clock(self) -> float:
        """High-speed peripheral bus clock."""
        return self.hclk() / self.apb2_divider

    def apb1_timer_clock(self) -> float:
        """Clock seen by timers on APB1: doubled whenever the bus is divided."""
        factor = 1 if self.apb1_divider == 1 else 2
        return self.apb1_clock() * factor


@dataclass(frozen=True)
class CanTiming:
    """Bit timing of one CAN controller, in time quanta."""

    prescaler: int
    sync_jump_width: int = 1
    time_seg1: int = 1
    time_seg2: int = 1

    def __post_init__(self) -> None:
        _check_range("prescaler", self.prescaler, 1, 1024)
        _check_range("sync jump width", self.sync_jump_width, 1, 4)
        _check_range("time segment 1", self.time_seg1, 1, 16)
        _check_range("time segment 2", self.time_seg2, 1, 8)

    @property
    def quanta_per_bit(self) -> int:
        """Time quanta in one bit: sync segment plus both time segments."""
        return 1 + self.time_seg1 + self.time_seg2

    @property
    def sample_point(self) -> float:
        """Fraction of the bit time at which the bus is sampled."""
        return (1 + self.time_seg1) / self.quanta_per_bit

    def bitrate(self, clock_hz: float) -> float:
        """Bits per second for the given peripheral clock."""
        _check_clock(clock_hz)
        return clock_hz / (self.prescaler * self.quanta_per_bit)


@dataclass(frozen=True)
class TimerConfig:
    """A basic up-counting timer: prescaler and auto-reload period."""

    name: str
    prescaler: int
    period: int
    clock_division: int = 1

    def __post_init__(self) -> None:
        _check_range("prescaler", self.prescaler, 0, 0xFFFF)
        _check_range("period", self.period, 0, 0xFFFFFFFF)
        if self.clock_division not in (1, 2, 4):
            raise ValueError(f"clock division must be 1, 2 or 4, got {self.clock_division}")

    def tick_hz(self, clock_hz: float) -> float:
        """Counter increments per second."""
        _check_clock(clock_hz)
        return clock_hz / (self.prescaler + 1)

    def period_seconds(self, clock_hz: float) -> float:
        """Time between two update events."""
        return (self.period + 1) / self.tick_hz(clock_hz)


def _default_timers() -> dict[str, TimerConfig]:
    timers = (
        TimerConfig("TIM2", prescaler=839, period=1000, clock_division=2),
        TimerConfig("TIM3", prescaler=839, period=10000, clock_division=2),
        TimerConfig("TIM4", prescaler=42000 - 1, period=10000, clock_division=2),
        TimerConfig("TIM12", prescaler=8400 - 1, period=100 - 1, clock_division=1),
    )
    return {timer.name: timer for timer in timers}


_DEFAULT_ADC_PINS = (Pin.IN_TEMP_INV, Pin.IN_TEMP_EXT, Pin.IN_CHARGER_PP, Pin.IN_CLIMATE_ADC)


@dataclass(frozen=True)
class BoardConfig:
    """Everything the board is set up with at start."""

    clock: ClockConfig = field(default_factory=ClockConfig)
    can1: CanTiming = field(
        default_factory=lambda: CanTiming(prescaler=6, sync_jump_width=1, time_seg1=11, time_seg2=2)
    )
    can2: CanTiming = field(
        default_factory=lambda: CanTiming(prescaler=21, sync_jump_width=1, time_seg1=6, time_seg2=1)
    )
    timers: dict[str, TimerConfig] = field(default_factory=_default_timers)
    adc_pins: tuple[Pin, ...] = _DEFAULT_ADC_PINS
    adc_resolution_bits: int = 12

    def timer(self, name: str) -> TimerConfig:
        """Look up a timer by name."""
        try:
            return self.timers[name]
        except KeyError:
            raise KeyError(f"no timer named {name!r}") from None

    def can_bitrates(self) -> tuple[float, float]:
        """Bitrates of the two CAN buses, both clocked from APB1."""
        apb1 = self.clock.apb1_clock()
        return self.can1.bitrate(apb1), self.can2.bitrate(apb1)

    def timer_period(self, name: str) -> float:
        """Update period of a named timer in seconds."""
        return self.timer(name).period_seconds(self.clock.apb1_timer_clock())

    @property
    def adc_max(self) -> int:
        """Largest value an ADC conversion can return."""
        return (1 << self.adc_resolution_bits) - 1


def default_board() -> BoardConfig:
    """The configuration the controller runs with."""
    return BoardConfig()