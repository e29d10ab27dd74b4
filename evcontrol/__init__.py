"""Vehicle control unit logic: BMS, charger, DC-DC and climate over CAN."""

__version__ = "0.1.0"
__all__ = ["frames", "bms", "obc", "climate", "hardware", "control", "board", "controller"]