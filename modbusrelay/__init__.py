"""Modbus-TCP relay between indicator devices and a PLC."""

__version__ = "0.1.0"
__all__ = ["__version__"]