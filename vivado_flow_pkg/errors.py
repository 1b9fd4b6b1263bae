"""Exceptions raised by the Vivado flow package."""


class VivadoFlowError(Exception):
    """Base class for errors raised by vivado_flow_pkg."""


class UnrecognizedSourceFormatError(VivadoFlowError, ValueError):
    """Raised when a source file suffix has no known read command."""

    def __init__(self, source_path: str):
        self.source_path = source_path
        super().__init__(f"invalid RTL source path {source_path}: unrecognized source format")


class ConstraintResolutionError(VivadoFlowError):
    """Raised when no constraint candidate is present."""


class UnknownDeviceError(VivadoFlowError, KeyError):
    """Raised when a device identifier is not in the device catalog."""

    def __str__(self):
        return str(self.args[0]) if self.args else "unknown device"


class InvalidDeviceError(VivadoFlowError, ValueError):
    """Raised when a device catalog entry is malformed."""
