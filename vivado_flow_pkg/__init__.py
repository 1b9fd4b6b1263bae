"""
Vivado Flow Manager Package

Scripted Vivado synthesis and implementation flows: Tcl script generation,
constraint selection, Vivado invocation and log parsing.
"""

# Import all main classes for easy access
from .errors import (
    VivadoFlowError,
    UnrecognizedSourceFormatError,
    ConstraintResolutionError,
    UnknownDeviceError,
    InvalidDeviceError,
)
from .flow_context import FlowContext
from .source_classifier import SourceFormat, classify, get_read_command
from .script_composer import TaskKind, FlowScript, ScriptComposer
from .command_runner import CommandRunner, CommandResult
from .source_generator import SourceGenerator, CallableSourceGenerator, CommandSourceGenerator, read_manifest
from .devices_manager import DevicesManager, XilinxDevice
from .toolchain_manager import ToolChainManager
from .vivado_report import VivadoReport
from .vivado_flow import VivadoFlow, default_vivado_flow, vivado_synth, vivado_impl

# Package metadata
__version__ = "0.1.0"
__description__ = "Scripted Vivado synthesis and implementation flows"

# All exports
__all__ = [
    "VivadoFlowError",
    "UnrecognizedSourceFormatError",
    "ConstraintResolutionError",
    "UnknownDeviceError",
    "InvalidDeviceError",
    "FlowContext",
    "SourceFormat",
    "classify",
    "get_read_command",
    "TaskKind",
    "FlowScript",
    "ScriptComposer",
    "CommandRunner",
    "CommandResult",
    "SourceGenerator",
    "CallableSourceGenerator",
    "CommandSourceGenerator",
    "read_manifest",
    "DevicesManager",
    "XilinxDevice",
    "ToolChainManager",
    "VivadoReport",
    "VivadoFlow",
    "default_vivado_flow",
    "vivado_synth",
    "vivado_impl",
]
