"""Maps RTL source files to Vivado read commands.

The format of a source is inferred from its file-name suffix only. Suffixes are
matched case-sensitively in the order of SOURCE_SUFFIXES; anything else is
rejected so a generated script never silently drops a design source.
"""
import os
from enum import Enum

from .errors import UnrecognizedSourceFormatError


class SourceFormat(Enum):
    """Source formats understood by the Vivado flow."""
    VERILOG = "verilog"
    SYSTEM_VERILOG = "system_verilog"
    VHDL = "vhdl"
    PRECOMPILED_BINARY = "precompiled_binary"


# Checked in order, ".sv" before ".v"
SOURCE_SUFFIXES = (
    (".sv", SourceFormat.SYSTEM_VERILOG),
    (".v", SourceFormat.VERILOG),
    (".vhdl", SourceFormat.VHDL),
    (".vhd", SourceFormat.VHDL),
    (".bin", SourceFormat.PRECOMPILED_BINARY),
)

# Precompiled binaries map to an empty line, their content is already part of
# a checkpoint or netlist loaded elsewhere in the flow.
READ_COMMANDS = {
    SourceFormat.SYSTEM_VERILOG: "read_verilog -sv {path}",
    SourceFormat.VERILOG: "read_verilog {path}",
    SourceFormat.VHDL: "read_vhdl {path}",
    SourceFormat.PRECOMPILED_BINARY: "",
}


def classify(source_path) -> SourceFormat:
    """
    Infer the SourceFormat of a source file from its suffix.

    Args:
        source_path: Path of the RTL source, absolute or relative.

    Returns:
        SourceFormat: The format matching the file-name suffix.

    Raises:
        UnrecognizedSourceFormatError: If no known suffix matches.
    """
    path = os.fspath(source_path)
    for suffix, source_format in SOURCE_SUFFIXES:
        if path.endswith(suffix):
            return source_format
    raise UnrecognizedSourceFormatError(path)


def get_read_command(source_path) -> str:
    """
    Get the Vivado command that reads a source file into the design.

    Args:
        source_path: Path of the RTL source.

    Returns:
        str: The read command, or an empty string for precompiled binaries.

    Example:
        ```python
        get_read_command("top.v")      # "read_verilog top.v"
        get_read_command("alu.sv")     # "read_verilog -sv alu.sv"
        get_read_command("sub.vhd")    # "read_vhdl sub.vhd"
        get_read_command("rom.bin")    # ""
        ```
    """
    path = os.fspath(source_path)
    return READ_COMMANDS[classify(path)].format(path=path)
