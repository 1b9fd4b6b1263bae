"""Design-to-source generation for Vivado flows.

A source generator takes a design descriptor and a top module name and emits RTL
sources into an output directory, together with a <top>.lst manifest listing one
generated source per line. The flow reads the manifest back to get the ordered
source list.
"""
import os
import shlex
import logging
from typing import Any, Callable, List, Optional

from .command_runner import CommandRunner
from .flow_context import FlowContext

generator_logger = logging.getLogger("SourceGenerator")


def manifest_path(output_dir: str, top_module_name: str) -> str:
    """Path of the manifest a generator writes for top_module_name."""
    return os.path.join(output_dir, f"{top_module_name}.lst")


def read_manifest(lst_path: str) -> List[str]:
    """
    Read a source manifest.

    Blank lines are ignored. Relative entries are resolved against the directory
    holding the manifest. Order is preserved.

    Args:
        lst_path: Path to the .lst manifest

    Returns:
        List[str]: Absolute source paths in manifest order

    Raises:
        FileNotFoundError: If the manifest does not exist
    """
    base_dir = os.path.dirname(os.path.abspath(lst_path))
    sources = []
    with open(lst_path, "r") as lst_file:
        for line in lst_file:
            entry = line.strip()
            if not entry:
                continue
            sources.append(os.path.abspath(os.path.join(base_dir, entry)))
    generator_logger.info(f"Read {len(sources)} sources from manifest {lst_path}")
    return sources


class SourceGenerator:
    """Base class of design-to-source generators."""

    def generate(self, design: Any, top_module_name: str, output_dir: str, context: FlowContext) -> str:
        """
        Emit the sources of a design and its manifest.

        Args:
            design: Design descriptor understood by the generator
            top_module_name: Definition name to give the top-level module
            output_dir: Directory receiving the sources and the manifest
            context: Timing context of the calling flow

        Returns:
            str: Path of the written <top>.lst manifest
        """
        raise NotImplementedError


class CallableSourceGenerator(SourceGenerator):
    """Wraps a Python callable that generates the sources.

    The callable is invoked as fn(design, top_module_name, output_dir, context) and
    must leave <top_module_name>.lst in output_dir.
    """

    def __init__(self, fn: Callable[[Any, str, str, FlowContext], None]):
        self.fn = fn

    def generate(self, design, top_module_name, output_dir, context):
        self.fn(design, top_module_name, output_dir, context)
        lst_path = manifest_path(output_dir, top_module_name)
        if not os.path.exists(lst_path):
            generator_logger.error(f"Generator finished without writing manifest {lst_path}")
            raise FileNotFoundError(f"Source manifest not found: {lst_path}")
        return lst_path


class CommandSourceGenerator(SourceGenerator):
    """Runs an external generator command.

    The command template may use the placeholders {design}, {top} and {out}, e.g.
    "sbt \"runMain gen.Main {design} {top} {out}\"". When synthesis_flag is set it is
    appended to the command whenever the flow context is not at simulation time.
    """

    def __init__(self, command_template: str, runner: Optional[CommandRunner] = None,
                 synthesis_flag: Optional[str] = None):
        self.command_template = command_template
        self.runner = runner or CommandRunner("GENERATOR", generator_logger)
        self.synthesis_flag = synthesis_flag

    def build_command(self, design, top_module_name, output_dir, context) -> List[str]:
        # Split before substituting so each value stays a single argument
        values = {"design": design if design is not None else "", "top": top_module_name, "out": output_dir}
        command = [token.format(**values) for token in shlex.split(self.command_template)]
        if self.synthesis_flag and not context.at_sim_time:
            command.append(self.synthesis_flag)
        return command

    def generate(self, design, top_module_name, output_dir, context):
        command = self.build_command(design, top_module_name, output_dir, context)
        result = self.runner.run(command, cwd=output_dir)
        lst_path = manifest_path(output_dir, top_module_name)
        if not os.path.exists(lst_path):
            generator_logger.error(
                f"Generator exited with code {result.returncode} without writing manifest {lst_path}")
            raise FileNotFoundError(f"Source manifest not found: {lst_path}")
        return lst_path
