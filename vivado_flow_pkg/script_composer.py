"""Builds Vivado Tcl scripts for synthesis and implementation tasks.

This module provides the FlowScript line builder and the ScriptComposer, which turns
a list of RTL sources, a constraints file and a task kind into the ordered command
sequence Vivado runs in batch mode.
"""
import os
import logging
from enum import Enum
from typing import Iterable, List, Optional

from .source_classifier import get_read_command


class TaskKind(Enum):
    """Kinds of Vivado tasks a flow can run."""
    SYNTHESIZE = "synth"
    SYNTHESIZE_AND_IMPLEMENT = "impl"
    GENERATE_BITSTREAM = "bitgen"

    @classmethod
    def from_name(cls, name: str) -> "TaskKind":
        """Look up a task kind by CLI alias ("synth", "impl", "bitgen") or member name."""
        for task in cls:
            if name == task.value or name.upper() == task.name:
                return task
        raise ValueError(f"Unknown task kind \"{name}\". Options are: {[task.value for task in cls]}")


class FlowScript:
    """Append-only sequence of Vivado command lines.

    A script can be extended while it is being composed. Once it has been written
    to disk it is frozen and further appends raise RuntimeError.
    """

    def __init__(self, lines: Optional[Iterable[str]] = None):
        self._lines: List[str] = []
        self._frozen = False
        if lines:
            self.extend(lines)

    def append(self, line: str):
        if self._frozen:
            raise RuntimeError("FlowScript has already been written and can no longer be modified")
        self._lines.append(line)

    def extend(self, lines: Iterable[str]):
        for line in lines:
            self.append(line)

    @property
    def lines(self) -> tuple:
        return tuple(self._lines)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def render(self) -> str:
        """Return the script text, one command per line with a trailing newline."""
        return "".join(f"{line}\n" for line in self._lines)

    def write(self, script_path: str) -> str:
        """Write the script to script_path and freeze it.

        Returns:
            str: Absolute path of the written script.
        """
        with open(script_path, "w") as script_file:
            script_file.write(self.render())
        self._frozen = True
        return os.path.abspath(script_path)

    def __iter__(self):
        return iter(self._lines)

    def __len__(self):
        return len(self._lines)

    def __str__(self):
        return self.render()


class ScriptComposer:
    """Composes the Tcl script of a Vivado flow.

    The composed script always follows the same order:

    1. One read command per source file, in the order given by the caller
    2. One read_xdc command for the active constraints file
    3. The task block:
       - SYNTHESIZE: out of context synth_design, checkpoint, report_timing
       - SYNTHESIZE_AND_IMPLEMENT: the synthesis block, then opt, place (Explore),
         post-place phys_opt, route and post-route phys_opt, reporting timing and
         writing a checkpoint after every stage
       - GENERATE_BITSTREAM: not implemented, composition fails
    4. report_utilization

    Checkpoints are named <top>_after_<stage>.dcp so each stage keeps its own artifact.
    """

    # Stage tags used in checkpoint names
    STAGE_SYNTH = "synth"
    STAGE_PLACE = "place"
    STAGE_PLACE_PHYS_OPT = "place_phys_opt"
    STAGE_ROUTE = "route"
    STAGE_ROUTE_PHYS_OPT = "route_phys_opt"

    PLACE_DIRECTIVE = "Explore"

    def __init__(self, part: str, top_module_name: str):
        """
        Args:
            part: Xilinx part identifier passed to synth_design, e.g. "xcvu9p-flga2104-2-i".
            top_module_name: Name of the top-level module of the design.
        """
        self.part = part
        self.top_module_name = top_module_name
        self.composer_logger = logging.getLogger("ScriptComposer")

    def checkpoint_name(self, stage: str) -> str:
        return f"{self.top_module_name}_after_{stage}.dcp"

    def _write_checkpoint(self, stage: str) -> str:
        return f"write_checkpoint -force {self.checkpoint_name(stage)}"

    def synthesis_commands(self) -> List[str]:
        """Commands of the SYNTHESIZE task block."""
        return [
            f"synth_design -part {self.part} -top {self.top_module_name} -mode out_of_context",
            self._write_checkpoint(self.STAGE_SYNTH),
            "report_timing",
        ]

    def implementation_commands(self) -> List[str]:
        """Commands appended after the synthesis block for SYNTHESIZE_AND_IMPLEMENT."""
        return [
            "opt_design",
            f"place_design -directive {self.PLACE_DIRECTIVE}",
            "report_timing",
            self._write_checkpoint(self.STAGE_PLACE),
            "phys_opt_design",
            "report_timing",
            self._write_checkpoint(self.STAGE_PLACE_PHYS_OPT),
            "route_design",
            self._write_checkpoint(self.STAGE_ROUTE),
            "report_timing",
            "phys_opt_design",
            "report_timing",
            self._write_checkpoint(self.STAGE_ROUTE_PHYS_OPT),
        ]

    def task_commands(self, task: TaskKind) -> List[str]:
        """
        Get the task block for a task kind.

        Raises:
            NotImplementedError: For GENERATE_BITSTREAM.
            ValueError: For anything that is not a TaskKind.
        """
        if task is TaskKind.SYNTHESIZE:
            return self.synthesis_commands()
        if task is TaskKind.SYNTHESIZE_AND_IMPLEMENT:
            return self.synthesis_commands() + self.implementation_commands()
        if task is TaskKind.GENERATE_BITSTREAM:
            self.composer_logger.error("Bitstream generation was requested but is not implemented")
            raise NotImplementedError("Bitstream generation is not implemented for Vivado flows")
        raise ValueError(f"Unsupported task kind: {task!r}")

    def compose(self, sources: Iterable[str], xdc_file: str, task: TaskKind) -> FlowScript:
        """
        Compose the complete script for a task.

        All validation happens here, before anything is written: an unrecognized
        source suffix or an unimplemented task raises and no script is produced.
        An empty source list is accepted.

        Args:
            sources: RTL source paths, read in the given order.
            xdc_file: Active constraints file, read with its absolute path.
            task: The task to run.

        Returns:
            FlowScript: The ordered command lines.

        Example:
            ```python
            composer = ScriptComposer("xcvu9p-flga2104-2-i", "adder32")
            script = composer.compose(["top.v", "sub.vhd"], "ws/doit.xdc", TaskKind.SYNTHESIZE)
            print(script.render())
            ```
        """
        script = FlowScript()
        sources = list(sources)

        # read design sources
        script.extend(get_read_command(source) for source in sources)

        # read constraint sources
        script.append(f"read_xdc {os.path.abspath(xdc_file)}")

        script.extend(self.task_commands(task))

        script.append("report_utilization")

        self.composer_logger.debug(
            f"Composed {task.name} script for {self.top_module_name} with {len(sources)} sources, {len(script)} lines")
        return script
