"""Runs Vivado synthesis and implementation flows.

This module provides the VivadoFlow class, which prepares a workspace, obtains the
design sources, writes the constraints and Tcl script, invokes Vivado in batch mode
and parses its log into a VivadoReport.
"""
import os
import shutil
from typing import Any, List, Optional, Union

from .command_runner import CommandResult, CommandRunner
from .constraint_resolver import resolve, write_fallback_constraint
from .devices_manager import DevicesManager, XilinxDevice
from .flow_context import FlowContext
from .script_composer import ScriptComposer, TaskKind
from .source_classifier import classify
from .source_generator import SourceGenerator, read_manifest
from .toolchain_manager import ToolChainManager
from .vivado_report import VivadoReport


class VivadoFlow(ToolChainManager):
    """Generates the sources of a Vivado flow and invokes Vivado to run it.

    Every call to do_flow is an independent pass:

    1. Create the workspace directory
    2. Copy the netlist into the workspace, or run the source generator and read
       back its <top>.lst manifest
    3. Write the fallback constraints file doit.xdc
    4. Pick the active constraints: user xdc > device xdc > doit.xdc
    5. Compose doit.tcl
    6. Run Vivado in batch mode with the workspace as working directory, logging to doit.log
    7. Parse doit.log into a VivadoReport

    Vivado's exit status does not stop the flow. The log is parsed whatever happened
    and the report tells the caller whether the run succeeded.
    """

    TCL_FILE_NAME = "doit.tcl"
    XDC_FILE_NAME = "doit.xdc"
    LOG_FILE_NAME = "doit.log"

    COMPONENT_LOGS = (
        ("ScriptComposer", "script_composer.log"),
        ("ConstraintResolver", "constraint_resolver.log"),
        ("SourceGenerator", "source_generator.log"),
        ("VivadoReport", "vivado_report.log"),
    )

    def __init__(self, design: Any, task: Union[TaskKind, str], device: XilinxDevice, top_module_name: str,
                 workspace_path: str, xdc_file: Optional[str] = None, netlist_file: Optional[str] = None,
                 source_generator: Optional[SourceGenerator] = None, runner: Optional[CommandRunner] = None,
                 context: Optional[FlowContext] = None, config_path: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Initialize a Vivado flow.

        Args:
            design: Design descriptor handed to the source generator. Ignored when a netlist is given.
            task: TaskKind, or one of its aliases "synth", "impl", "bitgen".
            device: Target device.
            top_module_name: Name of the top-level module.
            workspace_path: Directory receiving every generated file.
            xdc_file: User constraints file, takes priority over the device and fallback constraints.
            netlist_file: Pre-built netlist used as the only source instead of generating sources.
            source_generator: Generator producing sources from the design when no netlist is given.
            runner: Command runner used to invoke Vivado.
            context: Timing context handed to the source generator.
            config_path: Explicit flow configuration file.
            timeout: Optional timeout in seconds for the Vivado process.

        Raises:
            ValueError: If neither a netlist nor a source generator is given.

        Example:
            ```python
            device = DevicesManager().get_device("vu9p")
            flow = VivadoFlow(None, TaskKind.SYNTHESIZE, device, "adder32", "synthWorkspace/adder32",
                              netlist_file="adder32.v")
            report = flow.do_flow()
            print(report)
            ```
        """
        super().__init__(config_path)

        self.flow_logger = self._setup_logger("VivadoFlow", "vivado_flow.log")
        for logger_name, log_file_name in self.COMPONENT_LOGS:
            self._setup_logger(logger_name, log_file_name)

        self.design = design
        self.task = TaskKind.from_name(task) if isinstance(task, str) else task
        self.device = device
        self.top_module_name = top_module_name
        self.workspace_path = os.path.abspath(workspace_path)
        self.xdc_file = xdc_file
        self.netlist_file = netlist_file
        self.source_generator = source_generator
        self.timeout = timeout

        if netlist_file is None and source_generator is None:
            self.flow_logger.error("Neither a netlist file nor a source generator was given")
            raise ValueError("VivadoFlow needs either a netlist_file or a source_generator")

        self.runner = runner or CommandRunner("VIVADO", self.flow_logger)
        self.context = context or FlowContext()
        self.composer = ScriptComposer(device.part, top_module_name)

        self.tcl_file = os.path.join(self.workspace_path, self.TCL_FILE_NAME)
        self.simple_xdc_file = os.path.join(self.workspace_path, self.XDC_FILE_NAME)
        self.log_file = os.path.join(self.workspace_path, self.LOG_FILE_NAME)

        self.last_result: Optional[CommandResult] = None

        self._report_instantiation()

    def _report_instantiation(self):
        """Log the current VivadoFlow settings."""
        flow_settings = f"""
        New VivadoFlow Instantiation Settings:
        TASK:                   {self.task.name}
        DEVICE:                 {self.device.name} ({self.device.part})
        TOP_MODULE:             {self.top_module_name}
        WORKSPACE:              {self.workspace_path}
        XDC_FILE:               {self.xdc_file}
        NETLIST_FILE:           {self.netlist_file}
        TOOL CHAIN PREFERENCE:  {self.get_tool_preference()}
        TOOL CHAIN ACCESS:      {self.vivado_access}
        """
        self.flow_logger.info(flow_settings)

    def xdc_candidates(self) -> List[Optional[str]]:
        """Constraint candidates in priority order: user xdc, device xdc, generated fallback."""
        return [self.xdc_file, self.device.xdc_file, self.simple_xdc_file]

    def vivado_command(self) -> List[str]:
        return [
            self.vivado_access,
            "-stack", str(self.config["vivado_stack"]),
            "-nojournal",
            "-log", self.log_file,
            "-mode", "batch",
            "-source", self.tcl_file,
        ]

    def _get_sources(self) -> List[str]:
        """Get the ordered RTL sources of this run, from the netlist or from the generator."""
        if self.netlist_file is not None:
            destination = os.path.join(self.workspace_path, os.path.basename(self.netlist_file))
            if os.path.abspath(self.netlist_file) != destination:
                shutil.copyfile(self.netlist_file, destination)
            self.flow_logger.info(f"Using netlist {self.netlist_file}, copied to {destination}")
            return [destination]

        self.flow_logger.info(f"Generating sources for {self.top_module_name} into {self.workspace_path}")
        lst_path = self.source_generator.generate(self.design, self.top_module_name,
                                                  self.workspace_path, self.context)
        return read_manifest(lst_path)

    def get_tcl(self, sources: List[str], xdc_file: str) -> str:
        """
        Generate the Tcl script content without running anything.

        Args:
            sources: Paths of the RTL sources
            xdc_file: Active constraints file

        Returns:
            str: Content of the Tcl script
        """
        return self.composer.compose(sources, xdc_file, self.task).render()

    def do_flow(self) -> VivadoReport:
        """
        Run the flow end to end.

        Returns:
            VivadoReport: Report parsed from doit.log. Check report.success, a
            returned report does not mean Vivado succeeded.

        Raises:
            NotImplementedError: For GENERATE_BITSTREAM, before anything is written.
            UnrecognizedSourceFormatError: For a source Vivado cannot read, before doit.tcl is written.
            OSError: If the workspace or the manifest cannot be accessed.
        """
        # Fail on unimplemented tasks and unreadable netlists before touching the file system
        self.composer.task_commands(self.task)
        if self.netlist_file is not None:
            classify(self.netlist_file)

        with self.context.synthesis():
            os.makedirs(self.workspace_path, exist_ok=True)

            sources = self._get_sources()

            write_fallback_constraint(self.simple_xdc_file, self.device)

            xdc_in_use = resolve(self.xdc_candidates())

            script = self.composer.compose(sources, xdc_in_use, self.task)
            script.write(self.tcl_file)
            self.flow_logger.info(f"Tcl script written to {self.tcl_file} ({len(script)} lines)")

            self.flow_logger.info(f"Running Vivado {self.task.name} for {self.top_module_name}")
            self.last_result = self.runner.run(self.vivado_command(), cwd=self.workspace_path,
                                               timeout=self.timeout)
            if not self.last_result.succeeded:
                self.flow_logger.warning(
                    f"Vivado exited with code {self.last_result.returncode}, parsing {self.log_file} anyway")

            report = VivadoReport(self.log_file, self.device.family)
            self.flow_logger.info("\n----vivado flow report----\n" + str(report))
            return report


def default_vivado_flow(design: Any, name: str, task: Union[TaskKind, str], netlist_file: Optional[str] = None,
                        source_generator: Optional[SourceGenerator] = None, config_path: Optional[str] = None,
                        runner: Optional[CommandRunner] = None, devices: Optional[DevicesManager] = None
                        ) -> VivadoReport:
    """Run a flow on the configured default device in <synth_workspace>/<name>."""
    toolchain = ToolChainManager(config_path)
    devices = devices or DevicesManager(logs_dir=toolchain.resolve_path("logs_dir"))
    device = devices.get_device(toolchain.config["default_device"])
    workspace = os.path.join(toolchain.resolve_path("synth_workspace"), name)
    flow = VivadoFlow(design, task, device, name, workspace, netlist_file=netlist_file,
                      source_generator=source_generator, runner=runner, config_path=toolchain.config_path)
    return flow.do_flow()


def vivado_synth(design: Any = None, name: str = "top", netlist_file: Optional[str] = None, **kwargs) -> VivadoReport:
    """Synthesize a design, or a pre-built netlist, on the default device."""
    return default_vivado_flow(design, name, TaskKind.SYNTHESIZE, netlist_file=netlist_file, **kwargs)


def vivado_impl(design: Any = None, name: str = "top", netlist_file: Optional[str] = None, **kwargs) -> VivadoReport:
    """Synthesize and implement a design, or a pre-built netlist, on the default device."""
    return default_vivado_flow(design, name, TaskKind.SYNTHESIZE_AND_IMPLEMENT, netlist_file=netlist_file, **kwargs)
