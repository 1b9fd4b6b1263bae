"""
Tests for the end-to-end VivadoFlow driver, with Vivado replaced by a fake runner.
"""

import os
from decimal import Decimal

import pytest

from vivado_flow_pkg import (
    CallableSourceGenerator,
    FlowContext,
    TaskKind,
    UnrecognizedSourceFormatError,
    VivadoFlow,
    XilinxDevice,
    vivado_impl,
    vivado_synth,
)


def read(path):
    with open(path) as f:
        return f.read()


def write_sources(names):
    """Build a generator function that writes the given sources and their manifest."""
    def generate(design, top_module_name, output_dir, context):
        for name in names:
            with open(os.path.join(output_dir, name), "w") as f:
                f.write(f"// {design}\n")
        with open(os.path.join(output_dir, f"{top_module_name}.lst"), "w") as f:
            f.write("\n".join(names) + "\n\n")
    return generate


class TestNetlistFlow:
    """Flows fed with a pre-built netlist."""

    def test_synthesis(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, TaskKind.SYNTHESIZE, vu9p, "adder32", workspace,
                          netlist_file=netlist, runner=fake_runner)
        report = flow.do_flow()

        copied = os.path.join(workspace, "adder32.v")
        assert os.path.isfile(copied)
        assert read(os.path.join(workspace, "doit.xdc")) == "create_clock -period 1.25 [get_ports clk]"
        assert read(os.path.join(workspace, "doit.tcl")) == (
            f"read_verilog {copied}\n"
            f"read_xdc {os.path.join(workspace, 'doit.xdc')}\n"
            "synth_design -part xcvu9p-flga2104-2-i -top adder32 -mode out_of_context\n"
            "write_checkpoint -force adder32_after_synth.dcp\n"
            "report_timing\n"
            "report_utilization\n"
        )

        assert report.success
        assert report.lut == 32
        assert report.ff == 64
        assert report.dsp == 2

    def test_vivado_command(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, netlist_file=netlist, runner=fake_runner)
        flow.do_flow()

        assert len(fake_runner.calls) == 1
        command, cwd = fake_runner.calls[0]
        assert cwd == workspace
        assert command == [
            "vivado", "-stack", "2000", "-nojournal",
            "-log", os.path.join(workspace, "doit.log"),
            "-mode", "batch",
            "-source", os.path.join(workspace, "doit.tcl"),
        ]

    def test_implementation(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, TaskKind.SYNTHESIZE_AND_IMPLEMENT, vu9p, "adder32", workspace,
                          netlist_file=netlist, runner=fake_runner)
        flow.do_flow()
        tcl = read(flow.tcl_file)
        assert "route_design\n" in tcl
        assert "write_checkpoint -force adder32_after_route_phys_opt.dcp\nreport_utilization\n" in tcl

    def test_rerun_is_identical(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, TaskKind.SYNTHESIZE_AND_IMPLEMENT, vu9p, "adder32", workspace,
                          netlist_file=netlist, runner=fake_runner)
        flow.do_flow()
        first = read(flow.tcl_file)
        flow.do_flow()
        assert read(flow.tcl_file) == first


class TestConstraintPriority:
    """The active constraints file follows user > device > fallback."""

    def test_user_xdc_wins(self, tmp_path, netlist, workspace, fake_runner):
        user_xdc = tmp_path / "pins.xdc"
        user_xdc.write_text("create_clock -period 4 [get_ports clk]")
        device_xdc = tmp_path / "device.xdc"
        device_xdc.write_text("create_clock -period 3 [get_ports clk]")
        device = XilinxDevice("board", "xc7k325tffg900-2", "7series", Decimal(500000000), str(device_xdc))

        flow = VivadoFlow(None, "synth", device, "adder32", workspace, xdc_file=str(user_xdc),
                          netlist_file=netlist, runner=fake_runner)
        flow.do_flow()

        assert f"read_xdc {user_xdc}\n" in read(flow.tcl_file)
        # The fallback is written even when unused
        assert read(os.path.join(workspace, "doit.xdc")) == "create_clock -period 2 [get_ports clk]"

    def test_device_xdc_when_user_missing(self, tmp_path, netlist, workspace, fake_runner):
        device_xdc = tmp_path / "device.xdc"
        device_xdc.write_text("create_clock -period 3 [get_ports clk]")
        device = XilinxDevice("board", "xc7k325tffg900-2", "7series", Decimal(500000000), str(device_xdc))

        flow = VivadoFlow(None, "synth", device, "adder32", workspace,
                          xdc_file=str(tmp_path / "missing.xdc"), netlist_file=netlist, runner=fake_runner)
        flow.do_flow()

        assert f"read_xdc {device_xdc}\n" in read(flow.tcl_file)


class TestGeneratedSources:
    """Flows fed by a source generator."""

    def test_manifest_order(self, vu9p, workspace, fake_runner):
        generator = CallableSourceGenerator(write_sources(["top.v", "sub.vhd", "alu.sv"]))
        flow = VivadoFlow("adder-design", "synth", vu9p, "adder32", workspace,
                          source_generator=generator, runner=fake_runner)
        flow.do_flow()

        lines = read(flow.tcl_file).split("\n")
        assert lines[:3] == [
            f"read_verilog {os.path.join(workspace, 'top.v')}",
            f"read_vhdl {os.path.join(workspace, 'sub.vhd')}",
            f"read_verilog -sv {os.path.join(workspace, 'alu.sv')}",
        ]

    def test_generator_runs_at_synthesis_time(self, vu9p, workspace, fake_runner):
        seen = []

        def generate(design, top_module_name, output_dir, context):
            seen.append(context.at_sim_time)
            write_sources(["top.v"])(design, top_module_name, output_dir, context)

        context = FlowContext()
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, context=context,
                          source_generator=CallableSourceGenerator(generate), runner=fake_runner)
        flow.do_flow()

        assert seen == [False]
        assert context.at_sim_time is True

    def test_context_restored_on_failure(self, vu9p, workspace, fake_runner):
        def generate(design, top_module_name, output_dir, context):
            raise RuntimeError("elaboration failed")

        context = FlowContext()
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, context=context,
                          source_generator=CallableSourceGenerator(generate), runner=fake_runner)
        with pytest.raises(RuntimeError):
            flow.do_flow()
        assert context.at_sim_time is True
        assert fake_runner.calls == []

    def test_missing_manifest(self, vu9p, workspace, fake_runner):
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace,
                          source_generator=CallableSourceGenerator(lambda *args: None), runner=fake_runner)
        with pytest.raises(FileNotFoundError):
            flow.do_flow()

    def test_unrecognized_source_writes_no_script(self, vu9p, workspace, fake_runner):
        generator = CallableSourceGenerator(write_sources(["top.v", "notes.txt"]))
        flow = VivadoFlow(None, "impl", vu9p, "adder32", workspace,
                          source_generator=generator, runner=fake_runner)
        with pytest.raises(UnrecognizedSourceFormatError):
            flow.do_flow()
        assert not os.path.exists(os.path.join(workspace, "doit.tcl"))
        assert fake_runner.calls == []


class TestFailures:
    """Failure handling of the driver."""

    def test_bitstream_fails_before_any_io(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, TaskKind.GENERATE_BITSTREAM, vu9p, "adder32", workspace,
                          netlist_file=netlist, runner=fake_runner)
        with pytest.raises(NotImplementedError):
            flow.do_flow()
        assert not os.path.exists(workspace)
        assert fake_runner.calls == []

    def test_unreadable_netlist(self, tmp_path, vu9p, workspace, fake_runner):
        netlist = tmp_path / "adder32.edif"
        netlist.write_text("(edif adder32)")
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, netlist_file=str(netlist),
                          runner=fake_runner)
        with pytest.raises(UnrecognizedSourceFormatError):
            flow.do_flow()
        assert not os.path.exists(workspace)

    def test_tool_failure_is_reported_not_raised(self, vu9p, netlist, workspace, make_runner):
        runner = make_runner(log_text=None, returncode=1)
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, netlist_file=netlist, runner=runner)
        report = flow.do_flow()
        assert flow.last_result.returncode == 1
        assert not report.success

    def test_requires_netlist_or_generator(self, vu9p, workspace):
        with pytest.raises(ValueError):
            VivadoFlow(None, "synth", vu9p, "adder32", workspace)

    def test_get_tcl_does_not_run(self, vu9p, netlist, workspace, fake_runner):
        flow = VivadoFlow(None, "synth", vu9p, "adder32", workspace, netlist_file=netlist, runner=fake_runner)
        tcl = flow.get_tcl(["top.v"], "doit.xdc")
        assert tcl.startswith("read_verilog top.v\n")
        assert fake_runner.calls == []
        assert not os.path.exists(workspace)


class TestDefaultFlows:
    """Convenience entry points on the configured default device."""

    def test_vivado_synth(self, isolated_home, netlist, fake_runner):
        report = vivado_synth(name="adder32", netlist_file=netlist, runner=fake_runner)
        workspace = os.path.join(str(isolated_home), ".vivado_flow", "synthWorkspace", "adder32")
        assert report.success
        assert os.path.isfile(os.path.join(workspace, "doit.tcl"))
        assert "-part xcvu9p-flga2104-2-i" in read(os.path.join(workspace, "doit.tcl"))

    def test_vivado_impl(self, isolated_home, netlist, fake_runner):
        vivado_impl(name="adder32", netlist_file=netlist, runner=fake_runner)
        workspace = os.path.join(str(isolated_home), ".vivado_flow", "synthWorkspace", "adder32")
        assert "place_design -directive Explore" in read(os.path.join(workspace, "doit.tcl"))
