#!/usr/bin/env python3
"""Command line interface for the Vivado Flow Manager.

This module provides subcommands to synthesize or implement a design, preview the
generated Tcl script, list the device catalog and check the Vivado installation.
"""
import os
import sys
import argparse
import logging

from vivado_flow_pkg import (
    CommandSourceGenerator,
    DevicesManager,
    TaskKind,
    ToolChainManager,
    VivadoFlow,
    VivadoFlowError,
)
from vivado_flow_pkg.script_composer import ScriptComposer


def _configure_logging_for_cli():
    """Keep package loggers out of the console, they write to their own log files."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    root_logger.addHandler(logging.NullHandler())


def _add_flow_arguments(parser):
    parser.add_argument('--top', required=True, help='Top-level module name')
    parser.add_argument('--device', help='Device identifier from the catalog (default: configured default_device)')
    parser.add_argument('--xdc', help='User constraints file, takes priority over device constraints')
    parser.add_argument('--workspace', help='Workspace directory (default: <synth_workspace>/<top>)')
    parser.add_argument('--config', help='Path to vivado_flow_config.yml')
    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument('--netlist', help='Pre-built netlist used as the only source')
    source_group.add_argument('--generator',
                              help='Source generator command template, placeholders {design} {top} {out}')
    parser.add_argument('--design', help='Design descriptor passed to the generator')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='vivado-flow',
        description='Vivado Flow Manager - scripted Vivado synthesis and implementation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s synth --netlist adder32.v --top adder32
  %(prog)s impl --generator "sbt \\"runMain gen.Main {top} {out}\\"" --top adder32 --device kintex7
  %(prog)s script --sources top.v sub.vhd --top adder32 --task impl
  %(prog)s devices
  %(prog)s check
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    synth_parser = subparsers.add_parser('synth', help='Run out of context synthesis')
    _add_flow_arguments(synth_parser)

    impl_parser = subparsers.add_parser('impl', help='Run synthesis and implementation')
    _add_flow_arguments(impl_parser)

    script_parser = subparsers.add_parser('script', help='Print the Tcl script without running Vivado')
    script_parser.add_argument('--sources', nargs='*', default=[], help='RTL sources in read order')
    script_parser.add_argument('--top', required=True, help='Top-level module name')
    script_parser.add_argument('--task', default='synth', choices=[task.value for task in TaskKind])
    script_parser.add_argument('--device', help='Device identifier from the catalog')
    script_parser.add_argument('--xdc', help='Constraints file read by the script')
    script_parser.add_argument('--config', help='Path to vivado_flow_config.yml')

    devices_parser = subparsers.add_parser('devices', help='List the device catalog')
    devices_parser.add_argument('--config', help='Path to vivado_flow_config.yml')

    check_parser = subparsers.add_parser('check', help='Check that Vivado is available')
    check_parser.add_argument('--config', help='Path to vivado_flow_config.yml')

    return parser


def _get_device(toolchain, device_id):
    devices = DevicesManager(logs_dir=toolchain.resolve_path("logs_dir"))
    return devices.get_device(device_id or toolchain.config["default_device"])


def run_flow(args, task: TaskKind) -> int:
    toolchain = ToolChainManager(args.config)
    device = _get_device(toolchain, args.device)
    workspace = args.workspace or os.path.join(toolchain.resolve_path("synth_workspace"), args.top)
    generator = CommandSourceGenerator(args.generator) if args.generator else None

    print(f"🚀 Running Vivado {task.value} for {args.top} on {device.name} ({device.part})")
    flow = VivadoFlow(args.design, task, device, args.top, workspace, xdc_file=args.xdc,
                      netlist_file=args.netlist, source_generator=generator, config_path=toolchain.config_path)
    report = flow.do_flow()

    print("\n----vivado flow report----")
    print(report)
    if report.success:
        print(f"✅ Vivado {task.value} finished, workspace: {flow.workspace_path}")
        return 0
    print(f"❌ Vivado {task.value} failed, see {flow.log_file}")
    return 1


def print_script(args) -> int:
    toolchain = ToolChainManager(args.config)
    device = _get_device(toolchain, args.device)
    task = TaskKind.from_name(args.task)
    xdc_file = args.xdc or device.xdc_file or VivadoFlow.XDC_FILE_NAME
    script = ScriptComposer(device.part, args.top).compose(args.sources, xdc_file, task)
    sys.stdout.write(script.render())
    return 0


def list_devices(args) -> int:
    toolchain = ToolChainManager(args.config)
    devices = DevicesManager(logs_dir=toolchain.resolve_path("logs_dir")).get_device_display_info()
    print(f"{'Device':<12} {'Part':<24} {'Family':<12} {'fMax (MHz)':>10}  Description")
    print("-" * 90)
    for device in devices:
        print(f"{device['identifier']:<12} {device['part']:<24} {device['family']:<12} "
              f"{device['fmax_mhz']:>10}  {device['description']}")
    return 0


def check_toolchain(args) -> int:
    toolchain = ToolChainManager(args.config)
    if toolchain.check_toolchain():
        print(f"✅ Vivado is available ({toolchain.get_tool_preference()}: {toolchain.vivado_access})")
        return 0
    print("❌ Vivado is not available through PATH or the configured vivado_path")
    return 1


def main(argv=None) -> int:
    """Entry point of the vivado-flow command."""
    _configure_logging_for_cli()
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'synth':
            return run_flow(args, TaskKind.SYNTHESIZE)
        if args.command == 'impl':
            return run_flow(args, TaskKind.SYNTHESIZE_AND_IMPLEMENT)
        if args.command == 'script':
            return print_script(args)
        if args.command == 'devices':
            return list_devices(args)
        if args.command == 'check':
            return check_toolchain(args)
    except KeyboardInterrupt:
        print("\n🛑 Operation cancelled by user")
        return 130
    except (VivadoFlowError, NotImplementedError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1
    return 2


if __name__ == '__main__':
    sys.exit(main())
