"""Pytest configuration for tests."""

import os
from decimal import Decimal

import pytest

from vivado_flow_pkg import CommandResult, XilinxDevice

SAMPLE_LOG = """\
****** Vivado v2023.2 (64-bit)
Command: synth_design -part xcvu9p-flga2104-2-i -top adder32 -mode out_of_context
Timing Report

Slack (MET) :             0.250ns  (required time - arrival time)
  Source:                 a_reg[0]/C
  Destination:            s_reg[31]/D
  Requirement:            1.250ns  (clk rise@1.250ns - clk rise@0.000ns)

1. CLB Logic
------------

+-------------------------+------+-------+------------+-----------+-------+
|        Site Type        | Used | Fixed | Prohibited | Available | Util% |
+-------------------------+------+-------+------------+-----------+-------+
| CLB LUTs*               |   32 |     0 |          0 |   1182240 | <0.01 |
|   LUT as Logic          |   32 |     0 |          0 |   1182240 | <0.01 |
| CLB Registers           |   64 |     0 |          0 |   2364480 | <0.01 |
| CARRY8                  |    4 |     0 |          0 |    147780 | <0.01 |
| Block RAM Tile          |    0 |     0 |          0 |      2160 |  0.00 |
| DSPs                    |    2 |     0 |          0 |      6840 |  0.03 |
+-------------------------+------+-------+------------+-----------+-------+
"""


class FakeRunner:
    """Stands in for Vivado: records commands and writes a canned log."""

    def __init__(self, log_text=SAMPLE_LOG, returncode=0):
        self.log_text = log_text
        self.returncode = returncode
        self.calls = []

    def run(self, command, cwd, timeout=None):
        self.calls.append((list(command), cwd))
        if self.log_text is not None and "-log" in command:
            log_path = command[command.index("-log") + 1]
            with open(log_path, "w") as log_file:
                log_file.write(self.log_text)
        return CommandResult(command=list(command), returncode=self.returncode)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep configuration, device catalog and logs out of the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return home


@pytest.fixture
def sample_log():
    return SAMPLE_LOG


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def vu9p():
    return XilinxDevice(name="vu9p", part="xcvu9p-flga2104-2-i", family="ultrascale",
                        fmax_hz=Decimal(800000000))


@pytest.fixture
def netlist(tmp_path):
    path = tmp_path / "adder32.v"
    path.write_text("module adder32(input clk); endmodule\n")
    return str(path)


@pytest.fixture
def workspace(tmp_path):
    return os.path.join(str(tmp_path), "ws")
