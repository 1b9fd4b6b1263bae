"""Parses Vivado batch logs into flow reports.

Vivado echoes report_utilization and report_timing into its log, so a single log
file holds everything a flow needs: resource usage, worst setup slack and the
clock requirement it was measured against. The last occurrence of each report wins,
which corresponds to the final stage the script reached.
"""

import os
import re
import logging
from typing import Any, Dict, List, Optional

# Utilization table row labels per device family
UTILIZATION_LABELS = {
    "ultrascale": {
        "lut": r"CLB LUTs\*?",
        "ff": r"CLB Registers",
        "carry": r"CARRY8",
        "bram": r"Block RAM Tile",
        "dsp": r"DSPs",
        "uram": r"URAM",
    },
    "7series": {
        "lut": r"Slice LUTs\*?",
        "ff": r"Slice Registers",
        "carry": r"CARRY4",
        "bram": r"Block RAM Tile",
        "dsp": r"DSPs",
    },
}

SLACK_PATTERN = re.compile(r"^\s*Slack(?: \((?:MET|VIOLATED)\))?\s*:\s*([-\d.]+)ns", re.MULTILINE)
REQUIREMENT_PATTERN = re.compile(r"^\s*Requirement:\s*([-\d.]+)ns", re.MULTILINE)
ERROR_PATTERN = re.compile(r"^ERROR: (.*)$", re.MULTILINE)


class VivadoReport:
    """Metrics extracted from a Vivado log.

    A missing log or a log without utilization figures yields a report whose
    success flag is False. Callers check that flag to know whether the run worked,
    the flow itself does not raise on tool failure.

    Example:
        ```python
        report = VivadoReport("ws/doit.log", "ultrascale")
        if report.success:
            print(report.lut, report.ff, report.fmax_mhz)
        ```
    """

    def __init__(self, log_file: str, family: str = "ultrascale"):
        self.report_logger = logging.getLogger("VivadoReport")
        self.log_file = log_file
        if family not in UTILIZATION_LABELS:
            self.report_logger.warning(f"Unknown device family \"{family}\", defaulting to ultrascale")
            family = "ultrascale"
        self.family = family

        self.utilization: Dict[str, Optional[float]] = {key: None for key in UTILIZATION_LABELS[family]}
        self.slack_ns: Optional[float] = None
        self.requirement_ns: Optional[float] = None
        self.errors: List[str] = []
        self.log_found = os.path.isfile(log_file)

        if not self.log_found:
            self.report_logger.error(f"Vivado log not found at {log_file}")
            return

        with open(log_file, "r", errors="replace") as f:
            self._parse(f.read())

    def _parse(self, log_text: str):
        for key, label in UTILIZATION_LABELS[self.family].items():
            matches = re.findall(rf"^\|\s*{label}\s*\|\s*([\d.]+)\s*\|", log_text, re.MULTILINE)
            if matches:
                used = matches[-1]
                self.utilization[key] = float(used) if "." in used else int(used)

        slacks = SLACK_PATTERN.findall(log_text)
        if slacks:
            self.slack_ns = float(slacks[-1])
        requirements = REQUIREMENT_PATTERN.findall(log_text)
        if requirements:
            self.requirement_ns = float(requirements[-1])

        self.errors = ERROR_PATTERN.findall(log_text)
        for error in self.errors:
            self.report_logger.warning(f"Vivado reported error: {error}")

    def __getattr__(self, name):
        # Expose utilization entries as attributes (report.lut, report.dsp, ...)
        utilization = self.__dict__.get("utilization", {})
        if name in utilization:
            return utilization[name]
        raise AttributeError(name)

    @property
    def success(self) -> bool:
        """True when the log exists, holds no errors and reports LUT usage."""
        return self.log_found and not self.errors and self.utilization.get("lut") is not None

    @property
    def timing_met(self) -> Optional[bool]:
        if self.slack_ns is None:
            return None
        return self.slack_ns >= 0

    @property
    def fmax_mhz(self) -> Optional[float]:
        """Achievable frequency from the last requirement and slack, in MHz."""
        if self.slack_ns is None or self.requirement_ns is None:
            return None
        achieved_period = self.requirement_ns - self.slack_ns
        if achieved_period <= 0:
            return None
        return 1000.0 / achieved_period

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.utilization)
        result.update({
            "slack_ns": self.slack_ns,
            "requirement_ns": self.requirement_ns,
            "fmax_mhz": self.fmax_mhz,
            "timing_met": self.timing_met,
            "success": self.success,
        })
        return result

    def __str__(self):
        def fmt(value):
            return "N/A" if value is None else str(value)

        lines = [f"{key.upper():<8} {fmt(value)}" for key, value in self.utilization.items()]
        fmax = self.fmax_mhz
        lines.append(f"{'SLACK':<8} {fmt(self.slack_ns)} ns")
        lines.append(f"{'FMAX':<8} {'N/A' if fmax is None else f'{fmax:.2f}'} MHz")
        if not self.success:
            lines.append("STATUS   FAILED" + (f" ({len(self.errors)} errors)" if self.errors else ""))
        return "\n".join(lines)
