"""Selects the constraints file used by a Vivado flow.

Candidates are checked strictly in priority order, the first present one wins:

    user supplied xdc > device default xdc > generated fallback xdc

The fallback is a single clock constraint derived from the device fMax. It is
written to disk before resolution, whether or not it ends up being selected.
"""
import os
import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional

from .errors import ConstraintResolutionError

# Clock port targeted by the generated constraint
CLOCK_PORT = "clk"

constraint_logger = logging.getLogger("ConstraintResolver")


def format_period(period_ns: Decimal) -> str:
    """Render a clock period in plain decimal notation without losing digits."""
    return format(Decimal(period_ns), "f")


def clock_constraint(period_ns: Decimal, port: str = CLOCK_PORT) -> str:
    """
    Build the single-line clock constraint for a target period.

    Args:
        period_ns: Target clock period in nanoseconds.
        port: Clock port the constraint is bound to.

    Returns:
        str: e.g. "create_clock -period 1.25 [get_ports clk]"
    """
    return f"create_clock -period {format_period(period_ns)} [get_ports {port}]"


def write_fallback_constraint(xdc_path: str, device) -> str:
    """
    Write the generated fallback constraints file for a device.

    Args:
        xdc_path: Destination of the constraints file (normally <workspace>/doit.xdc).
        device: XilinxDevice whose period_ns drives the clock constraint.

    Returns:
        str: Absolute path of the written file.
    """
    line = clock_constraint(device.period_ns)
    with open(xdc_path, "w") as xdc_file:
        xdc_file.write(line)
    constraint_logger.info(f"Fallback constraint written to {xdc_path}: {line}")
    return os.path.abspath(xdc_path)


def resolve(candidates: Iterable[Optional[str]],
            exists: Callable[[str], bool] = os.path.isfile) -> str:
    """
    Pick the active constraints file from candidates in priority order.

    None entries stand for candidates that were not supplied and are skipped.

    Args:
        candidates: Candidate paths, highest priority first.
        exists: Presence predicate, defaults to a file-system check.

    Returns:
        str: The first candidate that is present.

    Raises:
        ConstraintResolutionError: If no candidate is present.
    """
    candidates = list(candidates)
    for candidate in candidates:
        if candidate is None:
            continue
        if exists(candidate):
            constraint_logger.info(f"Using constraints file {candidate}")
            return candidate
        constraint_logger.warning(f"Constraints candidate {candidate} is not present, skipping")
    raise ConstraintResolutionError(f"No constraints file present among {candidates}")
