#!/usr/bin/env python3
"""Launcher for the Vivado Flow Manager.

Allows running the command line interface with `python -m vivado_flow_pkg`.
"""

import sys

from .cli import main


if __name__ == '__main__':
    sys.exit(main())
