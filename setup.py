#!/usr/bin/env python3
"""Setup script for the Vivado Flow Manager."""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements from requirements.txt in the package
def read_requirements():
    requirements_path = os.path.join("vivado_flow_pkg", "requirements.txt")
    with open(requirements_path, "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="vivado-flow-manager",
    version="0.1.0",
    description="Scripted Vivado synthesis and implementation flows with Tcl generation and log reports",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "vivado-flow=vivado_flow_pkg.cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "vivado_flow_pkg": ["requirements.txt", "*.yml", "*.yaml"],
    },
    keywords="fpga vivado xilinx synthesis implementation tcl xdc",
)
