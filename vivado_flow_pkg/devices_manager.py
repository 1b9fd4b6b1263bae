"""
Xilinx Device Catalog Manager

This module manages the Xilinx devices Vivado flows can target.
It handles loading, saving, and maintaining device definitions in a YAML configuration file.
"""

import os
import yaml
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Any

from .errors import InvalidDeviceError, UnknownDeviceError

# Device families understood by the report parser
DEVICE_FAMILIES = ("ultrascale", "7series")


@dataclass(frozen=True)
class XilinxDevice:
    """A target Xilinx device."""

    name: str
    part: str
    family: str
    fmax_hz: Decimal
    xdc_file: Optional[str] = None

    @property
    def period_ns(self) -> Decimal:
        """Target clock period in nanoseconds, computed exactly from fmax_hz."""
        return Decimal(1000000000) / Decimal(self.fmax_hz)

    @classmethod
    def from_config(cls, device_id: str, device_config: Dict[str, Any],
                    base_dir: Optional[str] = None) -> "XilinxDevice":
        """Build a device from its catalog entry.

        A relative xdc_file is resolved against base_dir, the directory holding the catalog.
        """
        xdc_file = device_config.get("xdc_file") or None
        if xdc_file is not None and base_dir is not None:
            xdc_file = os.path.expanduser(xdc_file)
            if not os.path.isabs(xdc_file):
                xdc_file = os.path.normpath(os.path.join(base_dir, xdc_file))
        return cls(
            name=device_id,
            part=device_config["part"],
            family=device_config.get("family", "ultrascale"),
            # str() keeps YAML floats from turning into binary fractions
            fmax_hz=Decimal(str(device_config["fmax_hz"])),
            xdc_file=xdc_file,
        )


class DevicesManager:
    """
    Manages the global Xilinx device catalog.

    This class handles:
    - Loading and saving device definitions from ~/.vivado_flow/
    - Managing default device definitions
    - Providing XilinxDevice objects to flows and to the CLI
    - Maintaining the global devices_configuration.yaml file
    """

    def __init__(self, app_data_dir: Optional[str] = None, logs_dir: Optional[str] = None):
        """Initialize the DevicesManager and ensure the catalog file exists.

        Args:
            app_data_dir: Directory holding devices_configuration.yaml. Defaults to ~/.vivado_flow.
            logs_dir: Directory receiving devices_manager.log. Defaults to app_data_dir.
        """

        # Set up logging
        self.devices_logger = logging.getLogger("DevicesManager")
        self.devices_logger.setLevel(logging.DEBUG)
        self.devices_logger.propagate = False

        # Remove existing handlers
        for handler in self.devices_logger.handlers[:]:
            self.devices_logger.removeHandler(handler)
            handler.close()

        self.app_data_dir = app_data_dir or self._get_app_data_directory()
        os.makedirs(self.app_data_dir, exist_ok=True)

        self.logs_dir = logs_dir or self.app_data_dir
        os.makedirs(self.logs_dir, exist_ok=True)

        log_path = os.path.join(self.logs_dir, "devices_manager.log")
        file_handler = logging.FileHandler(log_path)
        formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(formatter)
        self.devices_logger.addHandler(file_handler)

        self.config_file_path = os.path.join(self.app_data_dir, "devices_configuration.yaml")

        self.devices_config = {}
        self._initialize_configuration()

        self.devices_logger.info("DevicesManager initialized successfully")

    def _initialize_configuration(self):
        """Initialize the device catalog with defaults if it doesn't exist."""
        if not os.path.exists(self.config_file_path):
            self.devices_logger.info("Creating new devices_configuration.yaml with default devices")
            self._create_default_configuration()
        else:
            self.devices_logger.info("Loading existing devices_configuration.yaml")
            self._load_configuration()

        # Ensure we have default devices (in case file was edited or incomplete)
        self._ensure_default_devices()

    def _create_default_configuration(self):
        """Create the default device catalog."""
        self.devices_config = {
            'devices_configuration': {
                'version': '1.0.0',
                'description': 'Xilinx devices targeted by Vivado flows',
                'devices': self._get_default_devices()
            }
        }
        self._save_configuration()

    def _get_default_devices(self) -> Dict[str, Dict[str, Any]]:
        """Get the default device definitions."""
        return {
            'vu9p': {
                'part': 'xcvu9p-flga2104-2-i',
                'family': 'ultrascale',
                'fmax_hz': 800000000,
                'description': 'Virtex UltraScale+ VU9P'
            },
            'zcu104': {
                'part': 'xczu7ev-ffvc1156-2-e',
                'family': 'ultrascale',
                'fmax_hz': 775000000,
                'description': 'Zynq UltraScale+ ZU7EV on the ZCU104 board'
            },
            'kintex7': {
                'part': 'xc7k325tffg900-2',
                'family': '7series',
                'fmax_hz': 500000000,
                'description': 'Kintex-7 325T'
            },
            'artix7': {
                'part': 'xc7a100tcsg324-1',
                'family': '7series',
                'fmax_hz': 450000000,
                'description': 'Artix-7 100T'
            }
        }

    def _load_configuration(self):
        """Load the device catalog from YAML file."""
        try:
            with open(self.config_file_path, 'r') as f:
                self.devices_config = yaml.safe_load(f) or {}
            self.devices_logger.info(f"Loaded devices configuration from {self.config_file_path}")
        except (OSError, yaml.YAMLError) as e:
            self.devices_logger.error(f"Failed to load devices configuration: {e}")
            self.devices_logger.info("Creating new configuration with defaults")
            self._create_default_configuration()

    def _save_configuration(self):
        """Save the current device catalog to YAML file."""
        try:
            with open(self.config_file_path, 'w') as f:
                yaml.safe_dump(self.devices_config, f, default_flow_style=False, indent=2)
            self.devices_logger.info(f"Saved devices configuration to {self.config_file_path}")
        except OSError as e:
            self.devices_logger.error(f"Failed to save devices configuration: {e}")

    def _ensure_default_devices(self):
        """Ensure all default devices are present in the catalog."""
        if 'devices_configuration' not in self.devices_config:
            self.devices_config['devices_configuration'] = {}
        if 'devices' not in self.devices_config['devices_configuration']:
            self.devices_config['devices_configuration']['devices'] = {}

        current_devices = self.devices_config['devices_configuration']['devices']

        updated = False
        for device_id, device_config in self._get_default_devices().items():
            if device_id not in current_devices:
                current_devices[device_id] = device_config
                updated = True
                self.devices_logger.info(f"Added default device: {device_id}")

        if updated:
            self._save_configuration()

    def _get_app_data_directory(self) -> str:
        """Get the application data directory."""
        home_dir = os.path.expanduser("~")
        return os.path.join(home_dir, ".vivado_flow")

    def get_available_devices(self) -> Dict[str, Dict[str, Any]]:
        """
        Get all devices from the catalog.

        Returns:
            Dict containing device_id -> device_config mappings
        """
        return self.devices_config.get('devices_configuration', {}).get('devices', {})

    def get_device(self, device_id: str) -> XilinxDevice:
        """
        Get a device by its identifier.

        Args:
            device_id: The device identifier, e.g. "vu9p"

        Returns:
            XilinxDevice built from the catalog entry

        Raises:
            UnknownDeviceError: If the device is not in the catalog
            InvalidDeviceError: If the catalog entry is malformed
        """
        devices = self.get_available_devices()
        if device_id not in devices:
            self.devices_logger.error(f"Device '{device_id}' not found in configuration")
            raise UnknownDeviceError(f"Unknown device '{device_id}'. Available devices: {sorted(devices)}")

        device_config = devices[device_id]
        errors = self.validate_device_config(device_config)
        if errors:
            self.devices_logger.error(f"Invalid catalog entry for device {device_id}: {errors}")
            raise InvalidDeviceError(f"Invalid catalog entry for device '{device_id}': {'; '.join(errors)}")
        return XilinxDevice.from_config(device_id, device_config, base_dir=self.app_data_dir)

    @staticmethod
    def _format_fmax_mhz(fmax_hz: Any) -> str:
        try:
            return str(Decimal(str(fmax_hz)) / Decimal(1000000))
        except ArithmeticError:
            return "invalid"

    def get_device_display_info(self) -> List[Dict[str, str]]:
        """
        Get device information formatted for listing.

        Returns:
            List of dicts with 'identifier', 'part', 'family', 'fmax_mhz' and 'description' keys
        """
        display_info = []
        for device_id, device_config in self.get_available_devices().items():
            display_info.append({
                'identifier': device_id,
                'part': device_config.get('part', ''),
                'family': device_config.get('family', 'ultrascale'),
                'fmax_mhz': self._format_fmax_mhz(device_config.get('fmax_hz')),
                'description': device_config.get('description', 'No description available')
            })

        display_info.sort(key=lambda x: x['identifier'])
        return display_info

    def add_device(self, device_id: str, device_config: Dict[str, Any]) -> bool:
        """
        Add a new device to the catalog.

        Args:
            device_id: Unique identifier for the device
            device_config: Device configuration dictionary

        Returns:
            True if added successfully, False otherwise
        """
        devices = self.get_available_devices()

        if device_id in devices:
            self.devices_logger.warning(f"Device {device_id} already exists, use update_device instead")
            return False

        errors = self.validate_device_config(device_config)
        if errors:
            self.devices_logger.error(f"Invalid configuration for device {device_id}: {errors}")
            return False

        devices[device_id] = device_config
        self._save_configuration()
        self.devices_logger.info(f"Added new device: {device_id}")
        return True

    def update_device(self, device_id: str, device_config: Dict[str, Any]) -> bool:
        """
        Update an existing device.

        Returns:
            True if updated successfully, False otherwise
        """
        devices = self.get_available_devices()

        if device_id not in devices:
            self.devices_logger.warning(f"Device {device_id} not found, use add_device instead")
            return False

        errors = self.validate_device_config(device_config)
        if errors:
            self.devices_logger.error(f"Invalid configuration for device {device_id}: {errors}")
            return False

        devices[device_id] = device_config
        self._save_configuration()
        self.devices_logger.info(f"Updated device: {device_id}")
        return True

    def remove_device(self, device_id: str) -> bool:
        """Remove a device from the catalog."""
        devices = self.get_available_devices()

        if device_id not in devices:
            self.devices_logger.warning(f"Device {device_id} not found")
            return False

        del devices[device_id]
        self._save_configuration()
        self.devices_logger.info(f"Removed device: {device_id}")
        return True

    def validate_device_config(self, device_config: Dict[str, Any]) -> List[str]:
        """
        Validate a device configuration.

        Args:
            device_config: Device configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for field in ('part', 'fmax_hz'):
            if field not in device_config:
                errors.append(f"Missing required field: {field}")

        if 'fmax_hz' in device_config:
            try:
                if Decimal(str(device_config['fmax_hz'])) <= 0:
                    errors.append("fmax_hz must be positive")
            except ArithmeticError:
                errors.append(f"Invalid fmax_hz: {device_config['fmax_hz']}")

        family = device_config.get('family', 'ultrascale')
        if family not in DEVICE_FAMILIES:
            errors.append(f"Invalid family: {family}")

        return errors
