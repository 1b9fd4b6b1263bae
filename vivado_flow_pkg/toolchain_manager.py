import os
import copy
import yaml
import logging
import subprocess
from typing import Optional


class ToolChainManager:
    """Loads the flow configuration and controls how Vivado is accessed"""

    CONFIG_FILE_NAME = "vivado_flow_config.yml"

    DEFAULT_CONFIG = {
        "vivado_tool_preference": "PATH",   # PATH, DIRECT or UNDEFINED
        "vivado_path": "",                  # Vivado binary, used with DIRECT access
        "vivado_stack": 2000,               # -stack argument of the Vivado command line
        "synth_workspace": "synthWorkspace",
        "default_device": "vu9p",
        "logs_dir": "logs",
    }

    SUPPORTED_PREFERENCES = ("PATH", "DIRECT", "UNDEFINED")

    def __init__(self, config_path: Optional[str] = None):
        """
        Load the flow configuration.

        The configuration is searched for in this order: config_path, the current
        working directory, then ~/.vivado_flow/. When none is found a default one is
        created in ~/.vivado_flow/. Relative paths in the configuration are resolved
        against the directory holding the configuration file.

        Args:
            config_path: Explicit path to a vivado_flow_config.yml file.
        """
        self.config_path = self._find_config_path(config_path)
        self.config = self.load_config()

        self.toolchain_logger = self._setup_logger("ToolChainManager", "toolchain_manager.log")
        self.vivado_access = self._get_vivado_access()

    def _setup_logger(self, logger_name: str, log_file_name: str) -> logging.Logger:
        """Get a named logger writing to log_file_name in the configured logs directory.

        The file handler is only attached the first time a logger is requested.
        """
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False  # Prevent propagation to root logger

        if not logger.handlers:
            logs_dir = self.resolve_path("logs_dir")
            os.makedirs(logs_dir, exist_ok=True)
            log_path = os.path.normpath(os.path.join(logs_dir, log_file_name))
            file_handler = logging.FileHandler(log_path)
            formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        return logger

    def _find_config_path(self, config_path: Optional[str]) -> str:
        """Find the flow configuration file, creating a default one if none exists.

        Returns:
           (str) Path to configuration file
        """
        if config_path:
            if not os.path.exists(config_path):
                self._write_default_config(config_path)
            return os.path.abspath(config_path)

        cwd_config = os.path.join(os.getcwd(), self.CONFIG_FILE_NAME)
        if os.path.isfile(cwd_config):
            return cwd_config

        home_config = os.path.join(os.path.expanduser("~"), ".vivado_flow", self.CONFIG_FILE_NAME)
        if not os.path.isfile(home_config):
            self._write_default_config(home_config)
        return home_config

    def _write_default_config(self, config_path: str):
        config_dir = os.path.dirname(os.path.abspath(config_path))
        os.makedirs(config_dir, exist_ok=True)
        with open(config_path, "w") as config_file:
            config_file.write("# Vivado flow configuration\n")
            config_file.write("# Relative paths are resolved against the directory of this file\n\n")
            yaml.safe_dump(self.DEFAULT_CONFIG, config_file, default_flow_style=False, sort_keys=False)

    def load_config(self) -> dict:
        """Load the flow configuration from YAML, filling missing keys with defaults.

        Returns:
            Configuration as dictionary
        """
        with open(self.config_path, "r") as config_file:
            loaded = yaml.safe_load(config_file) or {}
        config = copy.deepcopy(self.DEFAULT_CONFIG)
        config.update(loaded)
        return config

    def update_config(self) -> bool:
        """Write current configuration to config file."""
        try:
            with open(self.config_path, "w") as config_file:
                yaml.safe_dump(self.config, config_file, default_flow_style=False, sort_keys=False)
            self.toolchain_logger.info(f"Configuration saved to {self.config_path}")
            return True
        except OSError as e:
            self.toolchain_logger.error(f"Failed to update the configuration file: {e}")
            return False

    def resolve_path(self, key: str) -> str:
        """Absolute path for a path-valued configuration key."""
        value = os.path.expanduser(str(self.config[key]))
        if os.path.isabs(value):
            return value
        return os.path.normpath(os.path.join(os.path.dirname(self.config_path), value))

    def get_tool_preference(self) -> str:
        """
        Get the access preference for Vivado.

        Returns:
            str: Tool preference ("PATH", "DIRECT", or "UNDEFINED")
        """
        return self.config.get("vivado_tool_preference", "PATH")

    def set_tool_preference(self, preference: str) -> bool:
        """
        Set the access preference for Vivado.

        Args:
            preference (str): Tool preference ("PATH", "DIRECT", or "UNDEFINED")

        Returns:
            bool: True if successfully set, False otherwise
        """
        if preference.upper() not in self.SUPPORTED_PREFERENCES:
            self.toolchain_logger.error(
                f"Invalid preference {preference} for vivado. Must be one of: {self.SUPPORTED_PREFERENCES}")
            return False

        self.config["vivado_tool_preference"] = preference.upper()
        self.toolchain_logger.info(f"Set vivado preference to {preference.upper()}")
        self.vivado_access = self._get_vivado_access()
        return self.update_config()

    def _get_vivado_access(self) -> str:
        """
        Determine how to access the Vivado binary based on the configured mode.

        Returns:
            str: Path or command used to invoke Vivado.
        """
        mode = self.get_tool_preference()
        vivado_access = ""
        if mode == "PATH":  # Vivado should be accessed through PATH
            vivado_access = "vivado"
            self.toolchain_logger.info(f"Vivado is accessing binary through {vivado_access}")
        elif mode == "DIRECT":  # Vivado should be accessed directly
            vivado_access = self.config.get("vivado_path", "")
            self.toolchain_logger.info(f"Vivado is accessing binary directly through {vivado_access}")
        elif mode == "UNDEFINED":
            self.toolchain_logger.error("Vivado access mode is undefined. Run the toolchain check first.")
        else:
            self.toolchain_logger.warning(f"Unexpected tool access mode '{mode}', defaulting to PATH access")
            vivado_access = "vivado"

        return vivado_access

    def check_tool_version(self, binary: str) -> bool:
        """Run `<binary> -version` and report whether it succeeded."""
        if not binary:
            return False
        try:
            result = subprocess.run([binary, "-version"], capture_output=True, text=True, timeout=120)
        except (OSError, subprocess.TimeoutExpired) as e:
            self.toolchain_logger.warning(f"Could not run {binary} -version: {e}")
            return False
        if result.returncode != 0:
            self.toolchain_logger.warning(f"{binary} -version exited with code {result.returncode}")
            return False
        first_line = result.stdout.strip().split("\n")[0] if result.stdout else ""
        self.toolchain_logger.info(f"{binary} is available: {first_line}")
        return True

    def check_toolchain(self) -> bool:
        """
        Check that Vivado is available and set the access preference accordingly.

        PATH access is preferred when both PATH and DIRECT work, unless DIRECT is
        already the configured preference.

        Returns:
            bool: True if Vivado is available through PATH or DIRECT access.
        """
        path_available = self.check_tool_version("vivado")
        direct_available = self.check_tool_version(self.config.get("vivado_path", ""))

        current_pref = self.get_tool_preference()
        if path_available and direct_available:
            if current_pref not in ("PATH", "DIRECT"):
                self.set_tool_preference("PATH")
            self.toolchain_logger.info(f"Vivado: Both PATH and DIRECT available, using {self.get_tool_preference()}")
        elif path_available:
            self.set_tool_preference("PATH")
            self.toolchain_logger.info("Vivado: Only PATH available, set to PATH")
        elif direct_available:
            self.set_tool_preference("DIRECT")
            self.toolchain_logger.info("Vivado: Only DIRECT available, set to DIRECT")
        else:
            self.set_tool_preference("UNDEFINED")
            self.toolchain_logger.error("Vivado: Neither PATH nor DIRECT available, set to UNDEFINED")
            return False
        return True
