# ==============================================================================
# AK HARVESTER - CONFIGURATION MODULE
# ==============================================================================
# Centralized configuration management for the application.
#
# This module handles:
#   - Loading/saving configuration from a JSON file
#   - Default values for all settings
#   - Per-server lookups (decrypt keys, include/exclude patterns)
#
# Configuration is read from config.json in the working directory unless
# another path is given.
#
# Usage:
#   from akharvest.core.config import Config
#   config = Config()
#   config.load()
#   print(config.data_root)
#   config.workers = 4
#   config.save()
# ==============================================================================

import copy
import json
import os
from typing import Any, Dict, List, Optional, Tuple


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG = {
    # -------------------------------------------------------------------------
    # CLIENT IDENTITY
    # -------------------------------------------------------------------------
    # Sent as X-Unity-Version on every request
    "unity_version": "2017.4.39f1",

    # Sent as User-Agent on every request
    "user_agent": "Arknights/14 CFNetwork/1240.0.4 Darwin/20.6.0",

    # Platform segment of the resource URLs (IOS, Android)
    "platform": "IOS",

    # HTTP timeout in seconds
    "timeout": 60,

    # -------------------------------------------------------------------------
    # SERVERS
    # -------------------------------------------------------------------------
    # Servers to process, in order
    "servers": ["cn", "us", "jp"],

    # Explicit resource version; null means "ask the server"
    "version": None,

    # -------------------------------------------------------------------------
    # STORAGE
    # -------------------------------------------------------------------------
    # Root of raw blobs, manifests, bundle trees and extracted assets
    "data_root": "Data",

    # -------------------------------------------------------------------------
    # EXTRACTION SETTINGS
    # -------------------------------------------------------------------------
    # Per-server [key, iv_mask] pair used for gamedata text assets
    "decrypt_keys": {},

    # Convert audio clips to .wav instead of writing the raw container
    "convert_audio": False,

    # Number of parallel worker threads for download and extraction
    "workers": 8,

    # Log skipped bundles too
    "verbose_export": False,

    # Per-server bundle path patterns ("^prefix" or "substring")
    "include": {},
    "exclude": {},

    # -------------------------------------------------------------------------
    # ADVANCED
    # -------------------------------------------------------------------------
    # Enable debug logging
    "debug_mode": False,
}

DEFAULT_CONFIG_FILE = "config.json"


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for AK Harvester.

    Handles loading, saving, and accessing application settings.
    Settings are stored in a JSON file and can be accessed as
    properties on this object.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config("config.json")
        >>> config.load()
        >>> config.decrypt_pair("cn")
        ('key...', 'mask...')
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses config.json in
                         the current working directory.
        """
        self.config_path = config_path or os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)

        # Initialize with defaults (deep copy, the defaults hold dicts/lists)
        self.data: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        # Track if config has been modified
        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used.
        Missing keys are filled with defaults and unknown keys are ignored.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            print(f"[INFO] Config file not found, using defaults")
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to load config: {e}")
            return False

        if not isinstance(loaded, dict):
            print(f"[ERROR] Invalid config file: expected an object at top level")
            return False

        # Merge with defaults (so new settings get default values)
        for key, value in loaded.items():
            if key in self.data:
                self.data[key] = value
            else:
                print(f"[WARN] Ignoring unknown config key: {key}")

        print(f"[INFO] Loaded config from {self.config_path}")
        self._modified = False
        return True

    def save(self) -> bool:
        """
        Save configuration to file.

        Creates the directory if it doesn't exist.

        Returns:
            True if saved successfully
        """
        try:
            directory = os.path.dirname(os.path.abspath(self.config_path))
            os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)

            print(f"[INFO] Saved config to {self.config_path}")
            self._modified = False
            return True

        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

    def reset_to_defaults(self):
        """Reset all settings to their default values."""
        self.data = copy.deepcopy(DEFAULT_CONFIG)
        self._modified = True

    @property
    def modified(self) -> bool:
        """True if a setting changed since the last load/save."""
        return self._modified

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------

    @property
    def unity_version(self) -> str:
        return self.data.get('unity_version', DEFAULT_CONFIG['unity_version'])

    @property
    def user_agent(self) -> str:
        return self.data.get('user_agent', DEFAULT_CONFIG['user_agent'])

    @property
    def platform(self) -> str:
        return self.data.get('platform', DEFAULT_CONFIG['platform'])

    @property
    def timeout(self) -> float:
        return float(self.data.get('timeout', DEFAULT_CONFIG['timeout']))

    @property
    def servers(self) -> List[str]:
        """Get the list of servers to process."""
        return list(self.data.get('servers', DEFAULT_CONFIG['servers']))

    @servers.setter
    def servers(self, value: List[str]):
        self.data['servers'] = list(value)
        self._modified = True

    @property
    def version(self) -> Optional[str]:
        """Get the explicit version override (None = latest)."""
        return self.data.get('version')

    @version.setter
    def version(self, value: Optional[str]):
        self.data['version'] = value
        self._modified = True

    @property
    def data_root(self) -> str:
        """Get the data root directory."""
        return self.data.get('data_root', DEFAULT_CONFIG['data_root'])

    @data_root.setter
    def data_root(self, value: str):
        self.data['data_root'] = value
        self._modified = True

    @property
    def convert_audio(self) -> bool:
        return bool(self.data.get('convert_audio', False))

    @convert_audio.setter
    def convert_audio(self, value: bool):
        self.data['convert_audio'] = bool(value)
        self._modified = True

    @property
    def workers(self) -> int:
        """Get the number of worker threads (never less than 1)."""
        return max(1, int(self.data.get('workers', DEFAULT_CONFIG['workers'])))

    @workers.setter
    def workers(self, value: int):
        """Set the number of worker threads."""
        self.data['workers'] = max(1, int(value))
        self._modified = True

    @property
    def verbose_export(self) -> bool:
        return bool(self.data.get('verbose_export', False))

    @verbose_export.setter
    def verbose_export(self, value: bool):
        self.data['verbose_export'] = bool(value)
        self._modified = True

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return bool(self.data.get('debug_mode', False))

    @debug_mode.setter
    def debug_mode(self, value: bool):
        """Set debug mode."""
        self.data['debug_mode'] = bool(value)
        self._modified = True

    # -------------------------------------------------------------------------
    # PER-SERVER SETTINGS
    # -------------------------------------------------------------------------

    def decrypt_pair(self, server: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Get the (key, iv_mask) pair for a server.

        The configured list may be missing or short; missing entries are
        returned as None, which disables decryption.

        Args:
            server: Server identifier (e.g., "cn")

        Returns:
            Tuple of (key, iv_mask)
        """
        keys = list(self.data.get('decrypt_keys', {}).get(server) or [])
        while len(keys) < 2:
            keys.append(None)
        return keys[0], keys[1]

    def include_patterns(self, server: str) -> List[str]:
        """Get the include patterns configured for a server."""
        return list(self.data.get('include', {}).get(server) or [])

    def exclude_patterns(self, server: str) -> List[str]:
        """Get the exclude patterns configured for a server."""
        return list(self.data.get('exclude', {}).get(server) or [])


# ==============================================================================
# GLOBAL CONFIG INSTANCE
# ==============================================================================
# This provides a singleton-like access to configuration

_global_config: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Creates and loads config on first call.

    Args:
        config_path: Optional path used only when the instance is created

    Returns:
        The global Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config(config_path)
        _global_config.load()

    return _global_config
