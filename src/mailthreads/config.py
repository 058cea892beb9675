# ABOUTME: Configuration management using XDG Base Directory specification
# ABOUTME: Handles config files, the email database location, and state/logs directories
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from mailthreads.exceptions import ConfigError
from mailthreads.logging_config import VALID_LEVELS

logger = logging.getLogger(__name__)


class Config:
    """
    Configuration management for mailthreads using XDG Base Directory specification.

    Directories (following XDG standard):
    - Config: $XDG_CONFIG_HOME/mailthreads (default: ~/.config/mailthreads)
    - Data: $XDG_DATA_HOME/mailthreads (default: ~/.local/share/mailthreads)
    - State: $XDG_STATE_HOME/mailthreads (default: ~/.local/state/mailthreads)
    """

    def __init__(self, config_dir: str | None = None):
        if config_dir is None:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
            config_dir = os.path.join(xdg_config_home, "mailthreads")
            logger.debug(f"Using XDG config directory: {config_dir}")

            xdg_data_home = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
            self.data_dir = Path(xdg_data_home) / "mailthreads"

            xdg_state_home = os.environ.get("XDG_STATE_HOME", os.path.expanduser("~/.local/state"))
            self.state_dir = Path(xdg_state_home) / "mailthreads"
        else:
            # Explicit config_dir (e.g. in tests) keeps every directory beneath it
            logger.debug(f"Using custom config directory: {config_dir}")
            self.data_dir = Path(config_dir) / "data"
            self.state_dir = Path(config_dir) / "state"

        self.config_dir = Path(config_dir).resolve()

        restricted_dirs = ["/", "/etc", "/usr", "/bin", "/sbin", "/var", "/tmp"]
        if str(self.config_dir) in restricted_dirs:
            raise ConfigError(
                f"Cannot use system directory as config dir: {config_dir}",
                recovery_hint="Set XDG_CONFIG_HOME or pass a dedicated directory",
            )

        self._ensure_directories()
        self._load_config()

    def _ensure_directories(self):
        """Create necessary XDG directories"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
            self.data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
            self.state_dir.mkdir(parents=True, exist_ok=True, mode=0o700)

            (self.state_dir / "logs").mkdir(exist_ok=True, mode=0o700)
        except OSError as e:
            logger.error(f"Failed to create directories: {e}")
            raise ConfigError(f"Cannot create mailthreads directories: {e}")

    def _validate_config_structure(self, settings: dict) -> bool:
        """Validate that loaded config has required structure."""
        required_keys = {
            "storage": dict,
            "threads": dict,
            "ui": dict,
        }

        for key, expected_type in required_keys.items():
            if key not in settings:
                logger.error(f"Config missing required key: {key}")
                return False
            if not isinstance(settings[key], expected_type):
                logger.error(f"Config key {key} has wrong type: {type(settings[key])}")
                return False

        if not isinstance(settings.get("logging", {}), dict):
            logger.error("Config key logging has wrong type")
            return False

        return True

    def _backup_invalid_config(self, config_file: Path) -> Path:
        ts = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = config_file.parent / f"config.json.invalid_{ts}"
        config_file.rename(backup_path)
        return backup_path

    def _load_config(self):
        """Load configuration with structure validation"""
        config_file = self.config_dir / "config.json"
        if not config_file.exists():
            self.settings = self._default_settings()
            self.save_config()
            return

        try:
            with open(config_file) as f:
                loaded_settings = json.load(f)
        except json.JSONDecodeError as e:
            backup_path = self._backup_invalid_config(config_file)
            logger.warning(f"Invalid JSON in config file ({e}), backed up to {backup_path}")
            self.settings = self._default_settings()
            self.save_config()
            return

        if not self._validate_config_structure(loaded_settings):
            backup_path = self._backup_invalid_config(config_file)
            logger.warning(f"Invalid config structure, backed up to {backup_path}")
            self.settings = self._default_settings()
            self.save_config()
            return

        # Fill in keys added after the file was written
        defaults = self._default_settings()
        for section, values in defaults.items():
            loaded_settings.setdefault(section, {})
            for key, value in values.items():
                loaded_settings[section].setdefault(key, value)

        self.settings = loaded_settings
        self._validate_settings()

    def _default_settings(self) -> dict[str, Any]:
        """Default configuration settings"""
        return {
            "storage": {
                "database": "emails.db",  # relative names live in the data dir
            },
            "threads": {
                "self_reply_as_root": True,
            },
            "ui": {
                "preview_lines": 8,
                "show_content": False,
            },
            "logging": {
                "level": "WARNING",
                "file": None,  # e.g. "mailthreads.log", relative to the state log dir
            },
        }

    def _validate_settings(self):
        """Validate settings are within acceptable ranges"""
        ui_settings = self.settings["ui"]
        try:
            preview_lines = int(ui_settings.get("preview_lines", 8))
        except (TypeError, ValueError):
            logger.warning("Invalid ui.preview_lines, defaulting to 8")
            preview_lines = 8
        ui_settings["preview_lines"] = min(max(1, preview_lines), 200)

        threads_settings = self.settings["threads"]
        if not isinstance(threads_settings.get("self_reply_as_root"), bool):
            logger.warning("threads.self_reply_as_root must be a boolean, defaulting to true")
            threads_settings["self_reply_as_root"] = True

        logging_settings = self.settings["logging"]
        level = str(logging_settings.get("level") or "WARNING").upper()
        if level not in VALID_LEVELS:
            logger.warning(f"Invalid logging.level {level!r}, defaulting to WARNING")
            level = "WARNING"
        logging_settings["level"] = level

    def save_config(self):
        """Save configuration to disk"""
        config_file = self.config_dir / "config.json"
        try:
            with open(config_file, "w") as f:
                json.dump(self.settings, f, indent=2, sort_keys=True)
            logger.debug("Configuration saved")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")

    def get_database_path(self) -> Path:
        """Resolve the email database path.

        MAILTHREADS_DB in the environment wins over the configured value.
        Relative paths are resolved against the data directory.
        """
        configured = os.environ.get("MAILTHREADS_DB") or self.settings["storage"]["database"]
        path = Path(configured).expanduser()
        if not path.is_absolute():
            path = self.data_dir / path
        return path

    def get_log_dir(self) -> Path:
        return self.state_dir / "logs"

    def get_log_file(self) -> Path | None:
        """Log file from logging.file, resolved against the log dir; None when unset."""
        name = self.settings["logging"].get("file")
        if not name:
            return None
        path = Path(name).expanduser()
        return path if path.is_absolute() else self.get_log_dir() / path
