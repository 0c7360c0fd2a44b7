"""
Configuration service for SnapMark.

This module handles loading, saving, and managing editor settings.
Configuration is stored as JSON in ~/.config/snapmark/config.json following
the XDG Base Directory Specification.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from snapmark.editor.pixel_buffer import parse_color
from snapmark.services.logging_service import get_logger

# Default configuration directory following XDG Base Directory Specification
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "snapmark"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "editor": {
        # Packed as #RRGGBBAA
        "color": "#ff0000ff",
        "thickness": 5,
        "fill": False,
        # Extra stencil width for the eraser so thick edges are cleared
        "eraser_margin": 12,
        # Alpha applied inside the crop selection preview
        "highlight_alpha": 150,
    },
    "capture": {
        # Delay before a scheduled capture fires
        "delay_ms": 600,
    },
}


class ConfigService:
    """
    Service for managing editor configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/snapmark/config.json
        """
        self._logger = get_logger(__name__)
        self._config_path = config_path or DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}

        self._load()

    @property
    def config_path(self) -> Path:
        return self._config_path

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            if isinstance(loaded_config, dict):
                self._deep_merge(self._config, loaded_config)
                self._logger.info(f"Configuration loaded from {self._config_path}")
                # Persist any new default keys
                self._save_to_file()
            else:
                raise ValueError("Config file does not contain a valid JSON object")

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_to_file()

        except (OSError, PermissionError) as e:
            self._logger.warning(
                f"Could not read config file: {e}. Using defaults."
            )

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        """Save current configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)

            self._logger.debug(f"Configuration saved to {self._config_path}")

        except (OSError, PermissionError) as e:
            self._logger.error(f"Could not save config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Dotted keys ("editor.thickness") walk into nested sections.
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value (in memory only).

        Note:
            Call save() to persist changes to disk.
        """
        parts = key.split(".")
        node = self._config
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        self._save_to_file()

    def _get_int(self, key: str, minimum: int = 0) -> int:
        default = _default_for(key)
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            self._logger.warning(f"Invalid value for '{key}': {value!r}. Using {default}.")
            return default
        return value

    # ─── Editor Settings ──────────────────────────────────────────────────

    @property
    def default_color(self) -> int:
        """Get the default drawing color as a packed RGBA int."""
        value = self.get("editor.color", DEFAULT_CONFIG["editor"]["color"])
        try:
            return parse_color(value)
        except ValueError as e:
            self._logger.warning(f"{e}. Using default color.")
            return parse_color(DEFAULT_CONFIG["editor"]["color"])

    @property
    def default_thickness(self) -> int:
        return self._get_int("editor.thickness", minimum=1)

    @property
    def default_fill(self) -> bool:
        return bool(self.get("editor.fill", False))

    @property
    def eraser_margin(self) -> int:
        return self._get_int("editor.eraser_margin")

    @property
    def highlight_alpha(self) -> int:
        alpha = self._get_int("editor.highlight_alpha")
        return min(alpha, 255)

    # ─── Capture Settings ─────────────────────────────────────────────────

    @property
    def capture_delay_ms(self) -> int:
        return self._get_int("capture.delay_ms")


def _default_for(key: str) -> Any:
    node: Any = DEFAULT_CONFIG
    for part in key.split("."):
        node = node[part]
    return node
