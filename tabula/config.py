"""Configuration loader.

Loads defaults from config.yaml once per process and exposes them through
typed properties.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import yaml

__all__ = ["TabulaConfig", "config"]


class TabulaConfig:
    """Configuration singleton."""

    _instance: TabulaConfig | None = None
    _config: dict[str, Any] | None = None

    def __new__(cls) -> TabulaConfig:
        """Singleton pattern to ensure config is loaded once."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Load configuration from YAML file."""
        if self._config is None:
            config_path = Path(__file__).parent / "config.yaml"
            with open(config_path, encoding="utf-8") as f:
                self._config = yaml.safe_load(f)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get configuration value by nested keys.

        Args:
            *keys: Nested keys to traverse (e.g., "charts", "histogram", "bins")
            default: Default value if key path not found

        Returns:
            Configuration value or default

        Examples:
            >>> config = TabulaConfig()
            >>> config.get("charts", "histogram", "bins")
            30

        """
        value = self._config
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    @property
    def delimiter(self) -> str:
        """Field delimiter for delimited files."""
        return cast(str, self.get("io", "delimiter", default=","))

    @property
    def missing_token(self) -> str:
        """Field text that maps to the missing marker."""
        return cast(str, self.get("io", "missing_token", default=""))

    @property
    def encoding(self) -> str:
        """Text encoding for delimited files."""
        return cast(str, self.get("io", "encoding", default="utf-8"))

    @property
    def print_max_rows(self) -> int:
        """Rows shown when a table is printed."""
        return cast(int, self.get("display", "print_max_rows", default=10))

    @property
    def margin_label(self) -> str:
        """Label of the total row/column added to cross-tabs."""
        return cast(str, self.get("transform", "margin_label", default="Sum"))

    @property
    def figure_width(self) -> float:
        """Default chart width in units."""
        return cast(float, self.get("charts", "width", default=5.0))

    @property
    def figure_height(self) -> float:
        """Default chart height in units."""
        return cast(float, self.get("charts", "height", default=3.5))

    @property
    def pixels_per_unit(self) -> int:
        """Pixels per size unit when sizing the Vega-Lite view."""
        return cast(int, self.get("charts", "pixels_per_unit", default=96))

    @property
    def png_scale_factor(self) -> float:
        """Scale factor for PNG export."""
        return cast(float, self.get("charts", "png_scale_factor", default=3.0))

    @property
    def default_theme(self) -> str:
        """Theme applied when a chart sets none."""
        return cast(str, self.get("charts", "theme", default="gray"))

    @property
    def histogram_bins(self) -> int:
        """Default histogram bin count."""
        return cast(int, self.get("charts", "histogram", "bins", default=30))

    @property
    def histogram_alpha(self) -> float:
        """Default histogram bar opacity."""
        return cast(float, self.get("charts", "histogram", "alpha", default=1.0))

    @property
    def histogram_position(self) -> str:
        """Default placement of fill groups in a histogram."""
        return cast(str, self.get("charts", "histogram", "position", default="stack"))

    @property
    def boxplot_whisker(self) -> float:
        """Whisker reach as a multiple of the interquartile range."""
        return cast(float, self.get("charts", "boxplot", "whisker", default=1.5))


# Global config instance
config = TabulaConfig()
