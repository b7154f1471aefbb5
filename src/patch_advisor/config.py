"""Configuration loading for patch_advisor.

Config sources (in priority order):
1. Command line options
2. Environment variables (PATCH_ADVISOR_SNAPSHOT, PATCH_ADVISOR_FORMAT)
3. YAML settings file given with --config
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

OUTPUT_FORMATS = ("table", "xml", "json")
DEFAULT_HIGHLIGHT = ("security", "critical")


@dataclass
class Settings:
    snapshot: Optional[Path] = None
    output_format: str = "table"
    color: bool = True
    highlight: list[str] = field(default_factory=lambda: list(DEFAULT_HIGHLIGHT))
    reboot_req_non_interactive: bool = False
    auto_agree_with_licenses: bool = False

    def __post_init__(self) -> None:
        if self.snapshot is not None:
            self.snapshot = Path(self.snapshot)
        if isinstance(self.highlight, str):
            self.highlight = [self.highlight]
        self.highlight = [value.lower() for value in self.highlight]

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> Settings:
        """
        Load settings from a YAML file and the environment.

        Raises:
            FileNotFoundError: If path is given but does not exist
            yaml.YAMLError: If the file cannot be parsed
            ValueError: For unknown keys
        """
        data: dict = {}
        if path is not None:
            path = Path(path)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {path}")
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        settings = cls(**data)
        if os.getenv("PATCH_ADVISOR_SNAPSHOT"):
            settings.snapshot = Path(os.environ["PATCH_ADVISOR_SNAPSHOT"])
        if os.getenv("PATCH_ADVISOR_FORMAT"):
            settings.output_format = os.environ["PATCH_ADVISOR_FORMAT"]
        return settings

    def validate(self) -> list[str]:
        """Return a list of config problems."""
        problems = []
        if self.snapshot is None:
            problems.append("Snapshot not set (--snapshot or PATCH_ADVISOR_SNAPSHOT)")
        if self.output_format not in OUTPUT_FORMATS:
            problems.append(
                f"Unknown output format '{self.output_format}' "
                f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
            )
        return problems


def load_settings(path: Optional[str | Path] = None) -> Settings:
    return Settings.load(path)
