"""Configuration management for jsx-doctor."""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


DEFAULT_IGNORED_DIRS = [
    ".git",
    "node_modules",
    "build",
    "dist",
    "coverage",
    ".next",
    "out",
    "__pycache__",
    ".venv",
    "venv",
]

DEFAULT_EXTENSIONS = [".jsx", ".tsx"]

REPORT_FILENAME = "jsx-doctor-report.json"


class Config(BaseModel):
    """Run configuration."""

    # Run Settings
    root: Path = Field(default=Path("."))
    fix: bool = Field(default=False)
    output_path: Optional[Path] = Field(default=None)

    # Scanner Settings
    extensions: list[str] = Field(default_factory=lambda: DEFAULT_EXTENSIONS.copy())
    ignored_dirs: list[str] = Field(default_factory=lambda: DEFAULT_IGNORED_DIRS.copy())
    respect_gitignore: bool = Field(default=True)
    max_file_size: int = Field(default=1_000_000)  # 1MB

    # Engine Settings
    max_fix_passes: int = Field(default=4, ge=1)
    disabled_rules: list[str] = Field(default_factory=list)
    jobs: int = Field(default=1, ge=1)

    @property
    def report_path(self) -> Path:
        """Where the JSON report is written."""
        if self.output_path is not None:
            return self.output_path
        return self.root / REPORT_FILENAME

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """Load configuration from JSX_DOCTOR_* environment variables.

        Keyword arguments that are not None override what the environment says.
        """
        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                return int(value) if value is not None else fallback
            except ValueError:
                return fallback

        def _parse_list(value: Optional[str]) -> list[str]:
            if not value:
                return []
            return [entry.strip() for entry in value.split(",") if entry.strip()]

        ignored_dirs = DEFAULT_IGNORED_DIRS.copy()
        ignored_dirs.extend(_parse_list(os.getenv("JSX_DOCTOR_IGNORED_DIRS")))

        extensions = _parse_list(os.getenv("JSX_DOCTOR_EXTENSIONS")) or DEFAULT_EXTENSIONS.copy()
        output_env = os.getenv("JSX_DOCTOR_OUTPUT")

        values = {
            "root": Path(os.getenv("JSX_DOCTOR_ROOT", ".")),
            "output_path": Path(output_env) if output_env else None,
            "extensions": extensions,
            "ignored_dirs": ignored_dirs,
            "respect_gitignore": os.getenv("JSX_DOCTOR_RESPECT_GITIGNORE", "true").lower()
            not in ("0", "false", "no"),
            "max_file_size": _parse_int(os.getenv("JSX_DOCTOR_MAX_FILE_SIZE"), 1_000_000),
            "max_fix_passes": max(1, _parse_int(os.getenv("JSX_DOCTOR_MAX_FIX_PASSES"), 4)),
            "disabled_rules": _parse_list(os.getenv("JSX_DOCTOR_DISABLED_RULES")),
            "jobs": max(1, _parse_int(os.getenv("JSX_DOCTOR_JOBS"), 1)),
        }
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "disabled_rules":
                values[key] = values[key] + [rule for rule in value if rule not in values[key]]
            else:
                values[key] = value
        return cls(**values)
