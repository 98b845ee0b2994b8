"""
Unified configuration system for CSharply
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

LINE_ENDINGS = ("auto", "lf", "crlf")
TRUE_VALUES = ["true", "1", "yes"]


@dataclass
class OrganizeConfig:
    """Configuration for the reorganize/normalize engine"""

    standard_prefixes: list[str] = field(default_factory=lambda: ["System"])
    line_ending: str = "auto"  # auto, lf, or crlf
    strip_regions: bool = True
    guard_directives: list[str] = field(
        default_factory=lambda: ["if", "elif", "else", "endif", "nullable"]
    )


@dataclass
class BatchConfig:
    """Configuration for file and directory processing"""

    max_workers: int = 3
    extensions: list[str] = field(default_factory=lambda: [".cs"])
    ignore_dirs: list[str] = field(
        default_factory=lambda: ["bin", "obj", ".git", ".vs", ".csharply-backups"]
    )
    ignore_patterns: list[str] = field(
        default_factory=lambda: ["*.g.cs", "*.g.i.cs", "*.designer.cs", "*.generated.cs"]
    )
    skip_generated: bool = True  # Skip files with an <auto-generated> header


@dataclass
class ServeConfig:
    """Configuration for the HTTP endpoint"""

    host: str = "127.0.0.1"
    port: int = 8149


@dataclass
class BackupConfig:
    """Configuration for backup operations"""

    enabled: bool = True
    directory: str = ".csharply-backups"
    compression: bool = True
    keep_sessions: int = 10


@dataclass
class Config:
    """Main configuration class for CSharply"""

    # General settings
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False
    strict: bool = False

    # Sub-configurations
    organize: OrganizeConfig = field(default_factory=OrganizeConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    serve: ServeConfig = field(default_factory=ServeConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    # File paths
    config_file: str | None = None

    @classmethod
    def from_file(cls, filepath: Path) -> "Config":
        """Load configuration from YAML or JSON file"""
        if not filepath.exists():
            logger.warning(f"Config file not found: {filepath}")
            return cls()

        try:
            with open(filepath, "r") as f:
                if filepath.suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f)
                elif filepath.suffix == ".json":
                    data = json.load(f)
                else:
                    logger.error(f"Unsupported config file format: {filepath.suffix}")
                    return cls()

            return cls._from_dict(data or {})
        except Exception as e:
            logger.error(f"Error loading config file: {e}")
            return cls()

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config instance from dictionary"""
        config = cls()

        # Load general settings
        for key in ["dry_run", "verbose", "quiet", "strict"]:
            if key in data:
                setattr(config, key, data[key])

        # Load sub-configurations
        if "organize" in data:
            config.organize = OrganizeConfig(**data["organize"])
        if "batch" in data:
            config.batch = BatchConfig(**data["batch"])
        if "serve" in data:
            config.serve = ServeConfig(**data["serve"])
        if "backup" in data:
            config.backup = BackupConfig(**data["backup"])

        return config

    @classmethod
    def load_hierarchy(cls, project_dir: Path | None = None) -> "Config":
        """Load configuration from hierarchy: global -> project -> env vars"""
        config = cls()

        # 1. Load global config
        global_config = Path.home() / ".csharply" / "config.yaml"
        if global_config.exists():
            config = cls.from_file(global_config)
            logger.debug(f"Loaded global config from {global_config}")

        # 2. Load project config
        if project_dir:
            project_config = project_dir / ".csharply.yaml"
            if project_config.exists():
                project_data = cls.from_file(project_config)
                config.merge(project_data)
                logger.debug(f"Loaded project config from {project_config}")

        # 3. Apply environment variables
        config.apply_env_vars()

        return config

    def merge(self, other: "Config") -> None:
        """Merge another config into this one (other takes precedence)"""
        if other.config_file:
            self.config_file = other.config_file

        # Merge boolean flags (only if explicitly set to True)
        for flag in ["dry_run", "verbose", "quiet", "strict"]:
            if getattr(other, flag):
                setattr(self, flag, True)

        # Merge sub-configurations
        self._merge_dataclass(self.organize, other.organize)
        self._merge_dataclass(self.batch, other.batch)
        self._merge_dataclass(self.serve, other.serve)
        self._merge_dataclass(self.backup, other.backup)

    def _merge_dataclass(self, target: Any, source: Any) -> None:
        """Merge source dataclass into target"""
        for field_name in source.__dataclass_fields__:
            source_value = getattr(source, field_name)
            if source_value != getattr(target.__class__(), field_name):
                setattr(target, field_name, source_value)

    def apply_env_vars(self) -> None:
        """Apply environment variables to configuration"""
        # CSHARPLY_VERBOSE
        if os.environ.get("CSHARPLY_VERBOSE", "").lower() in TRUE_VALUES:
            self.verbose = True

        # CSHARPLY_DRY_RUN
        if os.environ.get("CSHARPLY_DRY_RUN", "").lower() in TRUE_VALUES:
            self.dry_run = True

        # CSHARPLY_MAX_WORKERS
        if max_workers := os.environ.get("CSHARPLY_MAX_WORKERS"):
            try:
                self.batch.max_workers = int(max_workers)
            except ValueError:
                logger.warning(f"Ignoring non-numeric CSHARPLY_MAX_WORKERS: {max_workers}")

        # CSHARPLY_LINE_ENDING
        if line_ending := os.environ.get("CSHARPLY_LINE_ENDING"):
            self.organize.line_ending = line_ending.lower()

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.organize.line_ending not in LINE_ENDINGS:
            errors.append(f"Invalid line ending: {self.organize.line_ending}")

        if self.batch.max_workers < 1:
            errors.append("Max workers must be at least 1")

        for extension in self.batch.extensions:
            if not extension.startswith("."):
                errors.append(f"Invalid file extension: {extension}")

        if not 0 < self.serve.port < 65536:
            errors.append(f"Invalid port: {self.serve.port}")

        if self.backup.keep_sessions < 0:
            errors.append("Backup keep_sessions cannot be negative")

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "dry_run": self.dry_run,
            "verbose": self.verbose,
            "quiet": self.quiet,
            "strict": self.strict,
            "organize": asdict(self.organize),
            "batch": asdict(self.batch),
            "serve": asdict(self.serve),
            "backup": asdict(self.backup),
        }

    def save(self, filepath: Path) -> None:
        """Save configuration to file"""
        data = self.to_dict()

        with open(filepath, "w") as f:
            if filepath.suffix in [".yaml", ".yml"]:
                yaml.safe_dump(data, f, default_flow_style=False)
            elif filepath.suffix == ".json":
                json.dump(data, f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {filepath.suffix}")
