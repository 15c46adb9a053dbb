"""Configuration management with multiple sources."""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, List
from dataclasses import dataclass, field

from .logger import get_logger
from .exceptions import ConfigError, InvalidConfigError, InvalidRuleError, MissingConfigError

logger = get_logger(__name__)

OUTPUT_FORMATS = ("text", "json", "csv")


def _default_ignore_patterns() -> List[str]:
    return [".git", "node_modules", "vendor", "*.jpg", "*.png", "*.gif"]


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _to_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ScanConfig:
    """Scan configuration options."""
    ignore_patterns: List[str] = field(default_factory=_default_ignore_patterns)
    max_file_size: int = 5 * 1024 * 1024
    max_line_length: int = 100
    custom_rules: Dict[str, str] = field(default_factory=dict)


@dataclass
class OutputConfig:
    """Output configuration."""
    format: str = "text"
    verbose: bool = False


class Config:
    """
    Configuration manager.

    Priority (highest to lowest):
    1. Environment variables
    2. Explicit config file (--config)
    3. Project config (.pipeline-guardian.yml)
    4. User config (~/.pipeline-guardian.yaml)
    5. Default values
    """

    CONFIG_FILENAME = ".pipeline-guardian.yml"
    USER_CONFIG_FILE = Path.home() / ".pipeline-guardian.yaml"

    ENV_MAPPINGS = {
        "PIPELINE_GUARDIAN_IGNORE": ("scan", "ignore_patterns", _to_list),
        "PIPELINE_GUARDIAN_MAX_FILE_SIZE": ("scan", "max_file_size", int),
        "PIPELINE_GUARDIAN_MAX_LINE_LENGTH": ("scan", "max_line_length", int),
        "PIPELINE_GUARDIAN_OUTPUT_FORMAT": ("output", "format", str),
        "PIPELINE_GUARDIAN_VERBOSE": ("output", "verbose", _to_bool),
    }

    def __init__(self, load_files: bool = True, load_env: bool = True):
        """
        Initialize configuration manager.

        Args:
            load_files: Read user and project config files
            load_env: Apply PIPELINE_GUARDIAN_* environment variables
        """
        self.scan = ScanConfig()
        self.output = OutputConfig()
        self.sources: List[Path] = []

        if load_files:
            self._load_user_config()
            self._load_project_config()
        if load_env:
            self._load_env_config()

        logger.debug("Configuration initialized")

    def _read_file(self, config_file: Path) -> Dict[str, Any]:
        with open(config_file) as f:
            config = yaml.safe_load(f)

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise InvalidConfigError(
                f"Config file must contain a mapping: {config_file}",
                suggestion="Use top-level 'scan:' and 'output:' sections",
            )
        return config

    def _load_source(self, config_file: Path) -> None:
        """Apply one config file and record it as a source."""
        try:
            self._apply_config(self._read_file(config_file))
        except ConfigError:
            raise
        except (yaml.YAMLError, ValueError, TypeError) as e:
            raise InvalidConfigError(
                f"Invalid config file: {config_file}",
                details={"error": str(e)},
                suggestion="Fix the file or remove it",
            ) from e

        self.sources.append(config_file)

    def _load_user_config(self) -> None:
        """Load user-level configuration."""
        if not self.USER_CONFIG_FILE.exists():
            logger.debug("No user config found")
            return

        try:
            self._load_source(self.USER_CONFIG_FILE)
            logger.info(f"Loaded user config: {self.USER_CONFIG_FILE}")

        except OSError as e:
            logger.warning(f"Failed to read user config: {e}")

    def _load_project_config(self) -> None:
        """Load the nearest project configuration above the working directory."""
        current = Path.cwd()

        for parent in [current] + list(current.parents):
            config_file = parent / self.CONFIG_FILENAME

            if config_file.exists():
                try:
                    self._load_source(config_file)
                    logger.info(f"Loaded project config: {config_file}")

                except OSError as e:
                    logger.warning(f"Failed to read project config: {e}")
                return

        logger.debug("No project config found")

    def _load_env_config(self) -> None:
        """Load configuration from environment variables."""
        for env_var, (section, key, converter) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value:
                try:
                    converted = converter(value)
                    setattr(getattr(self, section), key, converted)
                    logger.debug(f"Loaded from env: {env_var}={converted}")
                except ValueError as e:
                    logger.warning(f"Invalid env var {env_var}={value}: {e}")

    def _apply_config(self, config: Dict[str, Any]) -> None:
        """Apply configuration dictionary."""
        if "scan" in config:
            scan_conf = config["scan"] or {}
            if "ignore_patterns" in scan_conf:
                patterns = scan_conf["ignore_patterns"] or []
                if not isinstance(patterns, list):
                    raise InvalidConfigError(
                        "scan.ignore_patterns must be a list of globs",
                        details={"value": patterns},
                        suggestion='Example: ignore_patterns: [".git", "*.log"]',
                    )
                self.scan.ignore_patterns = list(patterns)
            if "max_file_size" in scan_conf:
                self.scan.max_file_size = int(scan_conf["max_file_size"])
            if "max_line_length" in scan_conf:
                self.scan.max_line_length = int(scan_conf["max_line_length"])
            if "custom_rules" in scan_conf:
                rules = scan_conf["custom_rules"] or {}
                if not isinstance(rules, dict):
                    raise InvalidConfigError(
                        "scan.custom_rules must map rule names to patterns",
                        suggestion='Example: custom_rules: {"Slack Token": "xox[baprs]-[0-9a-zA-Z-]+"}',
                    )
                self.scan.custom_rules.update({str(k): str(v) for k, v in rules.items()})

        if "output" in config:
            out_conf = config["output"] or {}
            if "format" in out_conf:
                self.output.format = str(out_conf["format"])
            if "verbose" in out_conf:
                self.output.verbose = bool(out_conf["verbose"])

    def load_file(self, config_path: Path) -> None:
        """Apply an explicit config file, then re-apply the environment on top."""
        if not config_path.exists():
            raise MissingConfigError(
                f"Config file not found: {config_path}",
                suggestion="Check the file path or run 'pipeline-guardian config init'"
            )

        try:
            self._load_source(config_path)
        except OSError as e:
            raise ConfigError(
                f"Failed to load config: {config_path}",
                details={"error": str(e)}
            ) from e

        logger.info(f"Loaded explicit config: {config_path}")
        self._load_env_config()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key."""
        parts = key.split(".")

        if len(parts) != 2:
            raise InvalidConfigError(
                f"Invalid config key: {key}",
                suggestion="Use format: section.key (e.g., scan.max_file_size)"
            )

        section, attr = parts

        if section not in ("scan", "output"):
            return default

        return getattr(getattr(self, section), attr, default)

    def validate(self) -> None:
        """Validate configuration values."""
        errors = []

        if self.scan.max_file_size < 1:
            errors.append("scan.max_file_size must be >= 1")

        if self.scan.max_line_length < 1:
            errors.append("scan.max_line_length must be >= 1")

        bad_patterns = [p for p in self.scan.ignore_patterns if not isinstance(p, str) or not p]
        if bad_patterns:
            errors.append(f"scan.ignore_patterns must be non-empty strings: {bad_patterns!r}")

        if self.output.format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output.format: {self.output.format}")

        try:
            self.rule_table()
        except InvalidRuleError as e:
            errors.append(f"scan.custom_rules: {e.message}")

        if errors:
            raise InvalidConfigError(
                "Configuration validation failed",
                details={"errors": errors},
                suggestion=f"Check your {self.CONFIG_FILENAME} file"
            )

    def rule_table(self):
        """Default detection rules extended with scan.custom_rules."""
        from ..core.rules import DEFAULT_RULES

        return DEFAULT_RULES.extended(self.scan.custom_rules)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "scan": {
                "ignore_patterns": list(self.scan.ignore_patterns),
                "max_file_size": self.scan.max_file_size,
                "max_line_length": self.scan.max_line_length,
                "custom_rules": dict(self.scan.custom_rules),
            },
            "output": {
                "format": self.output.format,
                "verbose": self.output.verbose,
            },
        }

    @classmethod
    def create_user_config(cls, overwrite: bool = False) -> Path:
        """Write the default configuration to the user config file."""
        if cls.USER_CONFIG_FILE.exists() and not overwrite:
            raise ConfigError(
                f"User config already exists: {cls.USER_CONFIG_FILE}",
                suggestion="Use --overwrite to replace it"
            )

        cls.USER_CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)

        default_config = cls(load_files=False, load_env=False)

        with open(cls.USER_CONFIG_FILE, "w") as f:
            yaml.dump(default_config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Created user config: {cls.USER_CONFIG_FILE}")
        return cls.USER_CONFIG_FILE


def init_config(config_path: Optional[Path] = None) -> Config:
    """
    Initialize configuration.

    Args:
        config_path: Optional explicit config file path

    Returns:
        Validated Config object
    """
    config = Config()

    if config_path:
        config.load_file(config_path)

    config.validate()

    return config
