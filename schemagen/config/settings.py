#!/usr/bin/env python3
"""
Centralized Configuration Management for schemagen

Compiler limits, format handling and the location of the conformance
test suite are read from the environment once and shared through
``get_config()``.
"""

import os
import sys
from pathlib import Path
from typing import Optional, FrozenSet
from dataclasses import dataclass, field


DEFAULT_REMOTES_BASE_URI = "http://localhost:1234/"

# Interpreter frames the compiler spends per level of schema nesting, at most.
FRAMES_PER_SCHEMA_LEVEL = 7


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


@dataclass
class SchemaConfig:
    """Configuration for schema compilation."""
    max_depth: int = 128
    assert_formats: bool = False
    disabled_keywords: FrozenSet[str] = frozenset()


@dataclass
class SuiteConfig:
    """Configuration for the conformance test suite."""
    root_dir: Path
    suite_dir: Path = field(init=False)
    remotes_dir: Path = field(init=False)
    remotes_base_uri: str = DEFAULT_REMOTES_BASE_URI

    def __post_init__(self):
        """Initialize derived paths."""
        self.suite_dir = self.root_dir / "test-suite" / "tests" / "draft7"
        self.remotes_dir = self.root_dir / "test-suite" / "remotes"


@dataclass
class AppConfig:
    """Main application configuration."""
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    suite: SuiteConfig = field(init=False)
    debug_mode: bool = False

    def __post_init__(self):
        """Initialize configuration from environment."""
        root_dir = Path(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))
        self.suite = SuiteConfig(root_dir)

        if os.getenv("SCHEMAGEN_SUITE_DIR"):
            self.suite.suite_dir = Path(os.getenv("SCHEMAGEN_SUITE_DIR"))

        if os.getenv("SCHEMAGEN_REMOTES_DIR"):
            self.suite.remotes_dir = Path(os.getenv("SCHEMAGEN_REMOTES_DIR"))

        self.schema.max_depth = self._determine_max_depth()
        self.schema.assert_formats = _env_flag("SCHEMAGEN_ASSERT_FORMATS")

        disabled = os.getenv("SCHEMAGEN_DISABLED_KEYWORDS", "")
        self.schema.disabled_keywords = frozenset(
            name.strip() for name in disabled.split(",") if name.strip()
        )

        self.debug_mode = _env_flag("DEBUG")

    @staticmethod
    def _clamp_max_depth(value: int) -> int:
        """Keep the compile depth within the interpreter's recursion limit."""

        return max(1, min(sys.getrecursionlimit() // FRAMES_PER_SCHEMA_LEVEL, value))

    def _determine_max_depth(self) -> int:
        env_value = os.getenv("SCHEMAGEN_MAX_DEPTH")
        if env_value is None or env_value.strip() == "":
            return self.schema.max_depth
        try:
            return self._clamp_max_depth(int(env_value))
        except ValueError:
            return self.schema.max_depth


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def reset_config():
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None


def get_schema_config() -> SchemaConfig:
    """Get the compiler configuration."""
    return get_config().schema


def is_debug_mode() -> bool:
    """Check if debug mode is enabled."""
    return get_config().debug_mode
