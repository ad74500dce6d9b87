"""Conformance harness for the official JSON-Schema-Test-Suite layout.

Each fixture file is a list of groups, every group one schema plus the
instances to test against it. A group whose schema does not compile is
reported as a single ``UNIMPLEMENTED`` outcome instead of failing the run.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..config.settings import DEFAULT_REMOTES_BASE_URI, SchemaConfig
from ..core.compiler import generate_validator
from ..core.nodes import validate
from ..utils.error_handler import CompileError, FileSystemError, SuiteFormatError
from .models import SuiteGroup

logger = logging.getLogger(__name__)

METASCHEMA_URI = "http://json-schema.org/draft-07/schema"


class Status(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    UNIMPLEMENTED = "UNIMPLEMENTED"


@dataclass(slots=True)
class Outcome:
    status: Status
    description: str
    detail: Optional[str] = None

    def __str__(self) -> str:
        if self.status is Status.UNIMPLEMENTED:
            return f"{self.status.value} '{self.detail}'"
        return f"{self.status.value} {self.description}"


@dataclass(slots=True)
class GroupReport:
    description: str
    source: str = ""
    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def failures(self) -> List[Outcome]:
        return [o for o in self.outcomes if o.status is not Status.PASSED]


@dataclass(slots=True)
class SuiteReport:
    groups: List[GroupReport] = field(default_factory=list)

    @property
    def counts(self) -> Counter:
        return Counter(o.status for g in self.groups for o in g.outcomes)

    @property
    def ok(self) -> bool:
        return self.counts[Status.FAILED] == 0


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f, parse_float=Decimal)
    except FileNotFoundError:
        raise FileSystemError(
            f"Fixture file not found: {path}",
            error_code="FIXTURE_NOT_FOUND",
            details={"path": str(path)},
        )
    except json.JSONDecodeError as e:
        raise SuiteFormatError(
            f"{path} is not valid JSON: {e}",
            error_code="INVALID_JSON",
            details={"path": str(path)},
        )


def load_suite_file(path: Path) -> List[SuiteGroup]:
    """Parse one fixture file into its groups."""
    path = Path(path)
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise SuiteFormatError(
            f"{path} must contain a list of test groups",
            error_code="INVALID_FIXTURE",
            details={"path": str(path)},
        )
    try:
        return [SuiteGroup.model_validate(entry) for entry in raw]
    except ValidationError as e:
        raise SuiteFormatError(
            f"{path} does not follow the test-suite format: {e}",
            error_code="INVALID_FIXTURE",
            details={"path": str(path)},
        )


def load_metaschema() -> Any:
    """The draft-07 meta-schema shipped with the package."""
    path = resources.files("schemagen").joinpath("schemas").joinpath("draft-07.json")
    return json.loads(path.read_text(encoding="utf-8"), parse_float=Decimal)


def load_remotes(remotes_dir: Path, base_uri: str = DEFAULT_REMOTES_BASE_URI) -> Dict[str, Any]:
    """Load every ``*.json`` below ``remotes_dir``, keyed by the URI it is served at.

    The draft-07 meta-schema is always included so fixtures can refer to it.
    """
    remotes_dir = Path(remotes_dir)
    remotes: Dict[str, Any] = {METASCHEMA_URI: load_metaschema()}
    if not remotes_dir.is_dir():
        logger.info("No remote documents directory at %s", remotes_dir)
        return remotes
    for path in sorted(remotes_dir.rglob("*.json")):
        uri = base_uri + path.relative_to(remotes_dir).as_posix()
        remotes[uri] = _read_json(path)
    logger.info("Loaded %d remote documents from %s", len(remotes), remotes_dir)
    return remotes


def discover_suite_files(paths: Iterable[Path], include_optional: bool = False) -> List[Path]:
    """Expand directories into their fixture files, keeping explicit files as given."""
    files: List[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            pattern = "**/*.json" if include_optional else "*.json"
            files.extend(sorted(path.glob(pattern)))
        elif path.exists():
            files.append(path)
        else:
            raise FileSystemError(
                f"Suite path not found: {path}",
                error_code="SUITE_NOT_FOUND",
                details={"path": str(path)},
            )
    return files


def run_group(
    group: SuiteGroup,
    remotes: Optional[Mapping[str, Any]] = None,
    config: Optional[SchemaConfig] = None,
    source: str = "",
) -> GroupReport:
    report = GroupReport(group.description, source)
    try:
        node = generate_validator(group.schema_, remotes=remotes, config=config)
    except CompileError as e:
        logger.debug("Group %r did not compile: %s", group.description, e)
        report.outcomes.append(Outcome(Status.UNIMPLEMENTED, group.description, str(e)))
        return report

    for test in group.tests:
        if validate(node, test.data) == test.valid:
            report.outcomes.append(Outcome(Status.PASSED, test.description))
        else:
            expected = "valid" if test.valid else "invalid"
            report.outcomes.append(
                Outcome(Status.FAILED, test.description, f"expected {expected}")
            )
    return report


def run_suite(
    files: Iterable[Path],
    remotes: Optional[Mapping[str, Any]] = None,
    config: Optional[SchemaConfig] = None,
) -> SuiteReport:
    suite = SuiteReport()
    for path in files:
        groups = load_suite_file(path)
        logger.info("Running %s (%d groups)", path.name, len(groups))
        for group in groups:
            suite.groups.append(run_group(group, remotes, config, source=path.name))
    return suite
