"""Runner for the JSON-Schema-Test-Suite fixture format."""

from .runner import (
    METASCHEMA_URI,
    GroupReport,
    Outcome,
    Status,
    SuiteReport,
    discover_suite_files,
    load_metaschema,
    load_remotes,
    load_suite_file,
    run_group,
    run_suite,
)

__all__ = [
    "METASCHEMA_URI",
    "GroupReport",
    "Outcome",
    "Status",
    "SuiteReport",
    "discover_suite_files",
    "load_metaschema",
    "load_remotes",
    "load_suite_file",
    "run_group",
    "run_suite",
]
