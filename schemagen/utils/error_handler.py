#!/usr/bin/env python3
"""
Standardized Error Handling for schemagen

This module defines the exception hierarchy shared by the compiler, the
conformance harness and the CLI, plus a handler that turns errors into
readable console output with suggestions.
"""

import sys
from typing import Optional, Dict, Any

from rich import print
from rich.markup import escape


class SchemagenError(Exception):
    """Base exception class for schemagen errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class CompileError(SchemagenError):
    """A schema could not be compiled into a validator.

    ``keyword`` names the offending keyword (``None`` when the whole
    sub-schema is at fault) and ``location`` is the JSON pointer of the
    sub-schema within its document.
    """

    def __init__(
        self,
        message: str,
        keyword: Optional[str] = None,
        location: str = "",
        error_code: Optional[str] = "INVALID_SCHEMA",
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        details.setdefault("keyword", keyword)
        details.setdefault("location", location)
        super().__init__(message, error_code=error_code, details=details)
        self.keyword = keyword
        self.location = location

    def __str__(self) -> str:
        where = self.location or "#"
        if self.keyword:
            return f"{self.message} (keyword '{self.keyword}' at {where})"
        return f"{self.message} (at {where})"


class UnresolvableReference(CompileError):
    """A $ref could not be resolved against the known documents."""

    def __init__(self, ref: str, location: str = "", reason: str = ""):
        message = f"Cannot resolve reference '{ref}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            keyword="$ref",
            location=location,
            error_code="UNRESOLVABLE_REF",
            details={"ref": ref},
        )
        self.ref = ref


class ConfigurationError(SchemagenError):
    """Error related to configuration issues."""
    pass


class FileSystemError(SchemagenError):
    """Error related to file system operations."""
    pass


class SuiteFormatError(SchemagenError):
    """A conformance fixture file does not follow the test-suite layout."""
    pass


class ErrorHandler:
    """Centralized error handling with user-friendly messages and suggestions."""

    @staticmethod
    def handle_error(error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """
        Handle an error with appropriate user messaging and suggestions.

        Args:
            error: The exception that occurred
            context: Optional context about where the error occurred
            exit_code: Exit code to use if terminating the program
        """
        context_prefix = f"[{context}] " if context else ""

        print(f"\n[red]Error: {escape(context_prefix + str(error))}[/red]")

        suggestions = ErrorHandler._get_error_suggestions(error)
        if suggestions:
            print("\n[yellow]Suggestions:[/yellow]")
            for suggestion in suggestions:
                print(f"  • {escape(suggestion)}")

        print()

        if exit_code != 0:
            sys.exit(exit_code)

    @staticmethod
    def _get_error_suggestions(error: Exception) -> list:
        """Get user-friendly suggestions based on error type and message."""
        error_msg = str(error).lower()
        suggestions = []

        if isinstance(error, UnresolvableReference):
            suggestions.extend([
                "Check that the JSON pointer after '#' matches the document structure",
                "Pass remote documents with --remote URI=PATH",
                "Verify the $id values that change the base URI along the path",
            ])
        elif isinstance(error, CompileError):
            if error.error_code == "UNIMPLEMENTED_KEYWORD":
                suggestions.extend([
                    "Remove the keyword from SCHEMAGEN_DISABLED_KEYWORDS",
                    "Validate this schema with a different validator",
                ])
            else:
                suggestions.extend([
                    f"Check the value of '{error.keyword or 'the schema'}' against the draft-07 meta-schema",
                    "Schemas must be JSON objects or booleans",
                ])
        elif isinstance(error, SuiteFormatError):
            suggestions.extend([
                "Each fixture file must be a list of {description, schema, tests} groups",
                "Pass the tests/draft7 directory of the official test suite to 'schemagen suite'",
            ])
        elif any(keyword in error_msg for keyword in ["file", "directory", "path"]):
            if "not found" in error_msg or isinstance(error, FileNotFoundError):
                suggestions.extend([
                    "Check if the file/directory exists",
                    "Ensure correct relative paths",
                ])
            elif "permission" in error_msg:
                suggestions.extend([
                    "Check file/directory permissions",
                ])
        elif any(keyword in error_msg for keyword in ["json", "yaml", "decode", "expecting"]):
            suggestions.extend([
                "Check the document for syntax errors",
                "YAML is only used for files ending in .yaml or .yml",
            ])

        if not suggestions:
            suggestions.extend([
                "Try running with DEBUG=1 for verbose output",
                "Ensure all required dependencies are installed",
            ])

        return suggestions

    @staticmethod
    def create_error_message(error: Exception, operation: str) -> str:
        """Create a formatted error message with context."""
        return f"Failed to {operation}: {error}"


def handle_and_exit(error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
    """Handle an error and exit the program."""
    ErrorHandler.handle_error(error, context, exit_code)
