"""
schemagen: compile JSON Schema (draft-07) documents into validators.

    >>> from schemagen import generate_validator, validate
    >>> node = generate_validator({"type": "integer", "minimum": 0})
    >>> validate(node, 3), validate(node, -1)
    (True, False)
"""

from .core.compiler import generate_validator
from .core.nodes import ValidatorNode, validate
from .utils.error_handler import CompileError, UnresolvableReference

__version__ = "0.3.0"

__all__ = [
    "CompileError",
    "UnresolvableReference",
    "ValidatorNode",
    "generate_validator",
    "validate",
]
