#!/usr/bin/env python3
"""
Schema Compiler for schemagen

Turns a draft-07 JSON Schema document into a tree of validator nodes.
Every recognized keyword in a schema object contributes one node and the
results are conjoined; keywords that only make sense together
(``properties``/``patternProperties``/``additionalProperties``,
``items``/``additionalItems`` and ``if``/``then``/``else``) compile into a
single node. A schema object carrying ``$ref`` compiles to the referenced
schema alone and its sibling keywords are ignored, as draft-07 requires.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.settings import SchemaConfig, get_schema_config
from ..utils.error_handler import CompileError
from . import nodes
from .formats import get_format_check
from .nodes import ValidatorNode
from .resolver import Location, DocumentIndex, build_index, scope_of
from .values import is_integral, is_number

logger = logging.getLogger(__name__)


JSON_TYPES = frozenset(
    ["null", "boolean", "integer", "number", "string", "array", "object"]
)

# Keywords that never contribute a node.
ANNOTATIONS = frozenset([
    "$schema",
    "$id",
    "$comment",
    "title",
    "description",
    "default",
    "examples",
    "readOnly",
    "writeOnly",
    "definitions",
    "contentMediaType",
    "contentEncoding",
])

# (keywords handled together, handler method), in compilation order.
KEYWORD_TABLE: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("type",), "_compile_type"),
    (("const",), "_compile_const"),
    (("enum",), "_compile_enum"),
    (("minimum",), "_compile_minimum"),
    (("maximum",), "_compile_maximum"),
    (("exclusiveMinimum",), "_compile_exclusive_minimum"),
    (("exclusiveMaximum",), "_compile_exclusive_maximum"),
    (("multipleOf",), "_compile_multiple_of"),
    (("minLength",), "_compile_min_length"),
    (("maxLength",), "_compile_max_length"),
    (("pattern",), "_compile_pattern"),
    (("format",), "_compile_format"),
    (("minItems",), "_compile_min_items"),
    (("maxItems",), "_compile_max_items"),
    (("uniqueItems",), "_compile_unique_items"),
    (("items", "additionalItems"), "_compile_items"),
    (("contains",), "_compile_contains"),
    (("minProperties",), "_compile_min_properties"),
    (("maxProperties",), "_compile_max_properties"),
    (("required",), "_compile_required"),
    (("properties", "patternProperties", "additionalProperties"), "_compile_properties"),
    (("propertyNames",), "_compile_property_names"),
    (("dependencies",), "_compile_dependencies"),
    (("allOf",), "_compile_all_of"),
    (("anyOf",), "_compile_any_of"),
    (("oneOf",), "_compile_one_of"),
    (("not",), "_compile_not"),
    (("if", "then", "else"), "_compile_conditional"),
)

SUPPORTED_KEYWORDS = frozenset(
    keyword for family, _ in KEYWORD_TABLE for keyword in family
) | {"$ref"}

# Keywords whose sub-schemas apply to a member, element or name of the
# instance rather than to the instance itself.
DESCENDING_KEYWORDS = frozenset([
    "items",
    "additionalItems",
    "contains",
    "properties",
    "patternProperties",
    "additionalProperties",
    "propertyNames",
])


def compile_regex(pattern: Any, keyword: str, location: Location) -> "re.Pattern[str]":
    if not isinstance(pattern, str):
        raise CompileError("pattern must be a string", keyword, location.fragment)
    try:
        return re.compile(pattern)
    except re.error as e:
        raise CompileError(f"invalid regular expression {pattern!r}: {e}", keyword, location.fragment)


class SchemaCompiler:
    """Compiles one root schema; owns the reference cache for that compilation."""

    def __init__(self, index: DocumentIndex, config: Optional[SchemaConfig] = None):
        self.index = index
        self.config = config or get_schema_config()
        self.arena = nodes.NodeArena()
        self._cache: Dict[Tuple[str, str], int] = {}
        self._depth = 0
        # descending keywords on the current compile path
        self._descent = 0
        # (slot, descent) of each $ref target being compiled, innermost last
        self._ref_stack: List[Tuple[int, int]] = []
        # slot -> {slot reached without descending: ($ref, location)}
        self._in_place: Dict[int, Dict[int, Tuple[str, str]]] = {}

    def compile(self, schema: Any, location: Location) -> ValidatorNode:
        """Compile ``schema`` found at ``location``."""
        if schema is True:
            return nodes.AcceptAll()
        if schema is False:
            return nodes.RejectAll()
        if not isinstance(schema, dict):
            raise CompileError(
                f"schema must be an object or a boolean, not {type(schema).__name__}",
                location=location.fragment,
            )

        self._depth += 1
        try:
            if self._depth > self.config.max_depth:
                raise CompileError(
                    f"schema nesting exceeds the maximum depth of {self.config.max_depth}",
                    location=location.fragment,
                    error_code="MAX_DEPTH_EXCEEDED",
                )
            return self._compile_object(schema, location)
        finally:
            self._depth -= 1

    def _compile_object(self, schema: Dict[str, Any], location: Location) -> ValidatorNode:
        keywords = {"$ref"} if "$ref" in schema else schema.keys()
        disabled = self.config.disabled_keywords.intersection(keywords)
        if disabled:
            keyword = sorted(disabled)[0]
            raise CompileError(
                f"keyword '{keyword}' is not implemented",
                keyword,
                location.fragment,
                error_code="UNIMPLEMENTED_KEYWORD",
            )

        if "$ref" in schema:
            return self._compile_ref(schema["$ref"], location)

        unknown = schema.keys() - SUPPORTED_KEYWORDS - ANNOTATIONS
        if unknown:
            logger.debug("Ignoring unknown keywords %s at %s", sorted(unknown), location.fragment)

        location = Location(location.document, location.pointer, scope_of(location.base, schema))
        compiled: List[ValidatorNode] = []
        for family, handler in KEYWORD_TABLE:
            if not any(keyword in schema for keyword in family):
                continue
            logger.debug("Compiling %s at %s", "/".join(family), location.fragment)
            node = getattr(self, handler)(schema, location)
            if node is not None:
                compiled.append(node)

        if not compiled:
            return nodes.AcceptAll()
        if len(compiled) == 1:
            return compiled[0]
        return nodes.AllOf(compiled)

    def _subschema(self, schema: Dict[str, Any], location: Location, *tokens: Any) -> ValidatorNode:
        value = schema
        for token in tokens:
            value = value[token]
        if tokens[0] not in DESCENDING_KEYWORDS:
            return self.compile(value, location.child(*tokens))
        self._descent += 1
        try:
            return self.compile(value, location.child(*tokens))
        finally:
            self._descent -= 1

    # References ------------------------------------------------------------

    def _compile_ref(self, ref: Any, location: Location) -> ValidatorNode:
        if not isinstance(ref, str):
            raise CompileError("$ref must be a string", "$ref", location.fragment)

        target, schema = self.index.resolve(ref, location.base, location.fragment)
        key = (target.document, target.pointer)
        slot = self._cache.get(key)
        if slot is not None:
            self._note_in_place(slot, ref, location)
            node = self.arena.get(slot)
            if node is not None:
                return node
            logger.debug("Reference cycle through %s#%s", *key)
            return nodes.Ref(self.arena, slot, target=f"{target.document}{target.fragment}")

        slot = self.arena.reserve()
        self._cache[key] = slot
        self._note_in_place(slot, ref, location)
        self._ref_stack.append((slot, self._descent))
        try:
            node = self.compile(schema, target)
        finally:
            self._ref_stack.pop()
        self.arena.fill(slot, node)
        return node

    def _note_in_place(self, slot: int, ref: str, location: Location) -> None:
        """Record that the enclosing reference reaches ``slot`` on the same instance."""
        if not self._ref_stack:
            return
        parent, descent = self._ref_stack[-1]
        if descent == self._descent:
            self._in_place.setdefault(parent, {}).setdefault(slot, (ref, location.fragment))

    def check_reference_cycles(self) -> None:
        """Reject reference loops that never descend into the instance."""
        state: Dict[int, bool] = {}  # False while on the DFS path, True once finished
        for start in self._in_place:
            if start in state:
                continue
            state[start] = False
            stack = [(start, iter(self._in_place[start].items()))]
            while stack:
                slot, edges = stack[-1]
                for target, (ref, where) in edges:
                    if state.get(target) is False:
                        raise CompileError(
                            f"reference '{ref}' loops back to the same instance without descending into it",
                            "$ref",
                            where,
                            error_code="REFERENCE_CYCLE",
                        )
                    if target not in state:
                        state[target] = False
                        stack.append((target, iter(self._in_place.get(target, {}).items())))
                        break
                else:
                    state[slot] = True
                    stack.pop()

    # Generic ---------------------------------------------------------------

    def _compile_type(self, schema, location):
        value = schema["type"]
        names = [value] if isinstance(value, str) else value
        if not isinstance(names, list) or not names:
            raise CompileError("type must be a string or a non-empty array", "type", location.fragment)
        for name in names:
            if not isinstance(name, str) or name not in JSON_TYPES:
                raise CompileError(f"unknown type {name!r}", "type", location.fragment)
        if len(set(names)) != len(names):
            raise CompileError("type names must be unique", "type", location.fragment)
        return nodes.Type(tuple(names))

    def _compile_const(self, schema, location):
        return nodes.Const(schema["const"])

    def _compile_enum(self, schema, location):
        values = schema["enum"]
        if not isinstance(values, list):
            raise CompileError("enum must be an array", "enum", location.fragment)
        if not values:
            raise CompileError("enum must not be empty", "enum", location.fragment)
        return nodes.Enum([nodes.Const(value) for value in values])

    def _compile_format(self, schema, location):
        name = schema["format"]
        if not isinstance(name, str):
            raise CompileError("format must be a string", "format", location.fragment)
        if not self.config.assert_formats:
            return None
        check = get_format_check(name)
        if check is None:
            return None
        return nodes.Format(name, check)

    # Numbers ---------------------------------------------------------------

    def _number(self, schema, keyword, location):
        value = schema[keyword]
        if not is_number(value):
            raise CompileError(f"{keyword} must be a number", keyword, location.fragment)
        return value

    def _compile_minimum(self, schema, location):
        return nodes.Minimum(self._number(schema, "minimum", location))

    def _compile_maximum(self, schema, location):
        return nodes.Maximum(self._number(schema, "maximum", location))

    def _compile_exclusive_minimum(self, schema, location):
        return nodes.ExclusiveMinimum(self._number(schema, "exclusiveMinimum", location))

    def _compile_exclusive_maximum(self, schema, location):
        return nodes.ExclusiveMaximum(self._number(schema, "exclusiveMaximum", location))

    def _compile_multiple_of(self, schema, location):
        divisor = self._number(schema, "multipleOf", location)
        if divisor <= 0:
            raise CompileError("multipleOf must be greater than 0", "multipleOf", location.fragment)
        return nodes.MultipleOf(divisor)

    # Counts ----------------------------------------------------------------

    def _count(self, schema, keyword, location) -> int:
        value = schema[keyword]
        if not is_integral(value) or value < 0:
            raise CompileError(
                f"{keyword} must be a non-negative integer", keyword, location.fragment
            )
        return int(value)

    def _compile_min_length(self, schema, location):
        return nodes.MinLength(self._count(schema, "minLength", location))

    def _compile_max_length(self, schema, location):
        return nodes.MaxLength(self._count(schema, "maxLength", location))

    def _compile_min_items(self, schema, location):
        return nodes.MinItems(self._count(schema, "minItems", location))

    def _compile_max_items(self, schema, location):
        return nodes.MaxItems(self._count(schema, "maxItems", location))

    def _compile_min_properties(self, schema, location):
        return nodes.MinProperties(self._count(schema, "minProperties", location))

    def _compile_max_properties(self, schema, location):
        return nodes.MaxProperties(self._count(schema, "maxProperties", location))

    # Strings ---------------------------------------------------------------

    def _compile_pattern(self, schema, location):
        return nodes.Pattern(compile_regex(schema["pattern"], "pattern", location))

    # Arrays ----------------------------------------------------------------

    def _compile_unique_items(self, schema, location):
        value = schema["uniqueItems"]
        if not isinstance(value, bool):
            raise CompileError("uniqueItems must be a boolean", "uniqueItems", location.fragment)
        return nodes.UniqueItems() if value else None

    def _compile_items(self, schema, location):
        if "items" not in schema:
            # additionalItems only applies after an array-form items
            return None
        items = schema["items"]
        if isinstance(items, list):
            prefix = [self._subschema(schema, location, "items", i) for i in range(len(items))]
            additional = nodes.ACCEPT_ALL
            if "additionalItems" in schema:
                additional = self._subschema(schema, location, "additionalItems")
            return nodes.Items(prefix=prefix, additional=additional)
        return nodes.Items(every=self._subschema(schema, location, "items"))

    def _compile_contains(self, schema, location):
        return nodes.Contains(self._subschema(schema, location, "contains"))

    # Objects ---------------------------------------------------------------

    def _compile_required(self, schema, location):
        names = schema["required"]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise CompileError("required must be an array of strings", "required", location.fragment)
        if len(set(names)) != len(names):
            raise CompileError("required names must be unique", "required", location.fragment)
        if not names:
            return None
        return nodes.Required(tuple(names))

    def _schema_map(self, schema, keyword, location) -> Mapping[str, Any]:
        value = schema.get(keyword, {})
        if not isinstance(value, dict):
            raise CompileError(f"{keyword} must be an object", keyword, location.fragment)
        return value

    def _compile_properties(self, schema, location):
        named = {
            name: self._subschema(schema, location, "properties", name)
            for name in self._schema_map(schema, "properties", location)
        }
        patterns = [
            (
                compile_regex(pattern, "patternProperties", location),
                self._subschema(schema, location, "patternProperties", pattern),
            )
            for pattern in self._schema_map(schema, "patternProperties", location)
        ]
        additional = nodes.ACCEPT_ALL
        if "additionalProperties" in schema:
            additional = self._subschema(schema, location, "additionalProperties")
        return nodes.Properties(named=named, patterns=patterns, additional=additional)

    def _compile_property_names(self, schema, location):
        return nodes.PropertyNames(self._subschema(schema, location, "propertyNames"))

    def _compile_dependencies(self, schema, location):
        entries = {}
        for name, dependency in self._schema_map(schema, "dependencies", location).items():
            if isinstance(dependency, list):
                if not all(isinstance(n, str) for n in dependency):
                    raise CompileError(
                        f"dependency list for '{name}' must contain only strings",
                        "dependencies",
                        location.fragment,
                    )
                entries[name] = tuple(dependency)
            else:
                entries[name] = self._subschema(schema, location, "dependencies", name)
        return nodes.Dependencies(entries)

    # Combinators -----------------------------------------------------------

    def _schema_list(self, schema, keyword, location) -> List[ValidatorNode]:
        value = schema[keyword]
        if not isinstance(value, list) or not value:
            raise CompileError(f"{keyword} must be a non-empty array", keyword, location.fragment)
        return [self._subschema(schema, location, keyword, i) for i in range(len(value))]

    def _compile_all_of(self, schema, location):
        return nodes.AllOf(self._schema_list(schema, "allOf", location))

    def _compile_any_of(self, schema, location):
        return nodes.AnyOf(self._schema_list(schema, "anyOf", location))

    def _compile_one_of(self, schema, location):
        return nodes.OneOf(self._schema_list(schema, "oneOf", location))

    def _compile_not(self, schema, location):
        return nodes.Not(self._subschema(schema, location, "not"))

    def _compile_conditional(self, schema, location):
        if "if" not in schema:
            # then/else without if are ignored
            return None
        node = nodes.IfThenElse(self._subschema(schema, location, "if"))
        if "then" in schema:
            node.then = self._subschema(schema, location, "then")
        if "else" in schema:
            node.otherwise = self._subschema(schema, location, "else")
        return node


def generate_validator(
    schema: Any,
    *,
    remotes: Optional[Mapping[str, Any]] = None,
    base_uri: str = "",
    config: Optional[SchemaConfig] = None,
) -> ValidatorNode:
    """
    Compile a draft-07 schema into a validator.

    Args:
        schema: The parsed schema document (an object or a boolean)
        remotes: Already-loaded documents that ``$ref`` may point into,
            keyed by their URI
        base_uri: URI of the schema document itself
        config: Compiler settings; defaults to the global configuration

    Raises:
        CompileError: If the schema is malformed, uses a disabled keyword,
            is nested too deeply or contains an unresolvable reference or a
            reference loop that never descends into the instance
    """
    try:
        index, root = build_index(schema, base_uri, remotes)
        compiler = SchemaCompiler(index, config)
        node = compiler.compile(schema, root)
    except RecursionError:
        raise CompileError(
            "schema is nested too deeply to compile",
            error_code="MAX_DEPTH_EXCEEDED",
        ) from None
    compiler.check_reference_cycles()
    logger.debug("Compiled schema with %d reference slots", len(compiler.arena))
    return node
