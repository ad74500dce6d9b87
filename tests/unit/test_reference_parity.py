"""
Cross-check verdicts against the jsonschema package's Draft7Validator.
"""

import pytest

jsonschema = pytest.importorskip("jsonschema")

from schemagen import generate_validator, validate
from schemagen.config.settings import SchemaConfig


CASES = [
    (
        {"type": "object", "properties": {"a": {"type": "integer"}}, "required": ["a"]},
        [{"a": 1}, {"a": 1.0}, {"a": "1"}, {}, [], {"a": True}],
    ),
    (
        {"items": [{"type": "string"}], "additionalItems": {"type": "number"}, "uniqueItems": True},
        [["a"], ["a", 1, 2], ["a", 1, 1.0], [1], [], "x"],
    ),
    (
        {"oneOf": [{"multipleOf": 3}, {"multipleOf": 5}], "not": {"const": 0}},
        [3, 5, 15, 0, 7, 4.5, "s"],
    ),
    (
        {"patternProperties": {"^x-": {"type": "string"}}, "additionalProperties": {"type": "boolean"}, "maxProperties": 2},
        [{"x-a": "s"}, {"x-a": 1}, {"b": True}, {"b": 1}, {"a": True, "b": True, "c": True}],
    ),
    (
        {"if": {"properties": {"kind": {"const": "circle"}}}, "then": {"required": ["radius"]}, "else": {"required": ["side"]}},
        [{"kind": "circle", "radius": 1}, {"kind": "circle"}, {"kind": "square", "side": 2}, {"kind": "square"}],
    ),
    (
        {"contains": {"minimum": 10}, "minItems": 2, "items": {"type": "number"}},
        [[1, 10], [10], [1, 2], [1, "10"]],
    ),
    (
        {"propertyNames": {"pattern": "^[a-z]+$"}, "dependencies": {"a": ["b"], "c": {"properties": {"d": {"enum": [1, 2]}}}}},
        [{"a": 1, "b": 2}, {"a": 1}, {"c": 1, "d": 2}, {"c": 1, "d": 3}, {"A": 1}],
    ),
    (
        {"definitions": {"list": {"type": ["null", "object"], "properties": {"next": {"$ref": "#/definitions/list"}}}}, "$ref": "#/definitions/list"},
        [None, {"next": None}, {"next": {"next": {}}}, {"next": 1}, {"next": {"next": "x"}}],
    ),
]


@pytest.mark.parametrize("schema, instances", CASES)
def test_verdicts_match_reference_validator(schema, instances):
    node = generate_validator(schema, config=SchemaConfig())
    reference = jsonschema.Draft7Validator(schema)
    for instance in instances:
        assert validate(node, instance) == reference.is_valid(instance), instance
