"""
Unit tests for keyword compilation and evaluation.
"""

import pytest

from schemagen import CompileError, generate_validator, validate
from schemagen.config.settings import SchemaConfig
from schemagen.core import nodes


class TestBooleanAndEmptySchemas:
    """Test trivially accepting and rejecting schemas."""

    @pytest.mark.parametrize("instance", [None, 0, "x", [], {}, False])
    def test_true_accepts_everything(self, check, instance):
        assert check(True)(instance)

    @pytest.mark.parametrize("instance", [None, 0, "x", [], {}, True])
    def test_false_rejects_everything(self, check, instance):
        assert not check(False)(instance)

    def test_empty_object_accepts_everything(self, check):
        is_valid = check({})
        assert is_valid({"const": 1})
        assert is_valid(None)

    def test_annotations_and_unknown_keywords_accept(self, check):
        is_valid = check({"title": "t", "description": "d", "x-vendor": 1, "default": 3})
        assert is_valid("anything")

    def test_non_schema_value_is_compile_error(self):
        with pytest.raises(CompileError):
            generate_validator(42)
        with pytest.raises(CompileError):
            generate_validator({"not": "string"})


class TestConstAndEnum:
    """Test const and enum."""

    @pytest.mark.parametrize(
        "value", [None, 0, 2.5, "s", [1, {"a": None}], {"a": [1, 2], "b": False}]
    )
    def test_const_accepts_itself(self, check, value):
        assert check({"const": value})(value)

    def test_const_rejects_different_values(self, check):
        is_valid = check({"const": {"a": [1, 2]}})
        assert not is_valid({"a": [2, 1]})
        assert not is_valid({"a": [1, 2], "b": 1})
        assert is_valid({"a": [1.0, 2]})

    def test_const_numbers_and_booleans(self, check):
        assert check({"const": 1})(1.0)
        assert not check({"const": 1})(True)
        assert not check({"const": False})(0)

    def test_enum(self, check):
        is_valid = check({"enum": [1, "two", [3]]})
        assert is_valid(1.0)
        assert is_valid("two")
        assert is_valid([3])
        assert not is_valid(2)
        assert not is_valid(True)

    def test_empty_enum_is_compile_error(self):
        with pytest.raises(CompileError) as exc:
            generate_validator({"enum": []})
        assert exc.value.keyword == "enum"

    def test_enum_must_be_array(self):
        with pytest.raises(CompileError):
            generate_validator({"enum": "abc"})


class TestType:
    """Test the type keyword."""

    def test_integer_accepts_integral_floats(self, check):
        is_valid = check({"type": "integer"})
        assert is_valid(1)
        assert is_valid(1.0)
        assert not is_valid(1.5)
        assert not is_valid(True)

    def test_number_accepts_integers(self, check):
        is_valid = check({"type": "number"})
        assert is_valid(1)
        assert is_valid(1.5)
        assert not is_valid("1")

    def test_type_list(self, check):
        is_valid = check({"type": ["string", "null"]})
        assert is_valid(None)
        assert is_valid("")
        assert not is_valid(0)

    def test_each_type(self, check):
        assert check({"type": "object"})({})
        assert check({"type": "array"})([])
        assert check({"type": "boolean"})(False)
        assert check({"type": "null"})(None)
        assert not check({"type": "null"})(False)

    @pytest.mark.parametrize("value", ["float", [], ["string", "string"], 3])
    def test_invalid_type_values(self, value):
        with pytest.raises(CompileError) as exc:
            generate_validator({"type": value})
        assert exc.value.keyword == "type"


class TestNumericKeywords:
    """Test numeric bounds and multipleOf."""

    def test_minimum(self, check):
        is_valid = check({"minimum": 1.0})
        assert is_valid(1)
        assert is_valid(1.5)
        assert not is_valid(0.9999999)

    def test_minimum_ignores_other_types(self, check):
        assert check({"minimum": 0})("hello")

    def test_maximum(self, check):
        is_valid = check({"maximum": 3})
        assert is_valid(3.0)
        assert not is_valid(3.5)

    def test_exclusive_bounds(self, check):
        is_valid = check({"exclusiveMinimum": 1, "exclusiveMaximum": 3})
        assert is_valid(2)
        assert not is_valid(1)
        assert not is_valid(3.0)

    def test_large_integer_bounds(self, check):
        is_valid = check({"maximum": 2 ** 63})
        assert is_valid(2 ** 63)
        assert not is_valid(2 ** 63 + 1)

    def test_multiple_of(self, check):
        is_valid = check({"multipleOf": 0.0001})
        assert is_valid(0.0075)
        assert not is_valid(0.00751)
        assert check({"multipleOf": 2})("ten")

    def test_multiple_of_must_be_positive(self):
        with pytest.raises(CompileError):
            generate_validator({"multipleOf": 0})

    def test_bounds_must_be_numbers(self):
        with pytest.raises(CompileError) as exc:
            generate_validator({"minimum": "0"})
        assert exc.value.keyword == "minimum"
        with pytest.raises(CompileError):
            generate_validator({"maximum": True})


class TestStringKeywords:
    """Test string length and pattern keywords."""

    def test_length_counts_code_points(self, check):
        is_valid = check({"maxLength": 2, "minLength": 2})
        assert is_valid("\U0001F4A9\U0001F4A9")
        assert not is_valid("abc")
        assert not is_valid("a")
        assert is_valid(100)

    def test_pattern_is_unanchored(self, check):
        is_valid = check({"pattern": "a+"})
        assert is_valid("xxaxx")
        assert not is_valid("xyz")
        assert is_valid(["no", "strings"])

    def test_invalid_pattern(self):
        with pytest.raises(CompileError) as exc:
            generate_validator({"pattern": "(unclosed"})
        assert exc.value.keyword == "pattern"
        with pytest.raises(CompileError):
            generate_validator({"pattern": 5})

    @pytest.mark.parametrize("value", [-1, 1.5, "2"])
    def test_invalid_lengths(self, value):
        with pytest.raises(CompileError):
            generate_validator({"minLength": value})

    def test_integral_float_length_allowed(self, check):
        assert check({"maxLength": 2.0})("ab")


class TestFormat:
    """Test format as annotation and as assertion."""

    def test_format_is_annotation_by_default(self, check):
        assert check({"format": "ipv4"})("not an address")

    def test_format_assertion(self, check):
        is_valid = check({"format": "ipv4"}, config=SchemaConfig(assert_formats=True))
        assert is_valid("192.168.0.1")
        assert not is_valid("256.1.1.1")
        assert is_valid(12)

    def test_unknown_format_passes(self, check):
        assert check({"format": "custom"}, config=SchemaConfig(assert_formats=True))("x")

    def test_leap_second_only_at_end_of_utc_day(self, check):
        is_valid = check({"format": "time"}, config=SchemaConfig(assert_formats=True))
        assert is_valid("23:59:60Z")
        assert is_valid("15:59:60-08:00")
        assert is_valid("01:29:60+01:30")
        assert not is_valid("22:59:60Z")
        assert not is_valid("23:59:60+01:00")
        assert not is_valid("23:59:60-00:30")

        is_valid = check({"format": "date-time"}, config=SchemaConfig(assert_formats=True))
        assert is_valid("1998-12-31T23:59:60Z")
        assert not is_valid("1998-12-31T23:58:60Z")

    def test_email_local_part_dots(self, check):
        is_valid = check({"format": "email"}, config=SchemaConfig(assert_formats=True))
        assert is_valid("te.s.t@example.com")
        assert not is_valid(".test@example.com")
        assert not is_valid("test.@example.com")
        assert not is_valid("te..st@example.com")

    def test_ipv6_zone_id_rejected(self, check):
        is_valid = check({"format": "ipv6"}, config=SchemaConfig(assert_formats=True))
        assert is_valid("fe80::a")
        assert not is_valid("fe80::a%eth1")


class TestCombinators:
    """Test allOf, anyOf, oneOf, not and if/then/else."""

    def test_all_of(self, check):
        is_valid = check({"allOf": [{"minimum": 0}, {"maximum": 10}]})
        assert is_valid(5)
        assert not is_valid(-1)
        assert not is_valid(11)

    def test_any_of(self, check):
        is_valid = check({"anyOf": [{"type": "string"}, {"minimum": 2}]})
        assert is_valid("x")
        assert is_valid(3)
        assert not is_valid(1)

    def test_one_of(self, check):
        is_valid = check({"oneOf": [{"type": "string"}, {"type": "number"}]})
        assert is_valid("x")
        assert is_valid(5)
        assert not is_valid(True)

    def test_one_of_rejects_multiple_matches(self, check):
        is_valid = check({"oneOf": [{"type": "integer"}, {"minimum": 2}]})
        assert is_valid(1)
        assert is_valid(2.5)
        assert not is_valid(3)

    def test_not(self, check):
        is_valid = check({"not": {"type": "integer"}})
        assert is_valid("x")
        assert not is_valid(1)

    def test_combinator_needs_non_empty_array(self):
        with pytest.raises(CompileError):
            generate_validator({"anyOf": []})
        with pytest.raises(CompileError):
            generate_validator({"allOf": {"type": "string"}})

    def test_if_then_else(self, check):
        is_valid = check({
            "if": {"exclusiveMaximum": 0},
            "then": {"minimum": -10},
            "else": {"multipleOf": 2},
        })
        assert is_valid(-1)
        assert not is_valid(-100)
        assert is_valid(4)
        assert not is_valid(3)

    def test_if_without_then_or_else_never_fails(self, check):
        is_valid = check({"if": False})
        assert is_valid(1)

    def test_then_without_if_is_ignored(self, check):
        assert check({"then": False, "else": False})(1)


class TestObjectKeywords:
    """Test object keywords."""

    def test_properties_apply_only_when_present(self, check):
        is_valid = check({"properties": {"a": {"type": "integer"}}})
        assert is_valid({})
        assert is_valid({"a": 1, "b": "x"})
        assert not is_valid({"a": "1"})
        assert is_valid([1, 2])

    def test_pattern_and_additional_properties(self, check):
        is_valid = check({
            "properties": {"foo": {}},
            "patternProperties": {"^v": {"type": "string"}, "e$": {"minLength": 3}},
            "additionalProperties": False,
        })
        assert is_valid({"foo": 1, "vaa": "xyz"})
        assert not is_valid({"foo": 1, "bar": 2})
        assert not is_valid({"vee": "x"})
        assert not is_valid({"v": 1})

    def test_additional_properties_alone(self, check):
        is_valid = check({"additionalProperties": {"type": "boolean"}})
        assert is_valid({"a": True})
        assert not is_valid({"a": 1})

    def test_required(self, check):
        is_valid = check({"required": ["a", "b"]})
        assert is_valid({"a": 1, "b": None})
        assert not is_valid({"a": 1})
        assert is_valid("not an object")

    def test_required_must_be_unique_strings(self):
        with pytest.raises(CompileError):
            generate_validator({"required": ["a", "a"]})
        with pytest.raises(CompileError):
            generate_validator({"required": [1]})

    def test_property_names(self, check):
        is_valid = check({"propertyNames": {"maxLength": 3}})
        assert is_valid({"abc": 1})
        assert not is_valid({"abcd": 1})

    def test_dependencies(self, check):
        is_valid = check({
            "dependencies": {
                "bar": ["foo"],
                "baz": {"required": ["qux"]},
            }
        })
        assert is_valid({"foo": 1})
        assert is_valid({"bar": 1, "foo": 2})
        assert not is_valid({"bar": 1})
        assert not is_valid({"baz": 1})
        assert is_valid({"baz": 1, "qux": 2})
        assert is_valid(["bar"])

    def test_property_counts(self, check):
        is_valid = check({"minProperties": 1, "maxProperties": 2})
        assert is_valid({"a": 1})
        assert not is_valid({})
        assert not is_valid({"a": 1, "b": 2, "c": 3})


class TestArrayKeywords:
    """Test array keywords."""

    def test_items_single_schema(self, check):
        is_valid = check({"items": {"type": "integer"}})
        assert is_valid([1, 2])
        assert not is_valid([1, "2"])
        assert is_valid({"0": "x"})

    def test_items_tuple_with_additional_items(self, check):
        is_valid = check({
            "items": [{"type": "integer"}, {"type": "string"}],
            "additionalItems": False,
        })
        assert is_valid([1, "a"])
        assert is_valid([1])
        assert not is_valid(["a", 1])
        assert not is_valid([1, "a", None])

    def test_additional_items_without_items_is_ignored(self, check):
        assert check({"additionalItems": False})([1, 2, 3])

    def test_contains(self, check):
        is_valid = check({"contains": {"const": 5}})
        assert is_valid([1, 5])
        assert not is_valid([1, 2])
        assert not is_valid([])
        assert is_valid("no array")

    def test_unique_items(self, check):
        is_valid = check({"uniqueItems": True})
        assert is_valid([1, True, "1"])
        assert not is_valid([1, 1.0])
        assert not is_valid([{"a": 1, "b": 2}, {"b": 2, "a": 1}])
        assert check({"uniqueItems": False})([1, 1])

    def test_item_counts(self, check):
        is_valid = check({"minItems": 1, "maxItems": 2})
        assert is_valid([1])
        assert not is_valid([])
        assert not is_valid([1, 2, 3])


class TestKeywordComposition:
    """Keywords in one schema object are conjunctive."""

    def test_several_keywords_build_all_of(self):
        node = generate_validator({"type": "integer", "minimum": 0, "maximum": 9})
        assert isinstance(node, nodes.AllOf)
        assert len(node.children) == 3
        assert validate(node, 5)
        assert not validate(node, 5.5)
        assert not validate(node, 10)

    def test_single_keyword_is_not_wrapped(self):
        assert isinstance(generate_validator({"minimum": 0}), nodes.Minimum)

    def test_type_and_properties(self, check):
        is_valid = check({"type": "object", "properties": {"n": {"minimum": 1}}, "required": ["n"]})
        assert is_valid({"n": 2})
        assert not is_valid({"n": 0})
        assert not is_valid({})
        assert not is_valid([])


class TestCompileErrors:
    """Test error reporting."""

    def test_error_reports_location(self):
        with pytest.raises(CompileError) as exc:
            generate_validator({"properties": {"a/b": {"items": {"enum": []}}}})
        assert exc.value.keyword == "enum"
        assert exc.value.location == "#/properties/a~1b/items"
        assert "enum" in str(exc.value)

    def test_disabled_keyword_is_unimplemented(self):
        config = SchemaConfig(disabled_keywords=frozenset({"contains"}))
        with pytest.raises(CompileError) as exc:
            generate_validator({"items": {"contains": {}}}, config=config)
        assert exc.value.error_code == "UNIMPLEMENTED_KEYWORD"
        assert exc.value.location == "#/items"

    def test_depth_limit(self):
        schema = {}
        for _ in range(20):
            schema = {"not": schema}
        with pytest.raises(CompileError) as exc:
            generate_validator(schema, config=SchemaConfig(max_depth=10))
        assert exc.value.error_code == "MAX_DEPTH_EXCEEDED"

    def test_properties_nested_to_default_depth(self, check):
        schema, instance = {"type": "integer"}, 1
        for _ in range(SchemaConfig().max_depth - 1):
            schema = {"properties": {"a": schema}}
            instance = {"a": instance}
        is_valid = check(schema)
        assert is_valid(instance)

        bad = "x"
        for _ in range(SchemaConfig().max_depth - 1):
            bad = {"a": bad}
        assert not is_valid(bad)

    def test_all_of_nested_to_default_depth(self, check):
        schema = {"type": "integer"}
        for _ in range(SchemaConfig().max_depth - 1):
            schema = {"allOf": [schema]}
        is_valid = check(schema)
        assert is_valid(1)
        assert not is_valid("x")

    @pytest.mark.parametrize("keyword, levels", [("not", 5000), ("allOf", 400)])
    def test_interpreter_recursion_limit_is_compile_error(self, keyword, levels):
        schema = {}
        for _ in range(levels):
            schema = {keyword: [schema]} if keyword == "allOf" else {keyword: schema}
        with pytest.raises(CompileError) as exc:
            generate_validator(schema, config=SchemaConfig(max_depth=10 ** 6))
        assert exc.value.error_code == "MAX_DEPTH_EXCEEDED"
