import math

import pytest

from app.core.combinators import (
    REQUIRED_MESSAGE,
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    StringSchema,
)
from app.core.issues import MISSING, Issue, SchemaError


def person_schema():
    return ObjectSchema({
        "name": StringSchema().trim().min(1, "Name is required"),
        "age": NumberSchema().min(0, "Age must be >= 0"),
        "active": BooleanSchema().optional(),
    })


def test_well_formed_input_parses_to_declared_shape():
    out = person_schema().parse({"name": "  Ada ", "age": 36, "active": True})
    assert out == {"name": "Ada", "age": 36, "active": True}


def test_missing_required_field_yields_exactly_one_issue_at_its_path():
    result = person_schema().safe_parse({"name": "Ada"})
    assert result.success is False
    assert result.issues == [Issue(("age",), REQUIRED_MESSAGE)]


def test_object_collects_every_invalid_field():
    result = person_schema().safe_parse({"name": "   ", "age": "old", "active": "yes"})
    assert not result.success
    assert [i.path for i in result.issues] == [("name",), ("age",), ("active",)]
    assert result.issues[0].message == "Name is required"


def test_two_invalid_fields_give_two_issues():
    result = person_schema().safe_parse({"name": 42, "age": -1})
    assert len(result.issues) == 2
    assert {i.path for i in result.issues} == {("name",), ("age",)}


def test_nested_path_for_array_of_objects():
    schema = ArraySchema(ObjectSchema({"qty": NumberSchema().min(1, "At least one")}))
    result = schema.safe_parse([{"qty": 1}, {"qty": 2}, {"qty": 0}])
    assert result.issues == [Issue((2, "qty"), "At least one")]


def test_array_aggregates_element_issues_and_min_length():
    schema = ArraySchema(StringSchema()).min(3, "Need three")
    result = schema.safe_parse(["a", 1])
    assert result.issues == [Issue((1,), "Must be a string."), Issue((), "Need three")]


def test_array_rejects_non_list():
    assert ArraySchema(StringSchema()).safe_parse({"0": "a"}).issues == [Issue((), "Must be an array.")]


def test_object_rejects_arrays_and_scalars():
    schema = ObjectSchema({})
    assert schema.safe_parse([]).issues == [Issue((), "Must be an object.")]
    assert schema.safe_parse("x").issues == [Issue((), "Must be an object.")]


def test_unknown_fields_are_dropped():
    out = ObjectSchema({"a": StringSchema()}).parse({"a": "x", "b": "ignored"})
    assert out == {"a": "x"}


def test_nullability_policy():
    assert StringSchema().optional().parse(MISSING) is MISSING
    assert StringSchema().nullable().parse(None) is None

    with pytest.raises(SchemaError) as e:
        StringSchema().optional().parse(None)
    assert e.value.issues == [Issue((), REQUIRED_MESSAGE)]

    with pytest.raises(SchemaError):
        StringSchema().nullable().parse(MISSING)


def test_optional_absent_field_is_omitted_and_null_is_kept():
    schema = ObjectSchema({
        "a": StringSchema().optional(),
        "b": StringSchema().nullable(),
    })
    assert schema.parse({"b": None}) == {"b": None}


def test_string_min_length_uses_custom_message():
    result = StringSchema().trim().min(2, "Too short").safe_parse(" a ")
    assert result.issues == [Issue((), "Too short")]


def test_number_coercion():
    schema = NumberSchema(coerce=True)
    assert schema.parse("42") == 42
    assert schema.parse(" 2.5 ") == 2.5
    assert schema.safe_parse("abc").issues == [Issue((), "Must be a number.")]


def test_blank_string_coerces_to_zero():
    assert NumberSchema(coerce=True).parse("") == 0
    assert NumberSchema(coerce=True).optional().parse("  ") == 0
    assert NumberSchema(coerce=True).min(1, "At least one").safe_parse(" ").issues == [
        Issue((), "At least one")
    ]
    # absent key is still absent
    assert NumberSchema(coerce=True).optional().parse(MISSING) is MISSING


def test_number_rejects_nan_bool_and_uncoerced_strings():
    schema = NumberSchema()
    assert not schema.safe_parse(math.nan).success
    assert not schema.safe_parse(True).success
    assert not schema.safe_parse("1").success


def test_number_range():
    schema = NumberSchema().min(0, "Too small").max(10, "Too big")
    assert schema.safe_parse(-1).issues[0].message == "Too small"
    assert schema.safe_parse(11).issues[0].message == "Too big"
    assert schema.parse(10) == 10


def test_boolean_is_strict():
    assert BooleanSchema().parse(False) is False
    assert BooleanSchema().safe_parse(0).issues == [Issue((), "Must be a boolean.")]
    assert not BooleanSchema().safe_parse("true").success


def test_enum_membership_and_custom_message():
    schema = EnumSchema(["A", "B"], "Pick A or B")
    assert schema.parse("A") == "A"
    assert schema.safe_parse("C").issues == [Issue((), "Pick A or B")]
    assert EnumSchema(["A"]).safe_parse(1).issues == [Issue((), "Invalid value.")]


def test_enum_requires_values():
    with pytest.raises(ValueError):
        EnumSchema([])


def test_refinement_runs_after_structural_check():
    calls = []

    def check(value):
        calls.append(value)
        return value.startswith("A")

    schema = StringSchema().refine(check, "Must start with A")
    assert schema.safe_parse(5).issues == [Issue((), "Must be a string.")]
    assert calls == []

    assert schema.safe_parse("Bob").issues == [Issue((), "Must start with A")]
    assert calls == ["Bob"]


def test_refinement_issue_lands_at_node_path():
    schema = ObjectSchema({
        "code": StringSchema().refine(lambda v: v.isupper(), "Upper case only"),
    })
    assert schema.safe_parse({"code": "abc"}).issues == [Issue(("code",), "Upper case only")]


def test_object_refinement_with_relative_path_skipped_when_children_fail():
    schema = ObjectSchema({
        "start": NumberSchema(),
        "end": NumberSchema(),
    }).refine(lambda d: d["end"] >= d["start"], "End before start", path=["end"])

    assert schema.safe_parse({"start": 5, "end": 1}).issues == [Issue(("end",), "End before start")]
    # structural failure: refinement not evaluated
    assert schema.safe_parse({"start": 5}).issues == [Issue(("end",), REQUIRED_MESSAGE)]


def test_each_failing_refinement_contributes_one_issue():
    schema = NumberSchema().refine(lambda v: v % 2 == 0, "Even").refine(lambda v: v > 10, "Big")
    assert [i.message for i in schema.safe_parse(3).issues] == ["Even", "Big"]


def test_parse_raises_and_safe_parse_does_not():
    schema = person_schema()
    with pytest.raises(SchemaError) as e:
        schema.parse({})
    assert len(e.value.issues) == 2
    assert schema.safe_parse({}).success is False


def test_parse_with_base_path():
    with pytest.raises(SchemaError) as e:
        StringSchema().parse(1, path=["items", 0, "label"])
    assert e.value.issues[0].path == ("items", 0, "label")


def test_flatten_groups_by_dotted_path():
    schema = ObjectSchema({
        "name": StringSchema(),
        "lines": ArraySchema(ObjectSchema({"qty": NumberSchema()})),
    })
    result = schema.safe_parse({"lines": [{"qty": "x"}]})
    assert result.error.flatten() == {
        "fieldErrors": {
            "name": [REQUIRED_MESSAGE],
            "lines.0.qty": ["Must be a number."],
        },
        "formErrors": [],
    }


def test_flatten_root_issue():
    result = ObjectSchema({}).safe_parse(None)
    assert result.error.flatten()["fieldErrors"] == {"formErrors": [REQUIRED_MESSAGE]}
