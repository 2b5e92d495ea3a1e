"""
Composable runtime validators for untyped JSON input.

Usage:
  schema = ObjectSchema({
      "name": StringSchema().trim().min(1, "Name is required"),
      "budget": NumberSchema(coerce=True).min(0, "Must be >= 0").optional(),
      "lines": ArraySchema(ObjectSchema({"qty": NumberSchema()})).min(1, "At least one line"),
  })
  schema.parse(payload)        # raises SchemaError with every issue
  schema.safe_parse(payload)   # ParseSuccess | ParseFailure, never raises

Input is the JSON value model (None, bool, int, float, str, list, dict).
An absent object key is MISSING; an explicit null is None.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from app.core.issues import (
    MISSING,
    Issue,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    PathItem,
    SchemaError,
)

REQUIRED_MESSAGE = "Required value missing."


@dataclass(frozen=True)
class Refinement:
    check: Callable[[Any], bool]
    message: str
    path: tuple[PathItem, ...] = ()


@dataclass(frozen=True)
class Bound:
    value: float
    message: str


class Schema:
    """
    Base node. Subclasses implement _check(value, path) for a present,
    non-null value and return the parsed value or raise SchemaError.
    """

    def __init__(self):
        self.allow_null = False
        self.allow_missing = False
        self.refinements: list[Refinement] = []

    def optional(self):
        self.allow_missing = True
        return self

    def nullable(self):
        self.allow_null = True
        return self

    def refine(self, check: Callable[[Any], bool], message: str, path: Iterable[PathItem] = ()):
        self.refinements.append(Refinement(check=check, message=message, path=tuple(path)))
        return self

    def parse(self, value: Any, path: Iterable[PathItem] = ()) -> Any:
        path = tuple(path)
        value = self._prepare(value)

        if value is MISSING and self.allow_missing:
            return MISSING
        if value is None and self.allow_null:
            return None
        if value is MISSING or value is None:
            raise SchemaError([Issue(path, REQUIRED_MESSAGE)])

        parsed = self._check(value, path)
        self._check_refinements(parsed, path)
        return parsed

    def safe_parse(self, value: Any) -> ParseResult:
        try:
            return ParseSuccess(self.parse(value))
        except SchemaError as e:
            return ParseFailure(e)

    def _prepare(self, value: Any) -> Any:
        return value

    def _check(self, value: Any, path: tuple[PathItem, ...]) -> Any:
        raise NotImplementedError

    def _check_refinements(self, value: Any, path: tuple[PathItem, ...]) -> None:
        issues = [
            Issue(path + r.path, r.message)
            for r in self.refinements
            if not r.check(value)
        ]
        if issues:
            raise SchemaError(issues)


class StringSchema(Schema):
    def __init__(self):
        super().__init__()
        self.should_trim = False
        self.min_length: Bound | None = None

    def trim(self):
        self.should_trim = True
        return self

    def min(self, length: int, message: str):
        self.min_length = Bound(length, message)
        return self

    def _check(self, value, path):
        if not isinstance(value, str):
            raise SchemaError([Issue(path, "Must be a string.")])
        if self.should_trim:
            value = value.strip()
        if self.min_length and len(value) < self.min_length.value:
            raise SchemaError([Issue(path, self.min_length.message)])
        return value


class NumberSchema(Schema):
    def __init__(self, coerce: bool = False):
        super().__init__()
        self.coerce = coerce
        self.lower: Bound | None = None
        self.upper: Bound | None = None

    def min(self, value: float, message: str):
        self.lower = Bound(value, message)
        return self

    def max(self, value: float, message: str):
        self.upper = Bound(value, message)
        return self

    def _prepare(self, value):
        if not self.coerce or not isinstance(value, str):
            return value
        raw = value.strip()
        if not raw:
            # blank numeric input reads as zero
            return 0
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            return math.nan

    def _check(self, value, path):
        # bool is an int subclass but never a number here
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            raise SchemaError([Issue(path, "Must be a number.")])
        if self.lower and value < self.lower.value:
            raise SchemaError([Issue(path, self.lower.message)])
        if self.upper and value > self.upper.value:
            raise SchemaError([Issue(path, self.upper.message)])
        return value


class BooleanSchema(Schema):
    def _check(self, value, path):
        if not isinstance(value, bool):
            raise SchemaError([Issue(path, "Must be a boolean.")])
        return value


class EnumSchema(Schema):
    def __init__(self, values: Iterable[str], message: str | None = None):
        super().__init__()
        self.values = tuple(values)
        if not self.values:
            raise ValueError("EnumSchema needs at least one value")
        self.message = message or "Invalid value."

    def _check(self, value, path):
        if not isinstance(value, str) or value not in self.values:
            raise SchemaError([Issue(path, self.message)])
        return value


class ObjectSchema(Schema):
    def __init__(self, fields: dict[str, Schema]):
        super().__init__()
        self.fields = dict(fields)

    def keys(self) -> list[str]:
        return list(self.fields)

    def _check(self, value, path):
        if not isinstance(value, dict):
            raise SchemaError([Issue(path, "Must be an object.")])

        out: dict[str, Any] = {}
        issues: list[Issue] = []

        # keys not declared in self.fields are dropped
        for name, node in self.fields.items():
            try:
                parsed = node.parse(value.get(name, MISSING), path + (name,))
            except SchemaError as e:
                issues.extend(e.issues)
                continue
            if parsed is not MISSING:
                out[name] = parsed

        if issues:
            raise SchemaError(issues)
        return out


class ArraySchema(Schema):
    def __init__(self, item: Schema):
        super().__init__()
        self.item = item
        self.min_length: Bound | None = None

    def min(self, length: int, message: str):
        self.min_length = Bound(length, message)
        return self

    def _check(self, value, path):
        if not isinstance(value, list):
            raise SchemaError([Issue(path, "Must be an array.")])

        out: list[Any] = []
        issues: list[Issue] = []

        for index, element in enumerate(value):
            try:
                out.append(self.item.parse(element, path + (index,)))
            except SchemaError as e:
                issues.extend(e.issues)

        if self.min_length and len(out) < self.min_length.value:
            issues.append(Issue(path, self.min_length.message))

        if issues:
            raise SchemaError(issues)
        return out
