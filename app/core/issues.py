from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PathItem = str | int


class _Missing:
    """Marker for an absent object key (as opposed to an explicit JSON null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Issue:
    path: tuple[PathItem, ...]
    message: str

    @property
    def path_string(self) -> str:
        return ".".join(str(p) for p in self.path)


class SchemaError(Exception):
    """Aggregated validation issues raised by a schema node."""

    def __init__(self, issues: list[Issue]):
        if not issues:
            raise ValueError("SchemaError requires at least one issue")
        super().__init__("Validation error")
        self.issues = list(issues)

    def flatten(self) -> dict[str, Any]:
        """
        Group messages by dotted path, keeping issue order:
          {"fieldErrors": {"name": ["..."], "items.2.qty": ["..."]}, "formErrors": []}
        Issues at the root path land under the "formErrors" key.
        """
        field_errors: dict[str, list[str]] = {}
        for issue in self.issues:
            key = issue.path_string or "formErrors"
            field_errors.setdefault(key, []).append(issue.message)
        return {"fieldErrors": field_errors, "formErrors": []}


@dataclass(frozen=True)
class ParseSuccess:
    data: Any
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ParseFailure:
    error: SchemaError
    success: bool = field(default=False, init=False)

    @property
    def issues(self) -> list[Issue]:
        return self.error.issues


ParseResult = ParseSuccess | ParseFailure
