from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from fastapi import Request
from sqlalchemy import Column, Table

from app.core.combinators import ObjectSchema
from app.core.errors import UnknownEntityError
from app.core.naming import to_column_key

logger = logging.getLogger(__name__)

ENGINE_COLUMNS = ("id", "version")


@dataclass(frozen=True)
class EntityDescriptor:
    external_name: str
    table: Table
    schema: ObjectSchema
    # empty -> surrogate id + version; otherwise the join row's identifying columns
    conflict_keys: tuple[str, ...] = ()
    # None -> any authenticated principal may read
    read_roles: frozenset[str] | None = None

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def has_surrogate_id(self) -> bool:
        return not self.conflict_keys

    def column(self, name: str) -> Column:
        """Look up a column by stored name; KeyError if the table has none."""
        return self.table.c[name]

    def key_columns(self) -> list[Column]:
        if self.has_surrogate_id:
            return [self.table.c.id]
        return [self.table.c[k] for k in self.conflict_keys]

    def field_columns(self) -> dict[str, Column]:
        """Schema field name -> stored column, in schema order."""
        return {name: self.table.c[to_column_key(name)] for name in self.schema.keys()}


def _check_descriptor(d: EntityDescriptor) -> None:
    name = d.external_name
    if not isinstance(d.schema, ObjectSchema):
        raise ValueError(f"{name}: entity schema must be an ObjectSchema")

    for field in d.schema.keys():
        column = to_column_key(field)
        if column in ENGINE_COLUMNS:
            raise ValueError(f"{name}: schema must not declare engine-managed field {field!r}")
        if column not in d.table.c:
            raise ValueError(f"{name}: field {field!r} has no column {column!r} in {d.table.name}")

    if d.has_surrogate_id:
        missing = [c for c in ENGINE_COLUMNS if c not in d.table.c]
        if missing:
            raise ValueError(f"{name}: table {d.table.name} lacks engine columns {missing}")
    else:
        missing = [c for c in d.conflict_keys if c not in d.table.c]
        if missing:
            raise ValueError(f"{name}: conflict keys {missing} not in table {d.table.name}")


class EntityRegistry:
    """
    Read-only map of external entity name -> EntityDescriptor.

    Built once at startup. Table and column names that end up in SQL are
    taken from the descriptors held here, never from request input.
    """

    def __init__(self, descriptors: Iterable[EntityDescriptor]):
        entries: dict[str, EntityDescriptor] = {}
        for d in descriptors:
            if d.external_name in entries:
                raise ValueError(f"Duplicate entity name: {d.external_name}")
            _check_descriptor(d)
            entries[d.external_name] = d
        self._entries: Mapping[str, EntityDescriptor] = MappingProxyType(entries)
        logger.info("Entity registry ready with %d entities", len(entries))

    def get(self, name: str) -> EntityDescriptor | None:
        return self._entries.get(name)

    def resolve(self, name: str) -> EntityDescriptor:
        descriptor = self._entries.get(name)
        if descriptor is None:
            raise UnknownEntityError(f"Unknown entity: {name}")
        return descriptor

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def get_registry(request: Request) -> EntityRegistry:
    """Dependency: the registry built in create_app()."""
    return request.app.state.registry
