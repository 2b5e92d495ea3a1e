from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, Mapping

from sqlalchemy import Column, Date, delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.audit import log_event
from app.core.combinators import REQUIRED_MESSAGE
from app.core.errors import (
    ConflictError,
    EngineError,
    NotFoundError,
    StoreError,
    UnsupportedOperationError,
    ValidationError,
)
from app.core.issues import Issue
from app.core.naming import to_column_key, to_external, to_field_key
from app.core.notifications import Notifier, deliver
from app.core.optimistic_lock import apply_versioned_update, take_expected_version
from app.core.registry import EntityDescriptor, EntityRegistry
from app.models.user import User

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
_INSERT_OR_IGNORE = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _store_value(column: Column, value: Any) -> Any:
    # ISO strings were validated by the schema; Date columns want date objects
    if isinstance(value, str) and isinstance(column.type, Date):
        return date.fromisoformat(value)
    return value


def _filter_value(column: Column, raw: str) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw

    if python_type is bool:
        lowered = raw.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValueError(raw)
    if python_type is date:
        return date.fromisoformat(raw)
    if python_type in (int, float, Decimal):
        return python_type(raw)
    return raw


def _join_key(values: Mapping[str, Any]) -> str:
    return ";".join(f"{k}={v}" for k, v in values.items())


class EntityDispatcher:
    """
    Generic list/read/create/update/delete over the entities in a registry.

    One instance serves one request with that request's Session. Authorization
    happens before any method here is called.
    """

    def __init__(
        self,
        db: Session,
        registry: EntityRegistry,
        *,
        actor: User | None = None,
        notifier: Notifier | None = None,
    ):
        self.db = db
        self.registry = registry
        self.actor = actor
        self.notifier = notifier

    def resolve(self, name: str) -> EntityDescriptor:
        return self.registry.resolve(name)

    # ---------- store plumbing ----------

    @contextmanager
    def _store_call(self, descriptor: EntityDescriptor, *, commit: bool) -> Iterator[None]:
        try:
            yield
            if commit:
                self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "Constraint violation entity=%s cause=%s", descriptor.external_name, exc.orig
            )
            raise ConflictError(
                f"A {descriptor.external_name} record with these values already exists."
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError() from exc
        except EngineError:
            self.db.rollback()
            raise

    def _validate(self, descriptor: EntityDescriptor, body: Any, issues: list[Issue] | None = None) -> dict:
        issues = list(issues or [])
        result = descriptor.schema.safe_parse(body)
        if not result.success:
            issues.extend(result.issues)
        if issues:
            raise ValidationError(issues)
        return result.data

    def _store_values(self, descriptor: EntityDescriptor, data: Mapping[str, Any]) -> dict[Column, Any]:
        columns = descriptor.field_columns()
        return {columns[name]: _store_value(columns[name], value) for name, value in data.items()}

    def _filter_conditions(self, descriptor: EntityDescriptor, filters: Mapping[str, str]) -> list:
        conditions = []
        issues: list[Issue] = []
        for key, raw in filters.items():
            column_name = to_column_key(key)
            if column_name not in descriptor.table.c:
                issues.append(Issue((key,), "Unknown filter field."))
                continue
            column = descriptor.column(column_name)
            try:
                conditions.append(column == _filter_value(column, raw))
            except ValueError:
                issues.append(Issue((key,), "Invalid filter value."))
        if issues:
            raise ValidationError(issues, "Invalid filters")
        return conditions

    def _insert_or_ignore(self, descriptor: EntityDescriptor, values: dict[Column, Any]) -> bool:
        """True when a row was inserted, False when the key tuple already existed."""
        table = descriptor.table
        factory = _INSERT_OR_IGNORE.get(self.db.get_bind().dialect.name)
        if factory is not None:
            stmt = factory(table).values(values).on_conflict_do_nothing(
                index_elements=descriptor.key_columns()
            )
            return self.db.execute(stmt).rowcount == 1

        try:
            with self.db.begin_nested():
                self.db.execute(insert(table).values(values))
        except IntegrityError:
            return False
        return True

    # ---------- verbs ----------

    def list_records(
        self,
        descriptor: EntityDescriptor,
        filters: Mapping[str, str] | None = None,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        table = descriptor.table
        conditions = self._filter_conditions(descriptor, filters or {})

        stmt = select(table)
        count_stmt = select(func.count()).select_from(table)
        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)
        stmt = stmt.order_by(*table.primary_key.columns).offset(offset).limit(limit)

        with self._store_call(descriptor, commit=False):
            total = self.db.execute(count_stmt).scalar_one()
            rows = self.db.execute(stmt).mappings().all()
        return [to_external(r) for r in rows], total

    def read_record(self, descriptor: EntityDescriptor, record_id: str) -> dict[str, Any]:
        if not descriptor.has_surrogate_id:
            raise UnsupportedOperationError(
                f"{descriptor.external_name} rows have no id; list with filters instead"
            )
        table = descriptor.table
        with self._store_call(descriptor, commit=False):
            row = self.db.execute(select(table).where(table.c.id == record_id)).mappings().first()
        if row is None:
            raise NotFoundError(f"{descriptor.external_name} record not found")
        return to_external(row)

    def create_record(self, descriptor: EntityDescriptor, body: Any) -> dict[str, Any]:
        data = self._validate(descriptor, body)
        values = self._store_values(descriptor, data)
        table = descriptor.table

        if not descriptor.has_surrogate_id:
            key = {c: values[table.c[c]] for c in descriptor.conflict_keys}
            with self._store_call(descriptor, commit=True):
                inserted = self._insert_or_ignore(descriptor, values)
                if inserted:
                    log_event(
                        db=self.db,
                        actor=self.actor,
                        action="ENTITY_CREATED",
                        entity_type=descriptor.external_name,
                        entity_id=_join_key(key),
                        metadata={"fields": data},
                    )
            logger.info(
                "Linked entity=%s key=%s inserted=%s",
                descriptor.external_name, _join_key(key), inserted,
            )
            payload = dict(data)
            if inserted:
                deliver(self.notifier, "created", descriptor.external_name, payload)
            return payload

        record_id = str(uuid.uuid4())
        values[table.c.id] = record_id
        values[table.c.version] = 1
        with self._store_call(descriptor, commit=True):
            self.db.execute(insert(table).values(values))
            log_event(
                db=self.db,
                actor=self.actor,
                action="ENTITY_CREATED",
                entity_type=descriptor.external_name,
                entity_id=record_id,
                metadata={"fields": data, "version": 1},
            )
        logger.info("Created entity=%s id=%s", descriptor.external_name, record_id)

        payload = {"id": record_id, **data, "version": 1}
        deliver(self.notifier, "created", descriptor.external_name, payload)
        return payload

    def update_record(
        self,
        descriptor: EntityDescriptor,
        record_id: str,
        body: Any,
        *,
        if_match: str | None = None,
    ) -> dict[str, Any]:
        if not descriptor.has_surrogate_id:
            raise UnsupportedOperationError(
                f"{descriptor.external_name} rows cannot be updated; delete and create instead"
            )

        version_issues: list[Issue] = []
        expected_version = None
        try:
            expected_version, body = take_expected_version(body, if_match)
        except ValidationError as e:
            version_issues = e.issues

        data = self._validate(descriptor, body, version_issues)
        values = self._store_values(descriptor, data)

        with self._store_call(descriptor, commit=True):
            new_version = apply_versioned_update(
                self.db, descriptor, record_id, expected_version, values
            )
            log_event(
                db=self.db,
                actor=self.actor,
                action="ENTITY_UPDATED",
                entity_type=descriptor.external_name,
                entity_id=record_id,
                metadata={"fields": data, "version": new_version},
            )
        logger.info(
            "Updated entity=%s id=%s version=%s", descriptor.external_name, record_id, new_version
        )

        payload = {"id": record_id, **data, "version": new_version}
        deliver(self.notifier, "updated", descriptor.external_name, payload)
        return payload

    def delete_record(
        self,
        descriptor: EntityDescriptor,
        record_id: str | None = None,
        key_values: Mapping[str, str] | None = None,
    ) -> None:
        """
        Unconditional delete: no version check, and deleting a row that is
        already gone still succeeds.
        """
        table = descriptor.table

        if descriptor.has_surrogate_id:
            if not record_id:
                raise ValidationError([Issue(("id",), REQUIRED_MESSAGE)])
            conditions = [table.c.id == record_id]
            entity_id = record_id
        else:
            if record_id is not None:
                raise UnsupportedOperationError(
                    f"{descriptor.external_name} rows are deleted by their key fields"
                )
            key_values = key_values or {}
            issues: list[Issue] = []
            key: dict[str, str] = {}
            for column_name in descriptor.conflict_keys:
                field_name = to_field_key(column_name)
                value = key_values.get(field_name)
                if not value:
                    issues.append(Issue((field_name,), REQUIRED_MESSAGE))
                    continue
                key[column_name] = value
            if issues:
                raise ValidationError(issues)
            conditions = [table.c[c] == v for c, v in key.items()]
            entity_id = _join_key(key)

        with self._store_call(descriptor, commit=True):
            deleted = self.db.execute(delete(table).where(*conditions)).rowcount
            if deleted:
                log_event(
                    db=self.db,
                    actor=self.actor,
                    action="ENTITY_DELETED",
                    entity_type=descriptor.external_name,
                    entity_id=entity_id,
                )
        logger.info(
            "Deleted entity=%s id=%s rows=%s", descriptor.external_name, entity_id, deleted
        )
        if deleted:
            deliver(self.notifier, "deleted", descriptor.external_name, {"id": entity_id})
