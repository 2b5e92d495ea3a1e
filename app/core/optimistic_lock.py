from __future__ import annotations

import logging
from typing import Any

from fastapi import Response
from sqlalchemy import Column, select, update
from sqlalchemy.orm import Session

from app.core.combinators import REQUIRED_MESSAGE
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.issues import Issue
from app.core.registry import EntityDescriptor

logger = logging.getLogger(__name__)

VERSION_FIELD = "version"


def _version_error(message: str) -> ValidationError:
    return ValidationError([Issue((VERSION_FIELD,), message)])


def parse_if_match(if_match: str) -> int:
    """
    Supports:
      If-Match: 3
      If-Match: "3"
    """
    raw = if_match.strip()
    if raw.startswith('"') and raw.endswith('"') and len(raw) >= 2:
        raw = raw[1:-1]

    try:
        v = int(raw)
    except ValueError:
        raise _version_error("Invalid If-Match header (expected integer version).")

    if v <= 0:
        raise _version_error("Version must be a positive integer.")
    return v


def take_expected_version(body: Any, if_match: str | None) -> tuple[int, Any]:
    """
    Pull the client's last-seen version out of an update request.

    Returns (version, body_without_version). The body field wins over the
    If-Match header; neither present is a validation failure.
    """
    if isinstance(body, dict) and VERSION_FIELD in body:
        body = dict(body)
        raw = body.pop(VERSION_FIELD)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise _version_error("Version must be an integer.")
        if raw <= 0:
            raise _version_error("Version must be a positive integer.")
        return raw, body

    if if_match is not None:
        return parse_if_match(if_match), body

    raise _version_error(REQUIRED_MESSAGE)


def apply_versioned_update(
    db: Session,
    descriptor: EntityDescriptor,
    record_id: str,
    expected_version: int,
    values: dict[Column, Any],
) -> int:
    """
    Compare-and-swap on the version column:

      UPDATE t SET ..., version = version + 1
      WHERE id = :id AND version = :expected

    The row count decides the outcome. Zero rows is either a missing record
    (404) or a stale version (409), told apart by an existence check.
    Returns the new version.
    """
    table = descriptor.table
    stmt = (
        update(table)
        .where(table.c.id == record_id, table.c.version == expected_version)
        .values({**values, table.c.version: table.c.version + 1})
    )
    result = db.execute(stmt)
    if result.rowcount == 1:
        return expected_version + 1

    exists = db.execute(select(table.c.id).where(table.c.id == record_id)).first()
    if exists is None:
        raise NotFoundError(f"{descriptor.external_name} record not found")

    logger.warning(
        "Version conflict entity=%s id=%s expected_version=%s",
        descriptor.external_name,
        record_id,
        expected_version,
    )
    raise ConflictError()


def set_etag(response: Response, version: int) -> None:
    # Quote it to behave like a real ETag
    response.headers["ETag"] = f'"{version}"'
