from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Query, Request, Response, status
from sqlalchemy.orm import Session

from app.core.dispatcher import EntityDispatcher
from app.core.notifications import Notifier, get_notifier
from app.core.optimistic_lock import set_etag
from app.core.rbac import authorize_entity, authorize_verb, can_read
from app.core.registry import EntityDescriptor, EntityRegistry, get_registry
from app.core.security import Principal, get_principal
from app.db.session import get_db
from app.schemas.pagination import RecordPage

router = APIRouter(prefix="/entities", tags=["entities"])

# query parameters that are not column filters
LIST_PARAMS = frozenset({"limit", "offset", "include_pagination"})


def get_dispatcher(
    db: Session = Depends(get_db),
    registry: EntityRegistry = Depends(get_registry),
    notifier: Notifier | None = Depends(get_notifier),
    principal: Principal = Depends(get_principal),
) -> EntityDispatcher:
    return EntityDispatcher(db, registry, actor=principal.user, notifier=notifier)


def _authorized(
    verb: str, entity: str, principal: Principal, dispatcher: EntityDispatcher
) -> EntityDescriptor:
    authorize_verb(principal, verb)
    descriptor = dispatcher.resolve(entity)
    authorize_entity(principal, descriptor)
    return descriptor


@router.get("", response_model=list[str])
def list_entities(
    registry: EntityRegistry = Depends(get_registry),
    principal: Principal = Depends(get_principal),
):
    """Entity names the caller may read."""
    return [n for n in registry.names() if can_read(principal, registry.resolve(n))]


@router.get("/{entity}")
def list_records(
    entity: str,
    request: Request,
    limit: int = Query(default=100, ge=1, le=500, description="Maximum number of results"),
    offset: int = Query(default=0, ge=0, description="Number of results to skip"),
    include_pagination: bool = Query(default=False, description="Include pagination metadata"),
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    """
    List records of an entity.

    Any other query parameter is an equality filter on a field, e.g.
    /entities/contract-projects?contractId=...
    """
    descriptor = _authorized("list", entity, principal, dispatcher)
    filters = {k: v for k, v in request.query_params.items() if k not in LIST_PARAMS}

    items, total = dispatcher.list_records(descriptor, filters, limit=limit, offset=offset)
    if include_pagination:
        return RecordPage.build(items, total=total, limit=limit, offset=offset)
    return items


@router.get("/{entity}/{record_id}")
def read_record(
    entity: str,
    record_id: str,
    response: Response,
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    descriptor = _authorized("read", entity, principal, dispatcher)
    record = dispatcher.read_record(descriptor, record_id)
    set_etag(response, record["version"])
    return record


@router.post("/{entity}", status_code=status.HTTP_201_CREATED)
def create_record(
    entity: str,
    body: Any = Body(default=None),
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    descriptor = _authorized("create", entity, principal, dispatcher)
    return dispatcher.create_record(descriptor, body)


@router.put("/{entity}/{record_id}")
def update_record(
    entity: str,
    record_id: str,
    response: Response,
    body: Any = Body(default=None),
    if_match: str | None = Header(default=None, alias="If-Match"),
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    """
    Version-checked update. Send the version you last read, either as
    "version" in the body or as an If-Match header.
    """
    descriptor = _authorized("update", entity, principal, dispatcher)
    out = dispatcher.update_record(descriptor, record_id, body, if_match=if_match)
    set_etag(response, out["version"])
    return out


@router.delete("/{entity}/{record_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_record(
    entity: str,
    record_id: str,
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    descriptor = _authorized("delete", entity, principal, dispatcher)
    dispatcher.delete_record(descriptor, record_id=record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{entity}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_linked_record(
    entity: str,
    request: Request,
    principal: Principal = Depends(get_principal),
    dispatcher: EntityDispatcher = Depends(get_dispatcher),
):
    """Delete a join row: every key field goes in the query string."""
    descriptor = _authorized("delete", entity, principal, dispatcher)
    dispatcher.delete_record(descriptor, key_values=dict(request.query_params))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
