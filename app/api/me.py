from fastapi import APIRouter, Depends

from app.core.rbac import can_read
from app.core.registry import EntityRegistry, get_registry
from app.core.config import settings
from app.core.security import Principal, get_principal
from app.schemas.me import MeOut

router = APIRouter(tags=["auth"])


@router.get("/me", response_model=MeOut)
def me(
    principal: Principal = Depends(get_principal),
    registry: EntityRegistry = Depends(get_registry),
):
    """Current user, their roles, and what they may do through /entities"""
    user = principal.user
    return MeOut(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        roles=sorted(principal.roles),
        can_write=principal.has_any(settings.operational_roles),
        readable_entities=[n for n in registry.names() if can_read(principal, registry.resolve(n))],
    )
