from fastapi import Depends

from app.core.config import settings
from app.core.errors import AuthorizationError
from app.core.registry import EntityDescriptor
from app.core.security import Principal, get_principal
from app.models.user import User

WRITE_VERBS = frozenset({"create", "update", "delete"})


def require_roles(*required: str):
    """
    Usage:
      Depends(require_roles("ADMIN"))
      Depends(require_roles("ADMIN", "MANAGER"))  # any-of
    """
    required_set = frozenset(required)

    def _dep(principal: Principal = Depends(get_principal)) -> User:
        if not principal.has_any(required_set):
            raise AuthorizationError(f"Forbidden. Requires one of: {sorted(required_set)}")
        return principal.user

    return _dep


def authorize_verb(principal: Principal, verb: str) -> None:
    """Write verbs need an operational role; reads are open to any principal."""
    if verb in WRITE_VERBS and not principal.has_any(settings.operational_roles):
        raise AuthorizationError(
            f"Forbidden. {verb} requires one of: {sorted(settings.operational_roles)}"
        )


def can_read(principal: Principal, descriptor: EntityDescriptor) -> bool:
    return descriptor.read_roles is None or principal.has_any(descriptor.read_roles)


def authorize_entity(principal: Principal, descriptor: EntityDescriptor) -> None:
    """Restricted entities are off limits for every verb, not only reads."""
    if not can_read(principal, descriptor):
        raise AuthorizationError(f"Forbidden. {descriptor.external_name} is restricted")
