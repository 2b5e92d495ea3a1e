from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.rbac import Role, UserRole
from app.models.user import User


def ensure_role(db, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r

def create_user(db, email: str, full_name="User", roles: tuple[str, ...] = ()) -> User:
    u = User(email=email, full_name=full_name, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    for role_name in roles:
        grant_role(db, u, role_name)
    return u

def grant_role(db, user: User, role_name: str):
    role = ensure_role(db, role_name)
    exists = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role_id == role.id).one_or_none()
    if not exists:
        db.add(UserRole(user_id=user.id, role_id=role.id))
        db.commit()

def as_user(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


def create_admin(db, email="admin@local.test") -> dict[str, str]:
    create_user(db, email, "Admin", roles=("ADMIN",))
    return as_user(email)

def create_manager(db, email="manager@local.test") -> dict[str, str]:
    create_user(db, email, "Manager", roles=("MANAGER",))
    return as_user(email)

def create_viewer(db, email="viewer@local.test") -> dict[str, str]:
    create_user(db, email, "Viewer", roles=("SIMPLE",))
    return as_user(email)


def stored_rows(db: Session, table, **where) -> list[dict]:
    """Read straight from the table, bypassing the session identity map."""
    stmt = select(table)
    for column, value in where.items():
        stmt = stmt.where(table.c[column] == value)
    return [dict(r) for r in db.execute(stmt).mappings().all()]
