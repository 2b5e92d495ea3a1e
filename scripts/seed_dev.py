# seed_dev.py
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.models.rbac import Role, UserRole
from app.models.user import User


DEV_USERS = [
    # email, full name, roles
    ("admin@local.test", "Admin Local", ["ADMIN"]),
    ("manager@local.test", "Manager Local", ["MANAGER"]),
    ("viewer@local.test", "Viewer Local", ["SIMPLE"]),
]


def get_or_create_role(db: Session, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


def get_or_create_user(db: Session, email: str, full_name: str) -> User:
    u = db.query(User).filter(User.email == email).one_or_none()
    if u:
        # keep these up to date in dev
        if u.full_name != full_name or not u.is_active:
            u.full_name = full_name
            u.is_active = True
            db.commit()
            db.refresh(u)
        return u

    u = User(email=email, full_name=full_name, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def ensure_user_role(db: Session, user: User, role: Role) -> None:
    exists = (
        db.query(UserRole)
        .filter(UserRole.user_id == user.id, UserRole.role_id == role.id)
        .one_or_none()
    )
    if not exists:
        db.add(UserRole(user_id=user.id, role_id=role.id))
        db.commit()


def main():
    db = SessionLocal()
    try:
        for email, full_name, roles in DEV_USERS:
            user = get_or_create_user(db, email, full_name)
            for role_name in roles:
                ensure_user_role(db, user, get_or_create_role(db, role_name))
            print(f"{email:<22} {', '.join(roles)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
