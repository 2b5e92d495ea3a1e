from pydantic import BaseModel


class MeOut(BaseModel):
    id: str
    email: str
    full_name: str
    is_active: bool
    roles: list[str]
    can_write: bool  # holds an operational role
    readable_entities: list[str]
