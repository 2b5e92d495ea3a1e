from pydantic import BaseModel


class ErrorDetails(BaseModel):
    """Per-field messages keyed by dotted path (e.g. "items.2.qty")"""
    fieldErrors: dict[str, list[str]]


class ErrorBody(BaseModel):
    error: str
    details: ErrorDetails | None = None
