from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.registry import EntityRegistry, get_registry
from app.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    db: Session = Depends(get_db),
    registry: EntityRegistry = Depends(get_registry),
):
    # DB ping + registry loaded
    db.execute(text("SELECT 1"))
    return {"status": "ok", "entities": len(registry)}
