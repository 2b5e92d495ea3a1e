from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Entity Store",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "entities": "/entities",
    }
