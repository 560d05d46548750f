from fastapi import APIRouter
from typing import Any

from talent_pipeline.core.config import settings

router = APIRouter()

@router.get("", response_model=dict[str, Any])
def health_check() -> Any:
    """
    Health check endpoint.
    """
    return {"ok": True, "message": f"{settings.PROJECT_NAME} is running"}
