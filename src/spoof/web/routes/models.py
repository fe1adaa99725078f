"""Model catalog routes."""

from fastapi import APIRouter

from ...models.registry import detect_data_type, list_models, recommend_models

router = APIRouter(prefix="/models", tags=["models"])


@router.get("/")
async def catalog(filename: str = "", content_type: str = ""):
    """List models, with recommendations when a filename is given."""
    result = {"models": [m.to_dict() for m in list_models()]}
    if filename:
        result["detected_type"] = detect_data_type(filename, content_type)
        result["recommended"] = [m.id for m in recommend_models(filename, content_type)]
    return result
