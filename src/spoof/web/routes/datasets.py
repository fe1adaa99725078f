"""Dataset upload route: validate locally, forward to the generation service."""

import asyncio

from fastapi import APIRouter, UploadFile
from fastapi.responses import JSONResponse

from ...client.api import SpoofClient
from ...client.uploads import validate_upload
from ...core.config import load_config
from ...core.errors import SpoofError
from ...models.registry import detect_data_type

router = APIRouter(prefix="/datasets", tags=["datasets"])


def build_client(config: dict) -> SpoofClient:
    return SpoofClient.from_config(config)


@router.post("/upload")
async def upload_dataset(file: UploadFile):
    """Upload a dataset file; returns its dataset id."""
    config = load_config()
    data = await file.read()
    filename = file.filename or "dataset"

    try:
        validate_upload(filename, len(data), config)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    client = build_client(config)
    try:
        dataset_id = await asyncio.to_thread(
            client.upload_dataset_bytes, filename, data, file.content_type,
        )
    except SpoofError as e:
        return JSONResponse({"error": f"Failed to upload file: {e}"}, status_code=502)

    return {
        "dataset_id": dataset_id,
        "filename": filename,
        "size": len(data),
        "detected_type": detect_data_type(filename, file.content_type or ""),
    }
