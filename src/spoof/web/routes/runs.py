"""Run routes: start/cancel a session's pipeline and stream its progress over SSE.

The driver runs in its own thread; these handlers only read snapshots, so a
browser disconnect has no effect on the run.
"""

import asyncio
import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from sse_starlette.sse import EventSourceResponse

from ...client.api import SpoofClient
from ...core.config import load_config
from ...core.constants import EXPORT_FORMATS, RUN_RUNNING
from ...core.parameters import GenerationParameters
from ...models.registry import get_model
from ...pipeline.driver import cancel_session, drop_session, get_driver, start_session_run
from ...results.export import MEDIA_TYPES, export_filename, render

router = APIRouter(prefix="/runs", tags=["runs"])

SSE_POLL_SECONDS = 0.5


def build_client(config: dict) -> SpoofClient:
    return SpoofClient.from_config(config)


def _int_field(form, name: str, default: int) -> int:
    raw = str(form.get(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@router.post("/{session_id}/start")
async def start_run(request: Request, session_id: str):
    """Start (or restart) the pipeline for a session."""
    form = await request.form()
    config = load_config()
    defaults = GenerationParameters()

    dataset_id = str(form.get("dataset_id", "")).strip()
    model_id = str(form.get("model_id", "")).strip()

    try:
        if not dataset_id:
            raise ValueError("dataset_id is required; upload a dataset first")
        params = GenerationParameters(
            samples=_int_field(form, "samples", defaults.samples),
            privacy=_int_field(form, "privacy", defaults.privacy),
            quality=_int_field(form, "quality", defaults.quality),
            diversity=_int_field(form, "diversity", defaults.diversity),
        )
        params.validate()
        if model_id:
            model_name = get_model(model_id).backend_name
        else:
            model_name = config.get("generation", {}).get("model_name", "adsgan")
    except KeyError as e:
        return JSONResponse({"error": e.args[0]}, status_code=400)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    driver = start_session_run(
        session_id,
        build_client(config),
        config,
        dataset_id=dataset_id,
        model_name=model_name,
        samples=params.samples,
    )
    return {
        "run_id": driver.run_id,
        "estimated_seconds": params.estimated_seconds(),
        "progress_url": f"/runs/{session_id}/progress",
    }


@router.post("/{session_id}/cancel")
async def cancel_run(session_id: str):
    """Stop the session's live run."""
    return {"cancelled": cancel_session(session_id)}


@router.post("/{session_id}/drop")
async def drop_run(session_id: str):
    """Forget a session when its page goes away."""
    return {"dropped": drop_session(session_id)}


@router.get("/{session_id}/snapshot")
async def run_snapshot(session_id: str):
    """Current state of the session's run as JSON."""
    driver = get_driver(session_id)
    if driver is None:
        return JSONResponse({"error": "No run for this session"}, status_code=404)
    return driver.snapshot.to_dict()


@router.get("/{session_id}/progress")
async def run_progress(request: Request, session_id: str):
    """SSE stream of snapshots until the run stops running."""

    async def event_generator():
        driver = get_driver(session_id)
        if driver is None:
            yield {"event": "complete", "data": json.dumps({"status": "missing"})}
            return

        last_seen = None
        while True:
            if await request.is_disconnected():
                return
            snap = driver.snapshot
            if snap.updated_at != last_seen:
                last_seen = snap.updated_at
                yield {"event": "progress", "data": json.dumps(snap.to_dict())}
            if snap.status != RUN_RUNNING:
                yield {
                    "event": "complete",
                    "data": json.dumps({
                        "run_id": snap.run_id,
                        "status": snap.status,
                        "error": snap.error,
                    }),
                }
                return
            await asyncio.sleep(SSE_POLL_SECONDS)

    return EventSourceResponse(event_generator())


@router.get("/{session_id}/download/{fmt}")
async def download(session_id: str, fmt: str):
    """Download the session's generated records as CSV or JSON."""
    if fmt not in EXPORT_FORMATS:
        return JSONResponse(
            {"error": f"Unknown format {fmt!r}. Use one of: {', '.join(EXPORT_FORMATS)}"},
            status_code=400,
        )
    driver = get_driver(session_id)
    artifact = driver.snapshot.artifact if driver else None
    if artifact is None or not artifact.synthetic_data:
        return JSONResponse({"error": "No generated data available for download"}, status_code=404)

    filename = export_filename(artifact.job_id, fmt)
    return Response(
        render(artifact, fmt),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
