"""FastAPI web dashboard for Spoof."""

import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .routes import datasets, models, runs
from ..core.constants import PHASE_ORDER, PHASE_LABELS, PHASE_DESCRIPTIONS
from ..core.parameters import GenerationParameters

TEMPLATES_DIR = Path(__file__).parent / "templates"

app = FastAPI(title="Spoof", docs_url=None, redoc_url=None)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app.include_router(datasets.router)
app.include_router(models.router)
app.include_router(runs.router)


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Wizard page. Each page load gets its own session id."""
    return templates.TemplateResponse(request, "index.html", {
        "session_id": uuid.uuid4().hex,
        "defaults": GenerationParameters(),
        "phases": [
            {"id": p, "label": PHASE_LABELS[p], "description": PHASE_DESCRIPTIONS[p]}
            for p in PHASE_ORDER
        ],
    })
