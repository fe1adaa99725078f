"""Export generated records as CSV or JSON."""

import json
from pathlib import Path

from ..core.constants import EXPORT_FORMATS
from ..core.events import GenerationArtifact

MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json; charset=utf-8",
}


def _csv_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raw = json.dumps(value)
    elif isinstance(value, bool):
        raw = "true" if value else "false"
    else:
        raw = str(value)
    escaped = raw.replace('"', '""')
    if any(c in escaped for c in '",\n\r'):
        return f'"{escaped}"'
    return escaped


def to_csv(rows: list[dict]) -> str:
    """Render records as CSV.

    The header is the union of all keys in first-seen order; rows missing a
    key get an empty cell. Lines end with CRLF for spreadsheet tools.
    """
    if not rows:
        return ""
    headers: list[str] = []
    seen = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                headers.append(key)

    lines = [",".join(_csv_cell(h) for h in headers)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(h)) for h in headers))
    return "\r\n".join(lines)


def to_json(rows: list[dict]) -> str:
    return json.dumps(rows, indent=2)


def export_filename(job_id: str, fmt: str) -> str:
    return f"synthetic_data_{job_id}.{fmt}"


def render(artifact: GenerationArtifact, fmt: str) -> str:
    """Serialize an artifact's records in ``fmt`` ("csv" or "json")."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {fmt!r}. Use one of: {', '.join(EXPORT_FORMATS)}")
    if not artifact.synthetic_data:
        raise ValueError("No generated data available for export")
    if fmt == "csv":
        return to_csv(artifact.synthetic_data)
    return to_json(artifact.synthetic_data)


def write_artifact(artifact: GenerationArtifact, path: Path, fmt: str | None = None) -> Path:
    """Write an artifact to ``path``; a directory gets the default filename.

    The format defaults to the file suffix, then to CSV.
    """
    path = Path(path)
    if fmt is None:
        suffix = path.suffix.lstrip(".").lower()
        fmt = suffix if suffix in EXPORT_FORMATS else "csv"
    content = render(artifact, fmt)
    if path.is_dir():
        path = path / export_filename(artifact.job_id, fmt)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")
    return path
