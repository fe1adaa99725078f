"""HTTP client for the remote training/generation service.

Endpoints:
  - POST /dataset/upload          multipart field "file" -> {dataset_id}
  - POST /model/train             {model_name, dataset_id} -> {job_id}
  - GET  /model/status/{job_id}   -> {status, percent?}
  - GET  /model/generate/{job_id}?count=N -> {job_id, synthetic_data}
"""

import json
import mimetypes
import uuid
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from ..core.config import get_service_url
from ..core.errors import ServiceError, SubmissionError
from ..core.events import GenerationArtifact


class SpoofClient:
    """Thin JSON-over-HTTP wrapper around the generation service."""

    def __init__(self, base_url: str, *, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict) -> "SpoofClient":
        service = config.get("service", {})
        return cls(get_service_url(config), timeout=service.get("timeout", 30))

    # ── Endpoints ─────────────────────────────────────────────────

    def upload_dataset(self, path: Path) -> str:
        """Upload a dataset file, returning the service's dataset id."""
        path = Path(path)
        return self.upload_dataset_bytes(path.name, path.read_bytes())

    def upload_dataset_bytes(self, filename: str, data: bytes, content_type: str | None = None) -> str:
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        body, boundary = _encode_multipart("file", filename, data, content_type)
        req = Request(f"{self.base_url}/dataset/upload", data=body, method="POST")
        req.add_header("Content-Type", f"multipart/form-data; boundary={boundary}")
        payload = self._send(req)
        dataset_id = payload.get("dataset_id")
        if not isinstance(dataset_id, str) or not dataset_id:
            raise SubmissionError("Upload response did not include a dataset_id")
        return dataset_id

    def start_training(self, model_name: str, dataset_id: str) -> str:
        """Start a training job, returning its job id."""
        body = json.dumps({"model_name": model_name, "dataset_id": dataset_id}).encode()
        req = Request(f"{self.base_url}/model/train", data=body, method="POST")
        req.add_header("Content-Type", "application/json")
        try:
            payload = self._send(req)
        except ServiceError as e:
            raise SubmissionError(f"Failed to start model training: {e}") from e
        job_id = payload.get("job_id")
        if not isinstance(job_id, str) or not job_id:
            raise SubmissionError("Training response did not include a job_id")
        return job_id

    def fetch_status(self, job_id: str) -> dict:
        """Fetch the raw status payload for a job."""
        req = Request(f"{self.base_url}/model/status/{quote(job_id, safe='')}", method="GET")
        return self._send(req)

    def generate(self, job_id: str, count: int) -> GenerationArtifact:
        """Request ``count`` synthetic records from a trained job."""
        query = urlencode({"count": count})
        req = Request(
            f"{self.base_url}/model/generate/{quote(job_id, safe='')}?{query}",
            method="GET",
        )
        try:
            payload = self._send(req)
        except ServiceError as e:
            raise SubmissionError(f"Failed to start generation: {e}") from e
        rows = payload.get("synthetic_data")
        if not isinstance(rows, list):
            rows = []
        return GenerationArtifact(job_id=str(payload.get("job_id") or job_id), synthetic_data=rows)

    # ── Transport ─────────────────────────────────────────────────

    def _send(self, req: Request) -> dict:
        """Send a request and decode a JSON object body."""
        req.add_header("Accept", "application/json")
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            detail = e.read().decode(errors="replace")[:200]
            raise ServiceError(f"HTTP {e.code}: {detail}", status_code=e.code) from e
        except (URLError, TimeoutError, OSError) as e:
            raise ServiceError(f"Request to {req.full_url} failed: {e}") from e

        try:
            payload = json.loads(raw.decode() or "null")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ServiceError(f"Invalid JSON from {req.full_url}: {e}") from e
        if not isinstance(payload, dict):
            raise ServiceError(f"Expected a JSON object from {req.full_url}")
        return payload


def _encode_multipart(field: str, filename: str, data: bytes, content_type: str) -> tuple[bytes, str]:
    """Build a single-file multipart/form-data body. Returns (body, boundary)."""
    boundary = uuid.uuid4().hex
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        f"Content-Type: {content_type}\r\n\r\n"
    ).encode()
    tail = f"\r\n--{boundary}--\r\n".encode()
    return head + data + tail, boundary
