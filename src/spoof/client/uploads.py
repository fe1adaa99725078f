"""Pre-upload checks for dataset files."""

from pathlib import Path

DEFAULT_MAX_BYTES = 50 * 1024 * 1024
DEFAULT_EXTENSIONS = [".csv", ".json", ".txt", ".xls", ".xlsx"]


def validate_upload(filename: str, size: int, config: dict | None = None) -> None:
    """Raise ValueError if a dataset file is too large or of an unsupported type."""
    upload_cfg = (config or {}).get("upload", {})
    max_bytes = int(upload_cfg.get("max_bytes", DEFAULT_MAX_BYTES))
    extensions = [e.lower() for e in upload_cfg.get("extensions", DEFAULT_EXTENSIONS)]

    suffix = Path(filename).suffix.lower()
    if suffix not in extensions:
        raise ValueError(
            f"Unsupported file type {suffix or '(none)'!r}. Allowed: {', '.join(extensions)}"
        )
    if size > max_bytes:
        raise ValueError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")
