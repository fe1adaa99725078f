"""Model registry: maps catalog ids to the generation models on offer."""

from dataclasses import dataclass, field

DATA_TABULAR = "tabular"
DATA_TEXT = "text"
DATA_IMAGE = "image"

DEFAULT_BACKEND_MODEL = "adsgan"


@dataclass(frozen=True)
class ModelSpec:
    """One entry of the model catalog."""
    id: str
    name: str
    description: str
    data_type: str  # "tabular" | "text" | "image"
    details: tuple[str, ...] = field(default_factory=tuple)
    backend_name: str = DEFAULT_BACKEND_MODEL  # model_name sent to /model/train

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.data_type,
            "details": list(self.details),
            "backend_name": self.backend_name,
        }


MODELS: dict[str, ModelSpec] = {
    m.id: m
    for m in [
        ModelSpec(
            id="tabular-finetune",
            name="Everyday Table Synthesizer",
            description=(
                "Best for most tabular data! Create realistic, privacy-safe tables for "
                "analytics, sharing, or product demos. Handles numbers, categories, text, and more."
            ),
            data_type=DATA_TABULAR,
            details=(
                "Works with: Numbers, categories, text, JSON, events",
                "Privacy: Optional, you choose",
            ),
        ),
        ModelSpec(
            id="text-finetune",
            name="Story Spinner",
            description=(
                "Turn your text into new, privacy-friendly stories, notes, or documents. "
                "Great for anonymizing sensitive text or creating training data."
            ),
            data_type=DATA_TEXT,
            details=("Works with: Text", "Privacy: Optional, you choose"),
        ),
        ModelSpec(
            id="tabular-gan",
            name="Big Data Mixer",
            description=(
                "For large, complex tables! Quickly remix big datasets (50+ columns) while "
                "keeping important relationships between columns intact."
            ),
            data_type=DATA_TABULAR,
            details=("Works with: Numbers, categories", "Privacy: Not supported"),
        ),
        ModelSpec(
            id="tabular-dp",
            name="Privacy Guardian",
            description=(
                "Need maximum privacy? This model creates safe, basic tables for analytics "
                "and reporting, for when privacy is your top concern."
            ),
            data_type=DATA_TABULAR,
            details=("Works with: Numbers, categories", "Privacy: Always on, required"),
        ),
    ]
}


def get_model(model_id: str) -> ModelSpec:
    """Get a catalog entry by id.

    Raises KeyError if the id is unknown.
    """
    entry = MODELS.get(model_id)
    if entry is None:
        available = ", ".join(MODELS.keys())
        raise KeyError(f"Unknown model: {model_id!r}. Available: {available}")
    return entry


def list_models() -> list[ModelSpec]:
    """Return every catalog entry, in display order."""
    return list(MODELS.values())


def detect_data_type(filename: str, content_type: str = "") -> str:
    """Guess the kind of data in an uploaded file from its name and MIME type."""
    name = filename.lower()
    ctype = (content_type or "").lower()
    if "csv" in ctype or "excel" in ctype or name.endswith((".csv", ".xlsx", ".xls")):
        return DATA_TABULAR
    if "text" in ctype or name.endswith((".txt", ".json")):
        return DATA_TEXT
    return DATA_IMAGE


def recommend_models(filename: str, content_type: str = "") -> list[ModelSpec]:
    """Catalog entries whose data type matches the uploaded file."""
    detected = detect_data_type(filename, content_type)
    return [m for m in MODELS.values() if m.data_type == detected]
