"""Overall progress weighting: phase-local percentages -> one 0–100 value."""

from .constants import PHASE_ORDER, PHASE_WEIGHTS


def validate_weights(weights: dict[str, int]) -> None:
    """Raise ValueError unless weights cover every phase and sum to 100."""
    missing = [p for p in PHASE_ORDER if p not in weights]
    if missing:
        raise ValueError(f"Missing phase weights: {', '.join(missing)}")
    total = sum(weights[p] for p in PHASE_ORDER)
    if total != 100:
        raise ValueError(f"Phase weights must sum to 100, got {total}")


def cumulative_weight(phase: str, weights: dict[str, int] = PHASE_WEIGHTS) -> int:
    """Sum of weights for every phase up to and including ``phase``."""
    idx = PHASE_ORDER.index(phase)
    return sum(weights[p] for p in PHASE_ORDER[: idx + 1])


def overall_progress(
    phase: str,
    local_progress: float,
    weights: dict[str, int] = PHASE_WEIGHTS,
) -> float:
    """Overall percentage for ``phase`` at ``local_progress`` (0–100).

    Phases before ``phase`` count as fully completed.
    """
    local = max(0.0, min(100.0, float(local_progress)))
    prior = cumulative_weight(phase, weights) - weights[phase]
    return prior + (local / 100) * weights[phase]
