"""Generation parameters chosen in the configure step."""

import math
from dataclasses import asdict, dataclass

# (min, max) accepted by the configure form
PARAMETER_RANGES = {
    "samples": (100, 100_000),
    "privacy": (0, 100),
    "quality": (25, 100),
    "diversity": (0, 100),
}


@dataclass
class GenerationParameters:
    samples: int = 1000
    privacy: int = 50
    quality: int = 75
    diversity: int = 60

    def validate(self) -> None:
        """Raise ValueError if any parameter falls outside its range."""
        for name, (low, high) in PARAMETER_RANGES.items():
            value = getattr(self, name)
            if not low <= value <= high:
                raise ValueError(f"{name} must be between {low} and {high}, got {value}")

    def estimated_seconds(self) -> int:
        """Rough wall-clock estimate shown before a run starts."""
        base = 30
        sample_mult = math.log10(max(100, self.samples) / 100)
        quality_mult = max(0.5, self.quality / 50)
        return max(30, round(base * (1 + sample_mult) * quality_mult))

    def to_dict(self) -> dict:
        return asdict(self)
