"""
Separation variants and the stems each one produces.

The catalog is keyed by the enum itself, so adding a variant without listing
its stems fails at import time rather than at lookup time.
"""

from enum import Enum
from typing import Dict, Tuple


class SeparationVariant(str, Enum):
    """Which and how many stems to produce. Values are the CLI tokens."""
    TWO_STEMS = "2stems"
    FOUR_STEMS = "4stems"
    FIVE_STEMS = "5stems"

    @classmethod
    def from_token(cls, token: str) -> "SeparationVariant":
        """
        Parse a CLI token such as "4stems".

        Raises:
            ValueError: If the token names no variant.
        """
        normalized = str(token).strip().lower()
        for variant in cls:
            if variant.value == normalized:
                return variant
        accepted = ", ".join(v.value for v in cls)
        raise ValueError(f"Invalid stem type '{token}'. Use: {accepted}")

    @property
    def stem_names(self) -> Tuple[str, ...]:
        return variant_to_stem_names(self)

    @property
    def stem_count(self) -> int:
        return len(variant_to_stem_names(self))

    @property
    def residual_stem(self) -> str:
        """Stem that collects everything not covered by a named stem"""
        return variant_to_stem_names(self)[-1]

    def __str__(self) -> str:
        return self.value


_STEM_NAMES: Dict[SeparationVariant, Tuple[str, ...]] = {
    SeparationVariant.TWO_STEMS: ("vocals", "accompaniment"),
    SeparationVariant.FOUR_STEMS: ("vocals", "drums", "bass", "other"),
    SeparationVariant.FIVE_STEMS: ("vocals", "drums", "bass", "piano", "other"),
}

_missing = set(SeparationVariant) - set(_STEM_NAMES)
if _missing:
    raise RuntimeError(f"No stem list for variants: {sorted(v.value for v in _missing)}")
del _missing

STEM_FILE_EXTENSION = ".wav"


def variant_to_stem_names(variant: SeparationVariant) -> Tuple[str, ...]:
    """Ordered stem names for `variant`, in the order the engine returns them."""
    return _STEM_NAMES[SeparationVariant(variant)]


def output_filename(stem_name: str) -> str:
    return f"{stem_name}{STEM_FILE_EXTENSION}"
