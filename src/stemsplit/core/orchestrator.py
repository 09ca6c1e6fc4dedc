"""
Separation orchestration: validate, convert, split, check, pair.

`SeparationOrchestrator.separate` is side-effect free apart from calling the
engine. Writing stems is the caller's job (see `StemOutputWriter`).
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from stemsplit.audio.audio_validator import FormatValidator
from stemsplit.audio.interleaving import deinterleave
from stemsplit.audio.waveform import AudioFileSpec, WaveformBuffer
from stemsplit.core.errors import (
    EngineContractViolation,
    IOFailure,
    SeparationFailure,
    StemSplitError,
)
from stemsplit.models.engine import SeparationEngine
from stemsplit.models.variants import SeparationVariant, variant_to_stem_names

logger = logging.getLogger(__name__)


@dataclass
class SeparationResult:
    """Ordered (stem name, buffer) pairs for one variant"""
    variant: SeparationVariant
    stems: List[Tuple[str, WaveformBuffer]] = field(default_factory=list)

    def __iter__(self) -> Iterator[Tuple[str, WaveformBuffer]]:
        return iter(self.stems)

    def __len__(self) -> int:
        return len(self.stems)

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.stems]

    def get(self, name: str) -> Optional[WaveformBuffer]:
        for stem_name, buffer in self.stems:
            if stem_name == name:
                return buffer
        return None


class SeparationOrchestrator:
    """
    Drives one separation through the engine under a fail-fast contract.

    Args:
        engine: An initialized SeparationEngine.
        validator: Format gate; defaults to 44.1kHz stereo.
    """

    def __init__(self, engine: SeparationEngine, validator: Optional[FormatValidator] = None):
        self.engine = engine
        self.validator = validator or FormatValidator()

    def separate(
        self,
        input_spec: AudioFileSpec,
        interleaved_input: np.ndarray,
        variant: SeparationVariant,
    ) -> SeparationResult:
        """
        Split interleaved input into the stems of `variant`.

        Raises:
            UnsupportedFormat: Input is not 44.1kHz stereo. The engine is not called.
            ModelInitializationFailure: Propagated from the engine.
            SeparationFailure: Propagated from the engine, or wrapping any
                other exception it raised.
            EngineContractViolation: Stem count or shape disagrees with the catalog.
            IOFailure: Decoded sample count disagrees with the header.
        """
        variant = SeparationVariant(variant)
        self.validator.validate(input_spec)

        expected_length = input_spec.channel_count * input_spec.frame_count
        if np.size(interleaved_input) != expected_length:
            raise IOFailure(
                f"Decoded input has {np.size(interleaved_input)} samples, "
                f"header says {input_spec.frame_count} frames x {input_spec.channel_count} channels"
            )

        planar = deinterleave(interleaved_input, input_spec.channel_count)
        stem_names = variant_to_stem_names(variant)

        logger.info(
            f"Separating {planar.frame_count} frames into {variant.value} ({', '.join(stem_names)})"
        )
        try:
            outputs = self.engine.split(planar, variant)
        except StemSplitError:
            raise
        except Exception as e:
            raise SeparationFailure(f"Separation engine error: {e}") from e

        outputs = list(outputs)
        self._check_outputs(outputs, planar, variant, stem_names)

        # Each stem owns its buffer, even if the engine handed back shared ones
        owned = []
        seen = {id(planar)}
        for buffer in outputs:
            if id(buffer) in seen:
                buffer = WaveformBuffer(buffer.samples)
            seen.add(id(buffer))
            owned.append(buffer)

        return SeparationResult(variant=variant, stems=list(zip(stem_names, owned)))

    @staticmethod
    def _check_outputs(
        outputs: List[WaveformBuffer],
        planar: WaveformBuffer,
        variant: SeparationVariant,
        stem_names: Tuple[str, ...],
    ) -> None:
        if len(outputs) != len(stem_names):
            raise EngineContractViolation(
                f"Engine returned {len(outputs)} stems for {variant.value}, "
                f"expected {len(stem_names)} ({', '.join(stem_names)})"
            )

        for name, buffer in zip(stem_names, outputs):
            if not isinstance(buffer, WaveformBuffer):
                raise EngineContractViolation(
                    f"Stem '{name}' is {type(buffer).__name__}, expected WaveformBuffer"
                )
            if buffer.frame_count != planar.frame_count:
                raise EngineContractViolation(
                    f"Stem '{name}' has {buffer.frame_count} frames, input has {planar.frame_count}"
                )
            if buffer.channel_count != planar.channel_count:
                raise EngineContractViolation(
                    f"Stem '{name}' has {buffer.channel_count} channels, input has {planar.channel_count}"
                )
