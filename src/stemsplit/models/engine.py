"""
Separation engine capability.

The orchestrator talks to inference only through this interface:
`initialize` once with the model asset location, then `split` per input.
Implementations raise `ModelInitializationFailure` for setup problems and
`SeparationFailure` for inference errors.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional, Sequence

from stemsplit.audio.waveform import WaveformBuffer
from stemsplit.models.variants import SeparationVariant


class SeparationEngine(ABC):

    @abstractmethod
    def initialize(
        self,
        asset_location: Optional[Path],
        variants: Iterable[SeparationVariant],
    ) -> None:
        """
        Load model assets for `variants` from `asset_location`.

        Raises:
            ModelInitializationFailure: If assets are missing or corrupt.
        """
        raise NotImplementedError

    @abstractmethod
    def split(
        self,
        waveform: WaveformBuffer,
        variant: SeparationVariant,
    ) -> Sequence[WaveformBuffer]:
        """
        Separate a planar stereo waveform.

        Returns:
            One planar buffer per stem, in catalog order, each with the
            input's frame count.

        Raises:
            SeparationFailure: On inference-time errors.
            ModelInitializationFailure: If `variant` was never initialized.
        """
        raise NotImplementedError
