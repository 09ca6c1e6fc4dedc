"""
Demucs-backed separation engine.

torch and demucs are optional (`pip install stemsplit[demucs]`); when they are
missing, `initialize` fails with ModelInitializationFailure instead of the
import failing at module load.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

try:
    import torch

    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False

try:
    from demucs.apply import apply_model
    from demucs.pretrained import get_model

    DEMUCS_AVAILABLE = True
except ImportError:
    DEMUCS_AVAILABLE = False

from stemsplit.audio.waveform import WaveformBuffer
from stemsplit.core.errors import (
    EngineContractViolation,
    ModelInitializationFailure,
    SeparationFailure,
)
from stemsplit.models.engine import SeparationEngine
from stemsplit.models.variants import SeparationVariant

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    SeparationVariant.TWO_STEMS: "htdemucs",
    SeparationVariant.FOUR_STEMS: "htdemucs",
    SeparationVariant.FIVE_STEMS: "htdemucs_6s",
}


def collapse_sources(
    sources: np.ndarray,
    source_names: Sequence[str],
    variant: SeparationVariant,
) -> List[np.ndarray]:
    """
    Map model sources onto catalog stems.

    A source whose name is a catalog stem is used as is. Every other source
    (e.g. "guitar" for a 5-stem split, or everything but "vocals" for a
    2-stem split) is summed into the variant's residual stem.

    Args:
        sources: Array shaped (n_sources, channels, frames).
        source_names: Model source names, same order as `sources`.
        variant: Requested variant; its residual stem takes the leftovers.

    Returns:
        One (channels, frames) array per catalog stem, in catalog order.
    """
    if sources.shape[0] != len(source_names):
        raise EngineContractViolation(
            f"Model produced {sources.shape[0]} sources but declares {len(source_names)}"
        )

    stem_names = variant.stem_names
    residual = variant.residual_stem
    index = {name: i for i, name in enumerate(source_names)}

    missing = [s for s in stem_names if s != residual and s not in index]
    if missing:
        raise EngineContractViolation(
            f"Model sources {list(source_names)} do not provide stems {missing}"
        )

    leftover = [i for i, name in enumerate(source_names) if name not in stem_names]
    if residual in index:
        leftover.append(index[residual])
    if not leftover:
        raise EngineContractViolation(
            f"Model sources {list(source_names)} leave nothing for stem '{residual}'"
        )

    return [
        sources[leftover].sum(axis=0) if name == residual else sources[index[name]]
        for name in stem_names
    ]


class DemucsEngine(SeparationEngine):
    """
    Runs pretrained Demucs models.

    Args:
        models: Optional override of the model name per variant.
        device: "auto", "cpu" or "cuda".
        shifts: Random shift count passed to `apply_model` (TTA).
        overlap: Overlap ratio between chunks.
    """

    def __init__(
        self,
        models: Optional[Dict[SeparationVariant, str]] = None,
        device: str = "auto",
        shifts: int = 1,
        overlap: float = 0.25,
    ):
        self.model_names = dict(DEFAULT_MODELS)
        if models:
            self.model_names.update(models)
        self.requested_device = device
        self.shifts = int(shifts)
        self.overlap = float(overlap)
        self.device = None
        self._models = {}

    def _resolve_device(self) -> str:
        if self.requested_device and self.requested_device != "auto":
            return self.requested_device
        return "cuda" if torch.cuda.is_available() else "cpu"

    def initialize(
        self,
        asset_location: Optional[Path],
        variants: Iterable[SeparationVariant],
    ) -> None:
        if not (TORCH_AVAILABLE and DEMUCS_AVAILABLE):
            raise ModelInitializationFailure(
                "Demucs engine requires torch and demucs. "
                "Install them with: pip install 'stemsplit[demucs]'"
            )

        repo = None
        if asset_location is not None:
            repo = Path(asset_location)
            if not repo.is_dir():
                raise ModelInitializationFailure(
                    f"Model directory does not exist: {repo}"
                )

        self.device = self._resolve_device()
        loaded_by_name = {}

        for variant in variants:
            variant = SeparationVariant(variant)
            name = self.model_names[variant]
            if name not in loaded_by_name:
                try:
                    model = get_model(name, repo=repo)
                    model.to(self.device)
                    model.eval()
                except Exception as e:
                    raise ModelInitializationFailure(
                        f"Failed to load Demucs model '{name}': {e}"
                    ) from e
                loaded_by_name[name] = model
                logger.info(f"Loaded Demucs model '{name}' on {self.device}")

            model = loaded_by_name[name]
            missing = [
                s for s in variant.stem_names[:-1] if s not in model.sources
            ]
            if missing:
                raise ModelInitializationFailure(
                    f"Model '{name}' cannot produce {variant.value}: "
                    f"no source for {missing} (sources: {model.sources})"
                )
            self._models[variant] = model

    def split(
        self,
        waveform: WaveformBuffer,
        variant: SeparationVariant,
    ) -> Sequence[WaveformBuffer]:
        model = self._models.get(variant)
        if model is None:
            raise ModelInitializationFailure(
                f"Engine was not initialized for {variant.value}"
            )

        try:
            mix = torch.from_numpy(waveform.samples).to(self.device)
            ref = mix.mean(0)
            mean, std = ref.mean(), ref.std() + 1e-8
            with torch.no_grad():
                sources = apply_model(
                    model,
                    ((mix - mean) / std)[None],
                    shifts=self.shifts,
                    split=True,
                    overlap=self.overlap,
                    progress=False,
                    device=self.device,
                )[0]
            sources = (sources * std + mean).cpu().numpy()
        except RuntimeError as e:
            raise SeparationFailure(f"Demucs inference failed: {e}") from e

        stems = collapse_sources(sources, list(model.sources), variant)
        logger.debug(f"Demucs produced {len(stems)} stems for {variant.value}")
        return [WaveformBuffer(stem) for stem in stems]


def engine_from_config(config) -> DemucsEngine:
    """Build a DemucsEngine from the `engine.*` settings of a Config"""
    models = {}
    for token, name in (config.get("engine.models") or {}).items():
        try:
            models[SeparationVariant.from_token(token)] = str(name)
        except ValueError:
            logger.warning(f"Ignoring model override for unknown variant '{token}'")

    return DemucsEngine(
        models=models,
        device=config.get("engine.device", "auto"),
        shifts=config.get("engine.shifts", 1),
        overlap=config.get("engine.overlap", 0.25),
    )
