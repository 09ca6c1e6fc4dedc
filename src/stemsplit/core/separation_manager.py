"""
End-to-end separation of one file.

Order of stages: engine initialization, header read, format gate, sample
read, separation, output directory, free-space check, stem writes. The first
failure stops the run; with staged writes nothing is left in the output
directory.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from stemsplit.audio.audio_reader import read_interleaved, read_spec
from stemsplit.audio.audio_validator import FormatValidator
from stemsplit.audio.stem_writer import StemOutputWriter
from stemsplit.audio.waveform import AudioFileSpec
from stemsplit.core.config import Config
from stemsplit.core.orchestrator import SeparationOrchestrator
from stemsplit.core.output_manager import (
    OutputPathManager,
    estimate_output_bytes,
    output_dir_for,
)
from stemsplit.models.engine import SeparationEngine
from stemsplit.models.variants import SeparationVariant

logger = logging.getLogger(__name__)


@dataclass
class SeparationReport:
    """What a completed run produced"""
    input_path: Path
    variant: SeparationVariant
    spec: AudioFileSpec
    output_dir: Path
    output_files: Dict[str, Path] = field(default_factory=dict)
    elapsed_seconds: float = 0.0


class SeparationManager:
    """
    Runs the whole pipeline for one input file.

    Args:
        engine: Separation engine; initialized by `run`.
        config: Settings; defaults are used when omitted.
        writer: Stem writer; built from `output.*` settings when omitted.
    """

    def __init__(
        self,
        engine: SeparationEngine,
        config: Optional[Config] = None,
        writer: Optional[StemOutputWriter] = None,
    ):
        self.engine = engine
        self.config = config or Config()
        self.validator = FormatValidator()
        self.orchestrator = SeparationOrchestrator(engine, self.validator)
        self.writer = writer or StemOutputWriter(
            subtype=self.config.get("output.subtype", "FLOAT"),
            max_workers=self.config.get("output.max_workers", 1),
        )

    def run(
        self,
        input_path: Union[str, Path],
        variant: SeparationVariant,
        output_base: Optional[Union[str, Path]] = None,
        models_dir: Optional[Union[str, Path]] = None,
    ) -> SeparationReport:
        """
        Separate `input_path` into the stems of `variant`.

        Args:
            input_path: Audio file to separate.
            variant: Requested separation variant.
            output_base: Parent of the `<name>_stems` directory; defaults to
                `paths.output_dir`, then the current directory.
            models_dir: Model asset location; defaults to `paths.models_dir`.

        Raises:
            StemSplitError: Any subclass, from the first failing stage.
        """
        start = time.time()
        input_path = Path(input_path)
        variant = SeparationVariant(variant)

        asset_location = Path(models_dir) if models_dir is not None else self.config.get_path("paths.models_dir")
        logger.info(f"Initializing separation engine for {variant.value} (models: {asset_location or 'default'})")
        self.engine.initialize(asset_location, [variant])

        spec = read_spec(input_path)
        self.validator.validate(spec)
        interleaved = read_interleaved(input_path)

        result = self.orchestrator.separate(spec, interleaved, variant)
        del interleaved

        if output_base is None:
            output_base = self.config.get_path("paths.output_dir")
        output = OutputPathManager(
            output_dir_for(input_path, output_base),
            staged=bool(self.config.get("output.staged_writes", True)),
            min_free_space_mb=self.config.get("output.min_free_space_mb", 0),
        )
        output.check_free_space(
            estimate_output_bytes(len(result), spec.channel_count, spec.frame_count)
        )

        write_dir = output.prepare()
        try:
            written = self.writer.write_all(result, write_dir, spec.sample_rate)
            output_dir = output.publish()
        except BaseException:
            output.discard()
            raise

        output_files = {name: output_dir / path.name for name, path in written.items()}
        elapsed = time.time() - start
        logger.info(f"Separation complete in {elapsed:.1f}s: {', '.join(output_files)}")

        return SeparationReport(
            input_path=input_path,
            variant=variant,
            spec=spec,
            output_dir=output_dir,
            output_files=output_files,
            elapsed_seconds=elapsed,
        )
