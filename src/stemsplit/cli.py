"""
stemsplit command line interface.

    stemsplit <input.wav> <2stems|4stems|5stems>

Exit status is 0 on success and 1 on any failure, usage errors included.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from stemsplit.core.config import Config
from stemsplit.core.errors import StemSplitError
from stemsplit.core.logger import setup_logging
from stemsplit.core.separation_manager import SeparationManager
from stemsplit.models.demucs_engine import engine_from_config
from stemsplit.models.variants import SeparationVariant

EXIT_OK = 0
EXIT_FAILURE = 1


class _ArgumentParser(argparse.ArgumentParser):
    """argparse exits with 2 on usage errors; this CLI reports every failure as 1"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _variant(token: str) -> SeparationVariant:
    try:
        return SeparationVariant.from_token(token)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="stemsplit",
        description="Split a 44.1kHz stereo recording into stems",
    )
    parser.add_argument("input_file", help="Path to input audio file")
    parser.add_argument(
        "stem_type",
        type=_variant,
        metavar="stem_type",
        help="2stems, 4stems, or 5stems",
    )
    parser.add_argument("--output-dir", "-o", help="Parent directory for <name>_stems (default: current directory)")
    parser.add_argument("--models-dir", help="Model asset location (default: paths.models_dir or $STEMSPLIT_MODELS_DIR)")
    parser.add_argument("--device", choices=["auto", "cpu", "cuda"], help="Inference device")
    parser.add_argument("--workers", type=int, help="Stems written in parallel")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Console log level")
    parser.add_argument("--config", help="Path to a JSON config file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = Config(args.config) if args.config else Config()
    if args.device:
        config.set("engine.device", args.device)
    if args.workers is not None:
        config.set("output.max_workers", args.workers)

    setup_logging(
        args.log_level or config.get("logging.level", "WARNING"),
        log_dir=config.get_path("paths.log_dir"),
        file_enabled=bool(config.get("logging.file_enabled", True)),
    )
    logger = logging.getLogger("stemsplit.cli")

    manager = SeparationManager(engine_from_config(config), config)
    try:
        report = manager.run(
            args.input_file,
            args.stem_type,
            output_base=args.output_dir,
            models_dir=args.models_dir,
        )
    except StemSplitError as e:
        logger.debug("Separation aborted", exc_info=True)
        print(f"{e.stage.capitalize()} failed: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except Exception as e:
        # Traceback goes to the log file; the console gets one line
        logger.debug("Unexpected error", exc_info=True)
        print(f"Separation failed: unexpected error: {e!r}", file=sys.stderr)
        return EXIT_FAILURE

    for stem, path in report.output_files.items():
        logger.info(f"  - {stem}: {path}")
    print(f"Separation complete. Output saved to: {report.output_dir}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
