"""
Input format gate.

The separation models only accept 44.1kHz stereo. Anything else is rejected
here, before any samples are decoded and before the engine is called.
"""

import logging
from typing import List

from stemsplit.audio.waveform import AudioFileSpec
from stemsplit.core.errors import UnsupportedFormat

logger = logging.getLogger(__name__)


class FormatValidator:
    """
    Validates an AudioFileSpec against the required sample rate and channels.

    Example:
        >>> validator = FormatValidator()
        >>> validator.validate(AudioFileSpec(44100, 2, 1000))
    """

    REQUIRED_SAMPLE_RATE = 44100
    REQUIRED_CHANNELS = 2

    def __init__(
        self,
        required_sample_rate: int = REQUIRED_SAMPLE_RATE,
        required_channels: int = REQUIRED_CHANNELS,
    ):
        self.required_sample_rate = required_sample_rate
        self.required_channels = required_channels

    def find_mismatches(self, spec: AudioFileSpec) -> List[str]:
        """
        List every way `spec` differs from the required format.

        Returns:
            list: Human-readable mismatch messages, empty if compatible.
        """
        messages = []

        if spec.sample_rate != self.required_sample_rate:
            messages.append(
                f"Sample rate mismatch: {spec.sample_rate}Hz vs required {self.required_sample_rate}Hz"
            )

        if spec.channel_count != self.required_channels:
            messages.append(
                f"Channel mismatch: {spec.channel_count}ch vs required {self.required_channels}ch"
            )

        return messages

    def validate(self, spec: AudioFileSpec) -> None:
        """
        Raise UnsupportedFormat unless `spec` is exactly the required format.

        Raises:
            UnsupportedFormat: On sample rate or channel count mismatch.
        """
        messages = self.find_mismatches(spec)
        if messages:
            reason = "; ".join(messages)
            logger.info(f"Rejected input format: {reason}")
            raise UnsupportedFormat(
                f"Input must be {self.required_sample_rate}Hz with "
                f"{self.required_channels} channels ({reason})"
            )

        logger.debug(
            f"Input format accepted: {spec.sample_rate}Hz, {spec.channel_count}ch, {spec.frame_count} frames"
        )
