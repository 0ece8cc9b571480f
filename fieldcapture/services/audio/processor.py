"""Audio processing utilities for PCM data.

Packages raw microphone PCM into WAV containers for the speech-to-text
service and measures clip duration.
"""

import io
import wave


class AudioProcessor:
    """Handles PCM audio data packaging and analysis."""

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        return self.sample_width * self.channels

    def to_wav_bytes(self, pcm_data: bytes) -> bytes:
        """Wrap raw PCM bytes in an in-memory WAV container.

        Trailing bytes that do not fill a whole frame are dropped.

        Args:
            pcm_data: Raw PCM bytes (16-bit, mono).

        Returns:
            A complete WAV file as bytes (header only if pcm_data is empty).
        """
        usable = len(pcm_data) - (len(pcm_data) % self.frame_size)
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data[:usable])
        return buf.getvalue()

    def duration(self, pcm_data: bytes) -> float:
        """Duration of raw PCM data in seconds."""
        return len(pcm_data) / (self.sample_rate * self.frame_size)

