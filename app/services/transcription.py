"""Inference adapter using faster-whisper."""

import logging
import threading
import time
from dataclasses import dataclass

import numpy as np

from app.config import get_settings
from app.errors import InferenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscribedSegment:
    """A recognized span of speech, timestamps in seconds."""

    start: float
    end: float
    text: str


def to_centiseconds(seconds: float) -> int:
    """Quantize an engine timestamp to integer hundredths of a second."""
    return max(0, int(round(float(seconds) * 100)))


def clean_text(text: str | bytes) -> str:
    """Decode engine output, replacing invalid UTF-8 with U+FFFD."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return text.strip()


class InferenceService:
    """Drives a Whisper model over float32 sample buffers.

    The model is loaded lazily on first use and shared by every run in the
    process; each call to ``transcribe`` gets its own decoding state.
    """

    def __init__(self) -> None:
        self._model = None
        self._lock = threading.Lock()

    def _get_model(self):
        """Lazy-load the whisper model."""
        with self._lock:
            if self._model is None:
                from faster_whisper import WhisperModel

                settings = get_settings()
                logger.info("Loading whisper model %s on %s", settings.WHISPER_MODEL, settings.WHISPER_DEVICE)
                self._model = WhisperModel(
                    settings.WHISPER_MODEL,
                    device=settings.WHISPER_DEVICE,
                    compute_type=settings.WHISPER_COMPUTE_TYPE,
                )
            return self._model

    def transcribe(self, samples: np.ndarray) -> list[TranscribedSegment]:
        """Run greedy single-pass decoding over the whole buffer.

        Segments come back in engine order. Any failure raises InferenceError
        before anything is returned.
        """
        settings = get_settings()
        try:
            model = self._get_model()
        except Exception as e:
            raise InferenceError(f"Failed to load model '{settings.WHISPER_MODEL}': {e}") from e

        start_time = time.time()
        try:
            segments_iter, info = model.transcribe(
                np.asarray(samples, dtype=np.float32),
                language=settings.WHISPER_LANGUAGE,
                beam_size=1,
                best_of=1,
                temperature=0.0,
            )
            segments = []
            for seg in segments_iter:
                start_cs = to_centiseconds(seg.start)
                end_cs = max(start_cs, to_centiseconds(seg.end))
                segments.append(TranscribedSegment(start=start_cs / 100.0, end=end_cs / 100.0, text=clean_text(seg.text)))
        except Exception as e:
            raise InferenceError(f"Transcription failed: {e}") from e

        logger.info(
            "Decoded %d segments in %.2fs (language=%s)",
            len(segments),
            time.time() - start_time,
            getattr(info, "language", None),
        )
        return segments


_inference_service: InferenceService | None = None


def get_inference_service() -> InferenceService:
    """Get singleton inference service instance."""
    global _inference_service
    if _inference_service is None:
        _inference_service = InferenceService()
    return _inference_service
