"""Audio acquisition: remote media URL to mono 16 kHz PCM samples.

The downloader (yt-dlp) writes the best audio stream of the URL to its stdout.
That stdout is joined by an OS pipe to the decoder (ffmpeg) stdin, and the
decoder emits raw signed 16-bit little-endian mono PCM at 16 kHz on its stdout.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import numpy as np

from app.config import get_settings
from app.errors import AcquisitionError, ConversionError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
PCM_DTYPE = np.dtype("<i2")
FULL_SCALE = 32768.0
STDERR_TAIL_CHARS = 2000


def decode_pcm(raw: bytes) -> np.ndarray:
    """Decode s16le bytes into int16 samples. A trailing odd byte is dropped."""
    usable = len(raw) - (len(raw) % 2)
    return np.frombuffer(raw[:usable], dtype=PCM_DTYPE).astype(np.int16)


def encode_pcm(samples: np.ndarray) -> bytes:
    """Encode int16 samples back into s16le bytes."""
    return np.asarray(samples, dtype=np.int16).astype(PCM_DTYPE).tobytes()


def to_float(samples: np.ndarray) -> np.ndarray:
    """Normalize int16 samples into float32 in [-1.0, 1.0)."""
    try:
        return (np.asarray(samples, dtype=np.int16).astype(np.float32) / FULL_SCALE).astype(np.float32)
    except (TypeError, ValueError, OverflowError) as e:
        raise ConversionError(f"Sample conversion failed: {e}") from e


def _stderr_tail(stderr: bytes | None) -> str:
    if not stderr:
        return ""
    return stderr.decode("utf-8", errors="replace").strip()[-STDERR_TAIL_CHARS:]


class AudioAcquisitionService:
    """Runs the downloader -> decoder subprocess chain for a URL."""

    def __init__(self, downloader: str | None = None, decoder: str | None = None) -> None:
        settings = get_settings()
        self.downloader = downloader or settings.YTDLP_BINARY
        self.decoder = decoder or settings.FFMPEG_BINARY

    def downloader_args(self, url: str) -> list[str]:
        return [self.downloader, "--quiet", "--no-warnings", "-f", "bestaudio", "-o", "-", url]

    def decoder_args(self) -> list[str]:
        return [
            self.decoder,
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-ac", "1",
            "-ar", str(SAMPLE_RATE),
            "-f", "s16le",
            "pipe:1",
        ]

    @asynccontextmanager
    async def _pipeline(self, url: str) -> AsyncIterator[tuple[asyncio.subprocess.Process, asyncio.subprocess.Process]]:
        """Spawn both processes joined by a pipe; kill and reap them on exit."""
        read_fd, write_fd = os.pipe()
        procs: list[asyncio.subprocess.Process] = []
        try:
            try:
                procs.append(
                    await asyncio.create_subprocess_exec(
                        *self.downloader_args(url),
                        stdin=asyncio.subprocess.DEVNULL,
                        stdout=write_fd,
                        stderr=asyncio.subprocess.PIPE,
                    )
                )
                procs.append(
                    await asyncio.create_subprocess_exec(
                        *self.decoder_args(),
                        stdin=read_fd,
                        stdout=asyncio.subprocess.PIPE,
                        stderr=asyncio.subprocess.PIPE,
                    )
                )
            except (OSError, ValueError) as e:
                raise AcquisitionError(f"Failed to start audio tools: {e}") from e
            finally:
                # Children hold their own copies; the decoder must see EOF once the downloader exits.
                os.close(write_fd)
                os.close(read_fd)
            yield procs[0], procs[1]
        finally:
            for proc in procs:
                if proc.returncode is None:
                    proc.kill()
                    await proc.wait()

    async def acquire(self, url: str) -> np.ndarray:
        """Download and decode `url` into int16 samples. Raises AcquisitionError."""
        logger.info("Acquiring audio for %s", url)
        async with self._pipeline(url) as (downloader, decoder):
            (raw, decoder_err), downloader_err = await asyncio.gather(
                decoder.communicate(),
                downloader.stderr.read(),
            )
            decoder_rc = await decoder.wait()
            downloader_rc = await downloader.wait()

        if decoder_rc != 0:
            logger.error("Decoder exited with %d: %s", decoder_rc, _stderr_tail(decoder_err))
            raise AcquisitionError(f"ffmpeg failed with exit code {decoder_rc}: {_stderr_tail(decoder_err)}")
        if downloader_rc != 0:
            logger.error("Downloader exited with %d: %s", downloader_rc, _stderr_tail(downloader_err))
            raise AcquisitionError(f"yt-dlp failed with exit code {downloader_rc}: {_stderr_tail(downloader_err)}")

        samples = decode_pcm(raw)
        logger.info("Acquired %d samples (%.1fs) for %s", len(samples), len(samples) / SAMPLE_RATE, url)
        return samples


_audio_service: AudioAcquisitionService | None = None


def get_audio_service() -> AudioAcquisitionService:
    """Get singleton audio acquisition service instance."""
    global _audio_service
    if _audio_service is None:
        _audio_service = AudioAcquisitionService()
    return _audio_service
