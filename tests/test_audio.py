"""Tests for audio acquisition and sample conversion."""

import numpy as np
import pytest

from app.errors import AcquisitionError, ConversionError
from app.services.audio import (
    SAMPLE_RATE,
    AudioAcquisitionService,
    decode_pcm,
    encode_pcm,
    to_float,
)


class TestPcmDecoding:
    """Tests for s16le byte decoding."""

    def test_decode_little_endian_pairs(self):
        """Each consecutive byte pair is one little-endian signed sample."""
        raw = bytes([0x01, 0x00, 0xFF, 0xFF, 0x00, 0x80, 0xFF, 0x7F])
        samples = decode_pcm(raw)
        assert samples.dtype == np.int16
        assert samples.tolist() == [1, -1, -32768, 32767]

    def test_round_trip_is_byte_exact(self):
        """Decoding then encoding an even-length stream returns the same bytes."""
        raw = np.random.default_rng(7).integers(0, 256, size=4096, dtype=np.uint8).tobytes()
        assert encode_pcm(decode_pcm(raw)) == raw

    def test_trailing_odd_byte_dropped(self):
        """A dangling half sample is ignored."""
        assert decode_pcm(b"\x02\x00\x03").tolist() == [2]

    def test_empty_stream(self):
        assert decode_pcm(b"").size == 0


class TestToFloat:
    """Tests for int16 -> float32 normalization."""

    def test_length_preserved(self):
        samples = np.arange(-500, 500, dtype=np.int16)
        out = to_float(samples)
        assert len(out) == len(samples)
        assert out.dtype == np.float32

    def test_full_scale_mapping(self):
        """Extremes map to the edges of [-1.0, 1.0]."""
        out = to_float(np.array([-32768, 0, 16384, 32767], dtype=np.int16))
        assert out[0] == -1.0
        assert out[1] == 0.0
        assert out[2] == 0.5
        assert 0.9999 < out[3] < 1.0

    def test_output_within_range(self):
        samples = np.random.default_rng(3).integers(-32768, 32768, size=10000).astype(np.int16)
        out = to_float(samples)
        assert out.min() >= -1.0
        assert out.max() <= 1.0

    def test_deterministic(self):
        samples = np.array([5, -7, 1234], dtype=np.int16)
        assert np.array_equal(to_float(samples), to_float(samples))

    def test_out_of_range_input_fails(self):
        """Values that do not fit in 16 bits are a conversion failure."""
        with pytest.raises(ConversionError, match="Sample conversion failed"):
            to_float([70000])


class TestAcquisitionCommands:
    """Tests for the tool command lines."""

    def test_downloader_args(self):
        service = AudioAcquisitionService(downloader="yt-dlp", decoder="ffmpeg")
        args = service.downloader_args("https://youtu.be/abc")
        assert args[0] == "yt-dlp"
        assert args[-1] == "https://youtu.be/abc"
        assert "bestaudio" in args
        assert args[args.index("-o") + 1] == "-"

    def test_decoder_args(self):
        service = AudioAcquisitionService(downloader="yt-dlp", decoder="ffmpeg")
        args = service.decoder_args()
        assert args[0] == "ffmpeg"
        assert args[args.index("-i") + 1] == "pipe:0"
        assert args[args.index("-ac") + 1] == "1"
        assert args[args.index("-ar") + 1] == str(SAMPLE_RATE)
        assert args[args.index("-f") + 1] == "s16le"
        assert args[-1] == "pipe:1"


class TestAcquire:
    """Tests for the downloader -> decoder subprocess chain."""

    @pytest.mark.anyio
    async def test_acquire_success(self, fake_tools):
        """Bytes flow from downloader through decoder into samples."""
        payload = encode_pcm(np.array([0, 100, -100, 32767, -32768], dtype=np.int16))
        downloader, decoder = fake_tools(payload)

        samples = await AudioAcquisitionService(downloader, decoder).acquire("https://example.com/v")

        assert samples.tolist() == [0, 100, -100, 32767, -32768]

    @pytest.mark.anyio
    async def test_decoder_failure_discards_output(self, fake_tools):
        """A non-zero decoder exit fails even though bytes were produced."""
        payload = encode_pcm(np.ones(64, dtype=np.int16))
        downloader, decoder = fake_tools(payload, decoder_exit=1)

        with pytest.raises(AcquisitionError, match="ffmpeg failed"):
            await AudioAcquisitionService(downloader, decoder).acquire("https://example.com/v")

    @pytest.mark.anyio
    async def test_downloader_failure(self, fake_tools):
        """A non-zero downloader exit fails the acquisition."""
        downloader, decoder = fake_tools(b"\x00\x00", downloader_exit=2)

        with pytest.raises(AcquisitionError, match="yt-dlp failed with exit code 2"):
            await AudioAcquisitionService(downloader, decoder).acquire("https://example.com/v")

    @pytest.mark.anyio
    async def test_missing_tool(self, tmp_path, fake_tools):
        """A tool that cannot be spawned is an acquisition failure."""
        _, decoder = fake_tools(b"")
        service = AudioAcquisitionService(str(tmp_path / "no-such-yt-dlp"), decoder)

        with pytest.raises(AcquisitionError, match="Failed to start audio tools"):
            await service.acquire("https://example.com/v")

    @pytest.mark.anyio
    async def test_unspawnable_argument(self, fake_tools):
        """An argument the OS cannot pass to a child is an acquisition failure."""
        downloader, decoder = fake_tools(b"\x00\x00")

        with pytest.raises(AcquisitionError, match="Failed to start audio tools"):
            await AudioAcquisitionService(downloader, decoder).acquire("https://example.com/a\x00b")

    @pytest.mark.anyio
    async def test_missing_decoder_reaps_downloader(self, tmp_path, fake_tools):
        """When the decoder cannot start, the already running downloader is cleaned up."""
        downloader, _ = fake_tools(b"\x00\x00")
        service = AudioAcquisitionService(downloader, str(tmp_path / "no-such-ffmpeg"))

        with pytest.raises(AcquisitionError):
            await service.acquire("https://example.com/v")
