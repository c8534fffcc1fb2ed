import subprocess

import numpy as np
import pytest
import soundfile as sf

from audio_extract.audio.decoder import SampleDecoder
from audio_extract.audio.types import MediaInput
from audio_extract.decoders import FfmpegDecoder, SoundfileDecoder
from audio_extract.decoders.ffmpeg_backend import classify_stderr
from audio_extract.errors import DecodeError, DecodeFailure
from audio_extract.settings import ConverterSettings

from conftest import wav_bytes


def _settings(**overrides) -> ConverterSettings:
    values = dict(
        max_bytes=1024 * 1024,
        decoder="soundfile",
        encoder="none",
        ffmpeg_path="ffmpeg",
        render_quantum_frames=128,
        encoder_block_frames=4096,
        default_format="wav",
    )
    values.update(overrides)
    return ConverterSettings(**values)


@pytest.mark.asyncio
async def test_soundfile_decoder_reads_channels_and_rate(stereo_frames, stereo_wav):
    decoder = SampleDecoder(backend=SoundfileDecoder())

    decoded = await decoder.decode(MediaInput(data=stereo_wav, content_type="audio/wav"))

    assert decoded.channel_count == 2
    assert decoded.sample_rate == 8000
    assert decoded.frame_count == stereo_frames.shape[0]
    assert all(len(ch) == decoded.frame_count for ch in decoded.channels)
    assert np.allclose(decoded.channels[0], stereo_frames[:, 0], atol=1.0 / 32768)


@pytest.mark.asyncio
async def test_soundfile_decoder_rejects_garbage():
    decoder = SampleDecoder(backend=SoundfileDecoder())

    with pytest.raises(DecodeError) as excinfo:
        await decoder.decode(MediaInput(data=b"definitely not audio" * 10, content_type="audio/mpeg"))

    assert excinfo.value.reason in {DecodeFailure.UNSUPPORTED_CONTAINER, DecodeFailure.CORRUPT_DATA}
    assert str(excinfo.value) == excinfo.value.user_message


@pytest.mark.asyncio
async def test_empty_input_is_corrupt():
    with pytest.raises(DecodeError) as excinfo:
        await SoundfileDecoder().decode(MediaInput(data=b"", content_type="audio/wav"))

    assert excinfo.value.reason is DecodeFailure.CORRUPT_DATA


@pytest.mark.asyncio
async def test_ffmpeg_decoder_reads_extracted_wav(monkeypatch, stereo_frames):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        sf.write(cmd[-1], stereo_frames, 16000, format="WAV", subtype="FLOAT")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr("audio_extract.decoders.ffmpeg_backend.subprocess.run", fake_run)

    decoded = await FfmpegDecoder(ffmpeg_path="/opt/ffmpeg").decode(
        MediaInput(data=b"\x00\x00\x00\x18ftypmp42", content_type="video/mp4")
    )

    assert calls and calls[0][0] == "/opt/ffmpeg"
    assert "-vn" in calls[0]
    assert decoded.channel_count == 2
    assert decoded.sample_rate == 16000
    assert np.array_equal(decoded.channels[1], stereo_frames[:, 1])


@pytest.mark.asyncio
async def test_ffmpeg_decoder_maps_missing_audio_stream(monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Stream map '0:a:0' matches no streams.")

    monkeypatch.setattr("audio_extract.decoders.ffmpeg_backend.subprocess.run", fake_run)

    with pytest.raises(DecodeError) as excinfo:
        await FfmpegDecoder().decode(MediaInput(data=b"video-only", content_type="video/mp4"))

    assert excinfo.value.reason is DecodeFailure.NO_AUDIO_TRACK
    assert "audio track" in excinfo.value.user_message


@pytest.mark.parametrize(
    "stderr,reason",
    [
        ("input: Invalid data found when processing input", DecodeFailure.UNSUPPORTED_CONTAINER),
        ("Output file #0 does not contain any stream", DecodeFailure.NO_AUDIO_TRACK),
        ("Error while decoding stream #0:0", DecodeFailure.CORRUPT_DATA),
    ],
)
def test_classify_ffmpeg_stderr(stderr, reason):
    assert classify_stderr(stderr) is reason


def test_from_settings_selects_backend(monkeypatch):
    assert isinstance(SampleDecoder.from_settings(_settings(decoder="soundfile")).backend, SoundfileDecoder)
    assert isinstance(SampleDecoder.from_settings(_settings(decoder="ffmpeg")).backend, FfmpegDecoder)

    monkeypatch.setattr("audio_extract.audio.decoder.shutil.which", lambda _name: None)
    assert isinstance(SampleDecoder.from_settings(_settings(decoder="auto")).backend, SoundfileDecoder)

    monkeypatch.setattr("audio_extract.audio.decoder.shutil.which", lambda name: f"/usr/bin/{name}")
    assert isinstance(SampleDecoder.from_settings(_settings(decoder="auto")).backend, FfmpegDecoder)


def test_from_settings_unknown_backend():
    with pytest.raises(RuntimeError):
        SampleDecoder.from_settings(_settings(decoder="gstreamer"))


@pytest.mark.asyncio
async def test_decoder_preserves_mono_layout():
    data = wav_bytes(np.zeros(100, dtype=np.float32), 11025)

    decoded = await SampleDecoder().decode(MediaInput(data=data, content_type="audio/x-wav"))

    assert decoded.channel_count == 1
    assert decoded.frame_count == 100
    assert decoded.sample_rate == 11025
