"""PCM WAV read/write for AudioBuffer.

Writes are always 16-bit signed PCM. Reads accept 16, 24 and 32-bit PCM,
in either the plain or the WAVE_FORMAT_EXTENSIBLE header; any other
sample width is scaled as if it were 16-bit.
"""

import io
import logging
import os
import struct
import tempfile
import wave
from pathlib import Path

import numpy as np

from .buffer import AudioBuffer

log = logging.getLogger("wav")

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

# Full-scale divisors per bit depth
_DIVISORS = {
    16: 32768.0,
    24: 8388608.0,
    32: 2147483648.0,
}


class WavFormatError(ValueError):
    """Raised when bytes are not a readable PCM WAV container."""


def _decode_frames(raw: bytes, sampwidth: int) -> np.ndarray:
    """Interleaved PCM bytes -> float32 samples (still interleaved)."""
    bits = sampwidth * 8
    if bits == 16:
        ints = np.frombuffer(raw, dtype="<i2").astype(np.int32)
    elif bits == 24:
        b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        ints = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
        # Sign-extend from 24 bits
        ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
    elif bits == 32:
        ints = np.frombuffer(raw, dtype="<i4").astype(np.int64)
    else:
        log.debug("Unsupported bit depth %d, reading as 16-bit", bits)
        if sampwidth == 1:
            # 8-bit WAV is unsigned; recentre before scaling
            ints = np.frombuffer(raw, dtype=np.uint8).astype(np.int32) - 128
        else:
            ints = np.frombuffer(raw[: len(raw) // 2 * 2], dtype="<i2").astype(np.int32)
        bits = 16

    return (ints / _DIVISORS[bits]).astype(np.float32)


def _as_plain_pcm(data: bytes) -> bytes:
    """Rewrite a WAVE_FORMAT_EXTENSIBLE fmt chunk with a PCM subformat as plain PCM.

    `wave` only understands format tag 1 before Python 3.12, while most
    tools write the extensible header for anything above 16 bits. The
    layout of the first 16 bytes is identical, so patching the tag is enough.
    Anything else is returned untouched.
    """
    if len(data) < 12 or data[:4] != b"RIFF" or data[8:12] != b"WAVE":
        return data

    pos = 12
    while pos + 8 <= len(data):
        chunk_id = data[pos:pos + 4]
        size = struct.unpack_from("<I", data, pos + 4)[0]
        body = pos + 8
        if chunk_id == b"fmt ":
            # tag at 0, SubFormat GUID at 24 (its first two bytes are the format code)
            if size < 26 or body + 26 > len(data):
                return data
            tag = struct.unpack_from("<H", data, body)[0]
            if tag != WAVE_FORMAT_EXTENSIBLE:
                return data
            subformat = struct.unpack_from("<H", data, body + 24)[0]
            if subformat != WAVE_FORMAT_PCM:
                return data
            patched = bytearray(data)
            struct.pack_into("<H", patched, body, WAVE_FORMAT_PCM)
            return bytes(patched)
        # Chunks are word aligned
        pos = body + size + (size & 1)
    return data


def _read(handle) -> AudioBuffer:
    try:
        with wave.open(handle, "rb") as wf:
            channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            rate = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise WavFormatError(f"Not a readable PCM WAV: {e}") from e

    if channels < 1:
        raise WavFormatError("WAV declares zero channels")

    frame_bytes = channels * sampwidth
    raw = raw[: len(raw) // frame_bytes * frame_bytes]
    interleaved = _decode_frames(raw, sampwidth)
    frames = len(interleaved) // channels
    samples = interleaved[: frames * channels].reshape(frames, channels).T
    return AudioBuffer(np.ascontiguousarray(samples), rate)


def from_wav_bytes(data: bytes) -> AudioBuffer:
    """Decode an in-memory WAV file."""
    return _read(io.BytesIO(_as_plain_pcm(data)))


def read_wav(path) -> AudioBuffer:
    """Decode a WAV file on disk."""
    return from_wav_bytes(Path(path).read_bytes())


def _encode(buffer: AudioBuffer, handle) -> None:
    clipped = np.clip(buffer.samples, -1.0, 1.0)
    # Truncate toward zero, matching a plain float -> int16 cast
    pcm = (clipped * 32767.0).astype(np.int16)
    with wave.open(handle, "wb") as wf:
        wf.setnchannels(buffer.num_channels)
        wf.setsampwidth(2)
        wf.setframerate(buffer.sample_rate)
        wf.writeframes(pcm.T.astype("<i2").tobytes())


def to_wav_bytes(buffer: AudioBuffer) -> bytes:
    """Encode a buffer as a 16-bit PCM WAV file in memory."""
    out = io.BytesIO()
    _encode(buffer, out)
    return out.getvalue()


def write_wav(buffer: AudioBuffer, path) -> Path:
    """Write a 16-bit PCM WAV file.

    The data goes to a temporary file in the target directory first and is
    renamed into place, so a failed write never leaves a partial file behind.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            _encode(buffer, fh)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log.info("Wrote %s (%d ch, %d Hz, %.2fs)", path, buffer.num_channels,
             buffer.sample_rate, buffer.duration)
    return path
