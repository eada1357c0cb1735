import logging
import os
import tempfile

import ffmpeg

logger = logging.getLogger(__name__)


def to_wav_16k_mono(src_path: str) -> str:
    """Convert any ffmpeg-readable audio (m4a/aac/ogg/...) to 16k mono wav, return wav path (caller responsible for deletion)"""
    if not os.path.exists(src_path):
        raise FileNotFoundError(f"Input file not found: {src_path}")

    file_size = os.path.getsize(src_path)
    if file_size == 0:
        raise ValueError(f"Input file is empty: {src_path}")

    logger.info("[ffmpeg] Converting %s (%d bytes) to WAV...", src_path, file_size)

    with tempfile.NamedTemporaryFile(delete=False, suffix=".wav") as wav_file:
        try:
            (
                ffmpeg
                .input(src_path)
                .output(
                    wav_file.name,
                    ac=1,                # Mono
                    ar="16000",          # 16kHz sample rate (Whisper recommended)
                    format="wav",
                    acodec="pcm_s16le",  # 16-bit PCM
                    loglevel="error",
                )
                .overwrite_output()
                .run(capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="ignore") if e.stderr else "Unknown error"
            logger.error("[ffmpeg] ERROR converting %s: %s", src_path, stderr)
            if os.path.exists(wav_file.name):
                os.unlink(wav_file.name)
            raise RuntimeError(f"ffmpeg conversion failed: {stderr[:200]}") from e

    wav_size = os.path.getsize(wav_file.name)
    if wav_size == 0:
        os.unlink(wav_file.name)
        raise ValueError(f"Converted WAV file is empty: {wav_file.name}")

    # Check WAV file header (should be "RIFF")
    with open(wav_file.name, "rb") as f:
        wav_header = f.read(4)
    if wav_header != b"RIFF":
        os.unlink(wav_file.name)
        raise ValueError(f"Invalid WAV file header: {wav_header.hex()}")

    logger.info("[ffmpeg] Conversion successful: %s (%d bytes)", wav_file.name, wav_size)
    return wav_file.name
