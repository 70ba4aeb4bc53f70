"""Runtime configuration read from the environment.

Only deployment knobs live here. Algorithm constants (window sizes, block
length, classifier tables) are module constants next to the code using them.
"""

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


ENABLE_QUALITY_ANALYSIS = _env_bool("ENABLE_QUALITY_ANALYSIS", True)
QUALITY_ANALYSIS_DEBUG = _env_bool("QUALITY_ANALYSIS_DEBUG", False)

FFMPEG_BINARY = os.getenv("FFMPEG_BINARY") or "ffmpeg"
FFPROBE_BINARY = os.getenv("FFPROBE_BINARY") or "ffprobe"
FFMPEG_TIMEOUT_SEC = _env_float("FFMPEG_TIMEOUT_SEC", 120.0)

# "ffmpeg" shells out for every format; "soundfile" reads wav/flac/ogg in-process
PCM_BACKEND = (os.getenv("PCM_BACKEND") or "ffmpeg").strip().lower()

# "ffmpeg" (ebur128 filter), "pyloudnorm" (on decoded PCM) or "off"
LOUDNESS_BACKEND = (os.getenv("LOUDNESS_BACKEND") or "ffmpeg").strip().lower()

# Telegram bot upload ceiling
MAX_UPLOAD_BYTES = int(_env_float("MAX_UPLOAD_BYTES", 50 * 1024 * 1024))

HOST = os.getenv("HOST") or "0.0.0.0"
PORT = int(_env_float("PORT", 8000))
