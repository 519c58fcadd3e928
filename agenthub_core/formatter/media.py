"""Media helpers shared by the vendor formatters.

Handles:
- Detecting local paths vs. remote URLs
- Reading local files / downloading URLs as base64
- MIME type and extension inference
"""

import base64
import logging
import os
from pathlib import Path
from typing import Tuple

import httpx

from ..message import Base64Source, Source, URLSource

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 50 * 1024 * 1024
WARN_FILE_SIZE = 10 * 1024 * 1024

_REMOTE_PREFIXES = ("http://", "https://", "ftp://", "file://", "oss://")

_MEDIA_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
    "mp3": "audio/mp3",
    "wav": "audio/wav",
    "aiff": "audio/aiff",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
    "mp4": "video/mp4",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "webm": "video/webm",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "3gp": "video/3gpp",
    "3gpp": "video/3gpp",
}

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "heic", "heif"}
AUDIO_EXTENSIONS = {"wav", "mp3"}
VIDEO_EXTENSIONS = {"mp4", "mpeg", "mpg", "mov", "avi", "webm", "wmv", "flv", "3gp", "3gpp"}


def is_local_file(url: str) -> bool:
    """True when ``url`` is a filesystem path rather than a remote URL."""
    return not url.lower().startswith(_REMOTE_PREFIXES)


def get_extension(path: str) -> str:
    """Lower-case extension without the dot, or ``""``.

    The dot must come after the last slash so ``a.b/c`` has no extension.
    """
    dot = path.rfind(".")
    slash = max(path.rfind("/"), path.rfind("\\"))
    if dot == -1 or dot < slash:
        return ""
    return path[dot + 1:].split("?")[0].lower()


def determine_media_type(path: str) -> str:
    return _MEDIA_TYPES.get(get_extension(path), "application/octet-stream")


def _validate_extension(path: str, allowed: set, kind: str) -> None:
    ext = get_extension(path)
    if ext not in allowed:
        raise ValueError(
            f"Unsupported {kind} extension '{ext}' for {path}. "
            f"Supported: {sorted(allowed)}"
        )


def validate_image_extension(path: str) -> None:
    _validate_extension(path, IMAGE_EXTENSIONS, "image")


def validate_audio_extension(path: str) -> None:
    _validate_extension(path, AUDIO_EXTENSIONS, "audio")


def validate_video_extension(path: str) -> None:
    _validate_extension(path, VIDEO_EXTENSIONS, "video")


def infer_audio_format(media_type: str) -> str:
    """Audio format name for OpenAI ``input_audio`` parts."""
    media_type = (media_type or "").lower()
    for fmt in ("wav", "opus", "flac"):
        if fmt in media_type:
            return fmt
    return "mp3"


def file_to_base64(path: str) -> str:
    """Read a local file and return its base64 encoding.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file exceeds the 50MB limit
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    size = file_path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValueError(
            f"File too large: {size} bytes (max {MAX_FILE_SIZE} bytes): {path}"
        )
    if size > WARN_FILE_SIZE:
        logger.warning(f"Large file ({size / 1024 / 1024:.1f}MB) being encoded: {path}")

    return base64.b64encode(file_path.read_bytes()).decode("ascii")


def download_url_to_base64(url: str, timeout: float = 30.0) -> str:
    """Download a remote resource and return its base64 encoding."""
    response = httpx.get(url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()
    if len(response.content) > MAX_FILE_SIZE:
        raise ValueError(f"Downloaded content too large: {len(response.content)} bytes")
    return base64.b64encode(response.content).decode("ascii")


def source_to_base64(source: Source) -> Tuple[str, str]:
    """Return ``(base64_data, media_type)`` for any source."""
    if isinstance(source, Base64Source):
        return source.data, source.media_type
    url = source.url
    media_type = determine_media_type(url)
    if is_local_file(url):
        return file_to_base64(url), media_type
    if url.startswith("file://"):
        return file_to_base64(url[len("file://"):]), media_type
    return download_url_to_base64(url), media_type


def to_file_protocol_url(path: str) -> str:
    if path.startswith("file://"):
        return path
    return "file://" + os.path.abspath(path)


def url_to_base64_data_url(url: str) -> str:
    """Encode a local file or remote URL as ``data:{mime};base64,{b64}``."""
    data, media_type = source_to_base64(URLSource(url))
    return f"data:{media_type};base64,{data}"


def source_to_data_url(source: Source) -> str:
    data, media_type = source_to_base64(source)
    return f"data:{media_type};base64,{data}"
