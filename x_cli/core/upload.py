"""
Chunked media upload against the v1.1 media endpoint.

INIT (form) -> APPEND per 5 MiB segment (multipart, in order) -> FINALIZE (form)
-> STATUS polling for videos the server is still transcoding.
"""

import asyncio
import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from ..models.api_models import (
    MediaFinalizeResponse,
    MediaInitResponse,
    MediaStatusResponse,
    MediaUploadResult,
    ProcessingInfo,
)
from ..utils.logger import get_logger
from .classifier import decode_body
from .errors import (
    MediaProcessingFailed,
    MediaProcessingTimeout,
    ProtocolError,
    UnsupportedMediaType,
    UsageError,
)

logger = get_logger(__name__)

SEGMENT_SIZE = 5 * 1024 * 1024
DEFAULT_CHECK_AFTER_SECS = 5.0

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
}


def mime_type_for(file_path: str) -> str:
    """Map a file extension to its MIME type; no content sniffing."""
    extension = Path(file_path).suffix.lower()
    try:
        return MIME_TYPES[extension]
    except KeyError:
        raise UnsupportedMediaType(extension, sorted(MIME_TYPES)) from None


def media_category_for(mime_type: str) -> str:
    return "tweet_video" if mime_type.startswith("video/") else "tweet_image"


def is_video(mime_type: str) -> bool:
    return mime_type.startswith("video/")


def split_segments(data: bytes, segment_size: int = SEGMENT_SIZE) -> List[bytes]:
    """Fixed-size segments in file order; the last may be shorter."""
    if segment_size <= 0:
        raise ValueError("segment_size must be positive")
    return [data[i:i + segment_size] for i in range(0, len(data), segment_size)]


class UploadState(str, Enum):
    INITIATED = "initiated"
    APPENDING = "appending"
    APPENDED = "appended"
    FINALIZED = "finalized"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class UploadEvent(str, Enum):
    APPEND_OK = "append_ok"
    APPEND_DONE = "append_done"
    APPEND_FAILED = "append_failed"
    FINALIZE_OK = "finalize_ok"
    NO_PROCESSING = "no_processing"
    PROCESSING_STARTED = "processing_started"
    STATUS_PENDING = "status_pending"
    STATUS_SUCCEEDED = "status_succeeded"
    STATUS_FAILED = "status_failed"


TRANSITIONS: Dict[Tuple[UploadState, UploadEvent], UploadState] = {
    (UploadState.INITIATED, UploadEvent.APPEND_OK): UploadState.APPENDING,
    (UploadState.INITIATED, UploadEvent.APPEND_FAILED): UploadState.FAILED,
    (UploadState.APPENDING, UploadEvent.APPEND_OK): UploadState.APPENDING,
    (UploadState.APPENDING, UploadEvent.APPEND_FAILED): UploadState.FAILED,
    (UploadState.APPENDING, UploadEvent.APPEND_DONE): UploadState.APPENDED,
    (UploadState.APPENDED, UploadEvent.FINALIZE_OK): UploadState.FINALIZED,
    (UploadState.FINALIZED, UploadEvent.NO_PROCESSING): UploadState.SUCCEEDED,
    (UploadState.FINALIZED, UploadEvent.PROCESSING_STARTED): UploadState.PROCESSING,
    (UploadState.PROCESSING, UploadEvent.STATUS_PENDING): UploadState.PROCESSING,
    (UploadState.PROCESSING, UploadEvent.STATUS_SUCCEEDED): UploadState.SUCCEEDED,
    (UploadState.PROCESSING, UploadEvent.STATUS_FAILED): UploadState.FAILED,
}


@dataclass
class UploadSession:
    """Progress of one upload; each upload gets its own session."""

    media_id: str
    total_bytes: int
    mime_type: str
    media_key: Optional[str] = None
    state: UploadState = UploadState.INITIATED
    segments_sent: int = 0
    waited_seconds: float = 0.0
    history: List[UploadState] = field(default_factory=list)

    def advance(self, event: UploadEvent) -> UploadState:
        next_state = TRANSITIONS.get((self.state, event))
        if next_state is None:
            raise ProtocolError(
                f"Illegal upload transition: {event.value} while {self.state.value}"
            )
        self.history.append(self.state)
        self.state = next_state
        return next_state

    def result(self) -> MediaUploadResult:
        if self.state is not UploadState.SUCCEEDED:
            raise ProtocolError(f"Upload not finished (state: {self.state.value})")
        return MediaUploadResult(media_id=self.media_id, media_key=self.media_key)


def _check_after(info: ProcessingInfo) -> float:
    if info.check_after_secs is None:
        return DEFAULT_CHECK_AFTER_SECS
    return max(float(info.check_after_secs), 0.0)


class ChunkedUploader:
    """Drives the INIT/APPEND/FINALIZE/STATUS exchange over a Transport."""

    def __init__(
        self,
        transport,
        upload_url: str,
        segment_size: int = SEGMENT_SIZE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_processing_wait: Optional[float] = None,
    ):
        self.transport = transport
        self.upload_url = upload_url
        self.segment_size = segment_size
        self._sleep = sleep
        self.max_processing_wait = max_processing_wait

    async def upload(
        self,
        file_path: str,
        file_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> MediaUploadResult:
        """
        Upload a media file.

        Args:
            file_path: Path of the file; its extension decides the MIME type
            file_bytes: File contents, read from file_path when omitted
            mime_type: Explicit MIME type, derived from the extension when omitted

        Returns:
            MediaUploadResult with the media id (and media key, if any)
        """
        mime_type = mime_type or mime_type_for(file_path)
        if file_bytes is None:
            path = Path(file_path)
            if not path.is_file():
                raise UsageError(f"File not found: {file_path}")
            file_bytes = path.read_bytes()
        if not file_bytes:
            raise UsageError(f"File is empty: {file_path}")

        session = await self.init(len(file_bytes), mime_type)
        logger.info(f"Upload initialized: media_id={session.media_id} ({len(file_bytes)} bytes, {mime_type})")

        await self.append_all(session, file_bytes)
        info = await self.finalize(session)

        if session.state is UploadState.PROCESSING:
            await self.wait_for_processing(session, info)

        return session.result()

    async def init(self, total_bytes: int, mime_type: str) -> UploadSession:
        body = await self.transport.post_form(self.upload_url, {
            "command": "INIT",
            "total_bytes": str(total_bytes),
            "media_type": mime_type,
            "media_category": media_category_for(mime_type),
        })
        init = decode_body(MediaInitResponse, body, "media INIT")
        return UploadSession(
            media_id=init.media_id_string,
            total_bytes=total_bytes,
            mime_type=mime_type,
            media_key=init.media_key,
        )

    async def append_all(self, session: UploadSession, file_bytes: bytes) -> None:
        segments = split_segments(file_bytes, self.segment_size)
        for index, segment in enumerate(segments):
            try:
                await self.transport.post_multipart(self.upload_url, {
                    "command": "APPEND",
                    "media_id": session.media_id,
                    "segment_index": str(index),
                    "media_data": base64.b64encode(segment).decode("ascii"),
                })
            except Exception as e:
                logger.error(f"APPEND of segment {index} failed for media {session.media_id}: {str(e)}")
                session.advance(UploadEvent.APPEND_FAILED)
                raise
            session.advance(UploadEvent.APPEND_OK)
            session.segments_sent += 1
            logger.debug(f"Appended segment {index + 1}/{len(segments)} for media {session.media_id}")
        session.advance(UploadEvent.APPEND_DONE)

    async def finalize(self, session: UploadSession) -> Optional[ProcessingInfo]:
        body = await self.transport.post_form(self.upload_url, {
            "command": "FINALIZE",
            "media_id": session.media_id,
        })
        finalize = decode_body(MediaFinalizeResponse, body, "media FINALIZE")
        session.advance(UploadEvent.FINALIZE_OK)
        if finalize.media_key:
            session.media_key = finalize.media_key

        info = finalize.processing_info
        if is_video(session.mime_type) and info is not None:
            session.advance(UploadEvent.PROCESSING_STARTED)
            return info
        session.advance(UploadEvent.NO_PROCESSING)
        return None

    def status_url(self, media_id: str) -> str:
        return f"{self.upload_url}?{urlencode({'command': 'STATUS', 'media_id': media_id})}"

    async def wait_for_processing(self, session: UploadSession, info: ProcessingInfo) -> None:
        """Poll STATUS until the server reports a terminal state."""
        while True:
            if info.state == "succeeded":
                session.advance(UploadEvent.STATUS_SUCCEEDED)
                return
            if info.state == "failed":
                session.advance(UploadEvent.STATUS_FAILED)
                raise MediaProcessingFailed(session.media_id, info.error or {"state": "failed"})
            if session.state is not UploadState.PROCESSING:
                raise ProtocolError(f"Unexpected upload state {session.state.value}")

            delay = _check_after(info)
            if self.max_processing_wait is not None and session.waited_seconds + delay > self.max_processing_wait:
                raise MediaProcessingTimeout(session.media_id, session.waited_seconds)

            progress = f" ({info.progress_percent}%)" if info.progress_percent is not None else ""
            logger.info(f"Media {session.media_id} {info.state}{progress}; checking again in {delay:g}s")
            await self._sleep(delay)
            session.waited_seconds += delay

            body = await self.transport.get(self.status_url(session.media_id))
            status = decode_body(MediaStatusResponse, body, "media STATUS")
            if status.processing_info is None:
                info = ProcessingInfo(state="succeeded")
            else:
                info = status.processing_info
                if info.state not in ("succeeded", "failed"):
                    session.advance(UploadEvent.STATUS_PENDING)
