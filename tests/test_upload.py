import base64

import pytest

from x_cli.core.errors import (
    HttpError,
    MediaProcessingFailed,
    MediaProcessingTimeout,
    ProtocolError,
    UnsupportedMediaType,
    UsageError,
)
from x_cli.core.upload import (
    SEGMENT_SIZE,
    ChunkedUploader,
    UploadEvent,
    UploadSession,
    UploadState,
    media_category_for,
    mime_type_for,
    split_segments,
)

UPLOAD_URL = "https://upload.example.test/1.1/media/upload.json"
INIT_OK = {"media_id_string": "710511363345354753", "media_key": "3_710511363345354753", "expires_after_secs": 86400}


def uploader(transport, sleep=None, **kwargs):
    if sleep is not None:
        kwargs["sleep"] = sleep
    return ChunkedUploader(transport, UPLOAD_URL, **kwargs)


@pytest.mark.parametrize("path, mime, category", [
    ("photo.JPG", "image/jpeg", "tweet_image"),
    ("photo.jpeg", "image/jpeg", "tweet_image"),
    ("shot.png", "image/png", "tweet_image"),
    ("anim.gif", "image/gif", "tweet_image"),
    ("pic.webp", "image/webp", "tweet_image"),
    ("clip.mp4", "video/mp4", "tweet_video"),
])
def test_mime_and_category_from_extension(path, mime, category):
    assert mime_type_for(path) == mime
    assert media_category_for(mime) == category


@pytest.mark.parametrize("path", ["movie.mov", "notes.txt", "noextension"])
def test_unknown_extension_rejected(path):
    with pytest.raises(UnsupportedMediaType):
        mime_type_for(path)


def test_split_one_byte_over_segment_size():
    segments = split_segments(b"\0" * (5 * 1024 * 1024 + 1))
    assert [len(s) for s in segments] == [5242880, 1]
    assert SEGMENT_SIZE == 5242880


def test_split_keeps_byte_order():
    assert split_segments(b"abcdefghij", 4) == [b"abcd", b"efgh", b"ij"]


def test_illegal_transition_is_protocol_error():
    session = UploadSession(media_id="1", total_bytes=1, mime_type="image/png")
    with pytest.raises(ProtocolError):
        session.advance(UploadEvent.FINALIZE_OK)


@pytest.mark.asyncio
async def test_image_upload_without_processing(fake_transport, recording_sleep):
    fake_transport.responses = [INIT_OK, {}, {}, {}, {"media_id_string": INIT_OK["media_id_string"], "size": 10}]
    result = await uploader(fake_transport, recording_sleep, segment_size=4).upload(
        "photo.png", file_bytes=b"0123456789"
    )

    assert result.media_id == "710511363345354753"
    assert result.media_key == "3_710511363345354753"
    assert recording_sleep.delays == []

    init, *appends, finalize = fake_transport.calls
    assert init.kind == "form"
    assert init.payload == {
        "command": "INIT",
        "total_bytes": "10",
        "media_type": "image/png",
        "media_category": "tweet_image",
    }
    assert [c.kind for c in appends] == ["multipart"] * 3
    assert [c.payload["segment_index"] for c in appends] == ["0", "1", "2"]
    assert [base64.b64decode(c.payload["media_data"]) for c in appends] == [b"0123", b"4567", b"89"]
    assert all(c.payload["media_id"] == "710511363345354753" for c in appends)
    assert finalize.kind == "form"
    assert finalize.payload == {"command": "FINALIZE", "media_id": "710511363345354753"}


@pytest.mark.asyncio
async def test_image_ignores_processing_info(fake_transport, recording_sleep):
    fake_transport.responses = [INIT_OK, {}, {"processing_info": {"state": "pending"}}]
    result = await uploader(fake_transport, recording_sleep).upload("photo.png", file_bytes=b"x")
    assert result.media_id == INIT_OK["media_id_string"]
    assert len(fake_transport.calls) == 3


@pytest.mark.asyncio
async def test_video_polls_status_until_succeeded(fake_transport, recording_sleep):
    fake_transport.responses = [
        {"media_id_string": "77"},
        {},
        {"media_id_string": "77", "processing_info": {"state": "pending", "check_after_secs": 0}},
        {"processing_info": {"state": "in_progress", "check_after_secs": 2, "progress_percent": 40}},
        {"processing_info": {"state": "succeeded", "progress_percent": 100}},
    ]
    result = await uploader(fake_transport, recording_sleep).upload("clip.mp4", file_bytes=b"video")

    assert result.media_id == "77"
    assert recording_sleep.delays == [0, 2]
    status_calls = fake_transport.calls[3:]
    assert [c.method for c in status_calls] == ["GET", "GET"]
    assert all(c.url == f"{UPLOAD_URL}?command=STATUS&media_id=77" for c in status_calls)
    assert fake_transport.calls[0].payload["media_category"] == "tweet_video"


@pytest.mark.asyncio
async def test_video_missing_check_after_defaults_to_five_seconds(fake_transport, recording_sleep):
    fake_transport.responses = [
        {"media_id_string": "77"},
        {},
        {"processing_info": {"state": "pending"}},
        {},
    ]
    await uploader(fake_transport, recording_sleep).upload("clip.mp4", file_bytes=b"video")
    assert recording_sleep.delays == [5.0]


@pytest.mark.asyncio
async def test_video_processing_failure_carries_server_detail(fake_transport, recording_sleep):
    detail = {"code": 1, "name": "InvalidMedia", "message": "Unsupported video format"}
    fake_transport.responses = [
        {"media_id_string": "77"},
        {},
        {"processing_info": {"state": "pending", "check_after_secs": 1}},
        {"processing_info": {"state": "failed", "error": detail}},
    ]
    with pytest.raises(MediaProcessingFailed) as exc:
        await uploader(fake_transport, recording_sleep).upload("clip.mp4", file_bytes=b"video")
    assert exc.value.detail == detail
    assert exc.value.details()["error"] == detail
    assert "Unsupported video format" in exc.value.message


@pytest.mark.asyncio
async def test_optional_processing_bound(fake_transport, recording_sleep):
    pending = {"processing_info": {"state": "in_progress", "check_after_secs": 5}}
    fake_transport.responses = [{"media_id_string": "77"}, {}, pending, pending, pending]
    with pytest.raises(MediaProcessingTimeout) as exc:
        await uploader(fake_transport, recording_sleep, max_processing_wait=7).upload(
            "clip.mp4", file_bytes=b"video"
        )
    assert recording_sleep.delays == [5]
    assert exc.value.waited_seconds == 5


@pytest.mark.asyncio
async def test_init_without_media_id_is_protocol_error(fake_transport):
    fake_transport.responses = [{"expires_after_secs": 100}]
    with pytest.raises(ProtocolError):
        await uploader(fake_transport).upload("photo.png", file_bytes=b"x")
    assert len(fake_transport.calls) == 1


@pytest.mark.asyncio
async def test_finalize_with_malformed_processing_info_is_protocol_error(fake_transport, recording_sleep):
    fake_transport.responses = [{"media_id_string": "77"}, {}, {"processing_info": {"check_after_secs": 1}}]
    with pytest.raises(ProtocolError) as exc:
        await uploader(fake_transport, recording_sleep).upload("clip.mp4", file_bytes=b"video")
    assert "media FINALIZE" in exc.value.message
    assert "processing_info.state" in exc.value.message
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_status_with_malformed_error_is_protocol_error(fake_transport, recording_sleep):
    fake_transport.responses = [
        {"media_id_string": "77"},
        {},
        {"processing_info": {"state": "pending", "check_after_secs": 1}},
        {"processing_info": {"state": "failed", "error": "boom"}},
    ]
    with pytest.raises(ProtocolError) as exc:
        await uploader(fake_transport, recording_sleep).upload("clip.mp4", file_bytes=b"video")
    assert "media STATUS" in exc.value.message
    assert len(fake_transport.calls) == 4


@pytest.mark.asyncio
async def test_append_failure_stops_upload(fake_transport):
    fake_transport.responses = [INIT_OK, {}, HttpError(500, "boom")]
    with pytest.raises(HttpError):
        await uploader(fake_transport, segment_size=2).upload("photo.png", file_bytes=b"abcdef")
    assert [c.payload["command"] for c in fake_transport.calls] == ["INIT", "APPEND", "APPEND"]


@pytest.mark.asyncio
async def test_finalize_media_key_wins(fake_transport):
    fake_transport.responses = [{"media_id_string": "5", "media_key": "old"}, {}, {"media_key": "new"}]
    result = await uploader(fake_transport).upload("photo.gif", file_bytes=b"x")
    assert result.media_key == "new"


@pytest.mark.asyncio
async def test_local_errors_make_no_calls(fake_transport, tmp_path):
    with pytest.raises(UnsupportedMediaType):
        await uploader(fake_transport).upload("movie.mov", file_bytes=b"x")
    with pytest.raises(UsageError):
        await uploader(fake_transport).upload(str(tmp_path / "missing.png"))
    empty = tmp_path / "empty.png"
    empty.write_bytes(b"")
    with pytest.raises(UsageError):
        await uploader(fake_transport).upload(str(empty))
    assert fake_transport.calls == []


@pytest.mark.asyncio
async def test_reads_file_from_disk(fake_transport, tmp_path):
    image = tmp_path / "photo.webp"
    image.write_bytes(b"RIFF")
    fake_transport.responses = [INIT_OK, {}, {}]
    await uploader(fake_transport).upload(str(image))
    assert fake_transport.calls[0].payload["total_bytes"] == "4"
    assert base64.b64decode(fake_transport.calls[1].payload["media_data"]) == b"RIFF"


def test_session_result_requires_success():
    session = UploadSession(media_id="1", total_bytes=1, mime_type="video/mp4")
    for event in (UploadEvent.APPEND_OK, UploadEvent.APPEND_DONE, UploadEvent.FINALIZE_OK,
                  UploadEvent.PROCESSING_STARTED):
        session.advance(event)
    assert session.state is UploadState.PROCESSING
    with pytest.raises(ProtocolError):
        session.result()
    session.advance(UploadEvent.STATUS_SUCCEEDED)
    assert session.result().media_id == "1"
