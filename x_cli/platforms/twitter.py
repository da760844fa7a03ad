from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode
import re

from ..core.classifier import decode_body
from ..core.errors import ApiError, ProtocolError, UsageError
from ..core.thread import ThreadPoster
from ..core.transport import Transport
from ..core.upload import ChunkedUploader
from ..models.api_models import (
    DeleteResponse,
    DmEventListResponse,
    DmSent,
    DmSentResponse,
    MediaUploadResult,
    PostedItem,
    Tweet,
    TweetListResponse,
    TweetResponse,
    User,
    UserResponse,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_TWEET_LENGTH = 25000
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100

USER_FIELDS = "id,name,username,description,public_metrics,profile_image_url,created_at"
TWEET_FIELDS = "id,text,created_at,public_metrics"
TWEET_DETAIL_FIELDS = "id,text,created_at,public_metrics,source,conversation_id"
DM_EVENT_FIELDS = "id,text,created_at,sender_id,dm_conversation_id,event_type"


def post_url(tweet_id: str, web_url: str = "https://x.com") -> str:
    return f"{web_url.rstrip('/')}/i/web/status/{tweet_id}"


def check_count(count: int) -> int:
    if count < 1 or count > MAX_PAGE_SIZE:
        raise UsageError(f"Count must be a number between 1 and {MAX_PAGE_SIZE}")
    return count


class TwitterClient:
    """X API v2 operations on top of the signed transport."""

    def __init__(self, transport: Transport, api_base_url: str, upload_url: str,
                 web_url: str = "https://x.com", uploader: Optional[ChunkedUploader] = None):
        self.transport = transport
        self.api_base_url = api_base_url.rstrip('/')
        self.web_url = web_url
        self.uploader = uploader or ChunkedUploader(transport, upload_url)
        self.thread_poster = ThreadPoster(transport, self.url("tweets"))

    def url(self, path: str, **params: Any) -> str:
        url = f"{self.api_base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def post_url(self, tweet_id: str) -> str:
        return post_url(tweet_id, self.web_url)

    # Users

    async def get_me(self, user_fields: str = USER_FIELDS) -> User:
        """Get the authenticated user's profile."""
        body = await self.transport.get(self.url("users/me", **{"user.fields": user_fields}))
        if not body.get("data"):
            raise ProtocolError("No user data returned from API")
        return decode_body(UserResponse, body, "user").data

    async def get_user_by_username(self, username: str) -> User:
        username = username.lstrip('@')
        body = await self.transport.get(self.url(f"users/by/username/{quote(username, safe='')}"))
        if not body.get("data"):
            raise UsageError(f"User @{username} not found")
        return decode_body(UserResponse, body, "user lookup").data

    async def resolve_user_id(self, username_or_id: str) -> str:
        """Numeric ids pass through; anything else is looked up as a username."""
        if re.fullmatch(r"\d+", username_or_id):
            return username_or_id
        user = await self.get_user_by_username(username_or_id)
        return user.id

    # Posts

    async def upload_media(self, file_path: str) -> MediaUploadResult:
        return await self.uploader.upload(file_path)

    async def create_tweet(self, text: str, image: Optional[str] = None, video: Optional[str] = None,
                           media_ids: Optional[str] = None, reply_to: Optional[str] = None,
                           quote_id: Optional[str] = None) -> Tweet:
        """
        Create a post, uploading any attached media first.

        Args:
            text: Post text
            image: Path of an image to attach
            video: Path of a video to attach
            media_ids: Comma-separated ids of media uploaded earlier
            reply_to: Id of the post being replied to
            quote_id: Id of the post being quoted

        Returns:
            The created Tweet
        """
        if len(text) > MAX_TWEET_LENGTH:
            raise UsageError(
                f"Tweet text is {len(text)} characters (max {MAX_TWEET_LENGTH:,} for Premium accounts)."
            )

        attached: List[str] = []
        for path in (image, video):
            if path:
                result = await self.upload_media(path)
                logger.info(f"Uploaded {path} as media {result.media_id}")
                attached.append(result.media_id)
        if media_ids:
            attached.extend(i.strip() for i in media_ids.split(',') if i.strip())

        payload: Dict[str, Any] = {"text": text}
        if attached:
            payload["media"] = {"media_ids": attached}
        if reply_to:
            payload["reply"] = {"in_reply_to_tweet_id": reply_to}
        if quote_id:
            payload["quote_tweet_id"] = quote_id

        body = await self.transport.post_json(self.url("tweets"), payload)
        if not body.get("data"):
            raise ProtocolError("No tweet data returned from API")
        return decode_body(TweetResponse, body, "create tweet").data

    async def list_tweets(self, count: int = 10, username: Optional[str] = None) -> List[Tweet]:
        """The most recent posts of a user (default: the authenticated user)."""
        check_count(count)
        if username:
            user = await self.get_user_by_username(username)
        else:
            user = await self.get_me(user_fields="id,username")

        # max_results has a floor of 5; over-fetch and slice
        body = await self.transport.get(self.url(
            f"users/{user.id}/tweets",
            max_results=max(MIN_PAGE_SIZE, count),
            **{"tweet.fields": TWEET_FIELDS},
        ))
        return decode_body(TweetListResponse, body, "user tweets").data[:count]

    async def get_tweet(self, tweet_id: str) -> TweetResponse:
        body = await self.transport.get(self.url(
            f"tweets/{tweet_id}",
            **{"tweet.fields": TWEET_DETAIL_FIELDS, "expansions": "author_id", "user.fields": "username"},
        ))
        if not body.get("data"):
            raise UsageError(f"Tweet {tweet_id} not found")
        return decode_body(TweetResponse, body, "tweet lookup")

    async def delete_tweet(self, tweet_id: str) -> bool:
        body = await self.transport.delete(self.url(f"tweets/{tweet_id}"))
        if not body.get("data") or not decode_body(DeleteResponse, body, "delete tweet").data.deleted:
            raise ApiError(["Failed to delete tweet"])
        return True

    async def post_thread(self, texts: List[str]) -> List[PostedItem]:
        return await self.thread_poster.post_sequence(texts)

    # Direct messages

    async def send_dm(self, text: str, user: Optional[str] = None, user_id: Optional[str] = None,
                      conversation_id: Optional[str] = None) -> DmSent:
        """Send a DM to an existing conversation or to a single participant."""
        if not text:
            raise UsageError("--text is required")
        if conversation_id:
            path = f"dm_conversations/{conversation_id}/messages"
        elif user or user_id:
            participant_id = user_id or await self.resolve_user_id(user)
            path = f"dm_conversations/with/{participant_id}/messages"
        else:
            raise UsageError("Must provide --user, --user-id, or --conversation-id")

        body = await self.transport.post_json(self.url(path), {"text": text})
        if not body.get("data"):
            raise ProtocolError("No data returned from API")
        return decode_body(DmSentResponse, body, "send DM").data

    def _dm_events_url(self, max_results: int, conversation_id: Optional[str] = None) -> str:
        path = f"dm_conversations/{conversation_id}/dm_events" if conversation_id else "dm_events"
        return self.url(path, **{
            "max_results": max_results,
            "dm_event.fields": DM_EVENT_FIELDS,
            "expansions": "sender_id",
            "user.fields": "username,name",
        })

    async def list_dm_events(self, count: int = 20, conversation_id: Optional[str] = None) -> DmEventListResponse:
        check_count(count)
        body = await self.transport.get(self._dm_events_url(count, conversation_id))
        return decode_body(DmEventListResponse, body, "DM events")

    async def list_conversations(self, count: int = 20) -> List[Dict[str, Any]]:
        """
        Recent DM conversations.

        There is no conversation listing endpoint, so recent message events are
        grouped by conversation id in order of first appearance.
        """
        check_count(count)
        body = await self.transport.get(self._dm_events_url(min(count * 3, MAX_PAGE_SIZE)))
        events = decode_body(DmEventListResponse, body, "DM events")
        users = {u.id: u for u in (events.includes.users if events.includes else [])}

        conversations: Dict[str, Dict[str, Any]] = {}
        for event in events.data:
            if event.event_type != "MessageCreate" or not event.dm_conversation_id:
                continue
            convo = conversations.setdefault(event.dm_conversation_id, {
                "id": event.dm_conversation_id,
                "participants": [],
                "last_message": event.text or "",
                "last_date": event.created_at,
            })
            if event.sender_id and event.sender_id not in [p["id"] for p in convo["participants"]]:
                participant: Dict[str, Any] = {"id": event.sender_id}
                sender = users.get(event.sender_id)
                if sender:
                    participant.update(username=sender.username, name=sender.name)
                convo["participants"].append(participant)

        return list(conversations.values())[:count]
