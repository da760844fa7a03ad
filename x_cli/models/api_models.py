from pydantic import BaseModel, ConfigDict, Field, SecretStr
from typing import Any, Dict, List, Optional


class Credentials(BaseModel):
    """OAuth 1.0a consumer and access-token pair. Immutable, never printed."""

    model_config = ConfigDict(frozen=True)

    consumer_key: SecretStr
    consumer_secret: SecretStr
    token_key: SecretStr
    token_secret: SecretStr


class ApiModel(BaseModel):
    """Base for server payloads; unknown fields are kept but not required."""

    model_config = ConfigDict(extra="allow")


class ProcessingInfo(ApiModel):
    """Asynchronous transcoding status attached to FINALIZE/STATUS responses."""

    state: str
    check_after_secs: Optional[float] = None
    progress_percent: Optional[int] = None
    error: Optional[Dict[str, Any]] = None


class MediaInitResponse(ApiModel):
    media_id_string: str = Field(min_length=1)
    media_key: Optional[str] = None
    expires_after_secs: Optional[int] = None


class MediaFinalizeResponse(ApiModel):
    media_id_string: Optional[str] = None
    media_key: Optional[str] = None
    size: Optional[int] = None
    processing_info: Optional[ProcessingInfo] = None


class MediaStatusResponse(ApiModel):
    media_id_string: Optional[str] = None
    processing_info: Optional[ProcessingInfo] = None


class MediaUploadResult(BaseModel):
    media_id: str
    media_key: Optional[str] = None


class PublicMetrics(ApiModel):
    like_count: int = 0
    retweet_count: int = 0
    reply_count: int = 0
    quote_count: int = 0


class Tweet(ApiModel):
    id: str
    text: str = ""
    created_at: Optional[str] = None
    author_id: Optional[str] = None
    conversation_id: Optional[str] = None
    source: Optional[str] = None
    public_metrics: Optional[PublicMetrics] = None


class UserMetrics(ApiModel):
    followers_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    like_count: int = 0


class User(ApiModel):
    id: str
    username: str
    name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    profile_image_url: Optional[str] = None
    public_metrics: Optional[UserMetrics] = None


class Includes(ApiModel):
    users: List[User] = Field(default_factory=list)


class TweetResponse(ApiModel):
    data: Tweet
    includes: Optional[Includes] = None


class TweetListResponse(ApiModel):
    data: List[Tweet] = Field(default_factory=list)


class UserResponse(ApiModel):
    data: User


class DeleteResult(ApiModel):
    deleted: bool = False


class DeleteResponse(ApiModel):
    data: DeleteResult


class DmEvent(ApiModel):
    id: str
    event_type: Optional[str] = None
    text: Optional[str] = None
    created_at: Optional[str] = None
    sender_id: Optional[str] = None
    dm_conversation_id: Optional[str] = None


class DmEventListResponse(ApiModel):
    data: List[DmEvent] = Field(default_factory=list)
    includes: Optional[Includes] = None


class DmSent(ApiModel):
    dm_event_id: str
    dm_conversation_id: Optional[str] = None


class DmSentResponse(ApiModel):
    data: DmSent


class ThreadPost(BaseModel):
    text: str
    parent_id: Optional[str] = None


class PostedItem(BaseModel):
    id: str
    text: str


class OutputEnvelope(BaseModel):
    ok: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    details: Optional[Any] = None
