"""
Sequential thread posting: each post replies to the one before it.
"""

import re
from typing import Iterable, List, Union

from ..models.api_models import PostedItem, ThreadPost, TweetResponse
from ..utils.logger import get_logger
from .classifier import decode_body
from .errors import ProtocolError, SequenceError, UsageError, XCliError

logger = get_logger(__name__)

MAX_POST_LENGTH = 280
MIN_THREAD_LENGTH = 2

_SEPARATOR = re.compile(r"^[ \t]*---[ \t]*$", re.MULTILINE)


def split_thread_text(content: str) -> List[str]:
    """Split a thread file on lines containing only ``---``; empty parts are dropped."""
    parts = (part.strip() for part in _SEPARATOR.split(content))
    return [part for part in parts if part]


def validate_thread(texts: List[str]) -> None:
    """Reject the whole thread before anything is posted."""
    if not texts:
        raise UsageError("No tweets to post")
    if len(texts) < MIN_THREAD_LENGTH:
        raise UsageError("A thread needs at least 2 tweets. Use 'tweets create' for a single tweet.")
    for index, text in enumerate(texts, start=1):
        if len(text) > MAX_POST_LENGTH:
            raise UsageError(
                f"Tweet {index} is {len(text)} characters (max {MAX_POST_LENGTH})"
            )


class ThreadPoster:
    """Posts items one at a time, linking each to its predecessor."""

    def __init__(self, transport, tweets_url: str):
        self.transport = transport
        self.tweets_url = tweets_url

    async def post_one(self, post: ThreadPost) -> PostedItem:
        payload = {"text": post.text}
        if post.parent_id:
            payload["reply"] = {"in_reply_to_tweet_id": post.parent_id}
        body = await self.transport.post_json(self.tweets_url, payload)
        if not body.get("data"):
            raise ProtocolError("No tweet data returned from API")
        tweet = decode_body(TweetResponse, body, "create tweet").data
        return PostedItem(id=tweet.id, text=tweet.text or post.text)

    async def post_sequence(self, items: Iterable[Union[str, ThreadPost]]) -> List[PostedItem]:
        """
        Post a thread.

        Args:
            items: Post texts (or ThreadPost objects) in thread order

        Returns:
            Posted items, in order

        Raises:
            UsageError: the thread is invalid; nothing was posted
            SequenceError: posting stopped part-way; carries what is already live
        """
        texts = [item.text if isinstance(item, ThreadPost) else item for item in items]
        validate_thread(texts)

        posted: List[PostedItem] = []
        for index, text in enumerate(texts):
            parent_id = posted[-1].id if posted else None
            try:
                item = await self.post_one(ThreadPost(text=text, parent_id=parent_id))
            except XCliError as e:
                logger.error(f"Thread stopped at tweet {index + 1}/{len(texts)}: {e.message}")
                raise SequenceError(posted, index + 1, e) from e
            posted.append(item)
            logger.info(f"Posted tweet {index + 1}/{len(texts)}: {item.id}")
        return posted
