from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from ..core.errors import SequenceError, UsageError
from ..core.thread import split_thread_text
from ..utils.output import truncate
from . import AppContext, pass_app


def format_tweet_table(data: Dict[str, Any]) -> List[str]:
    lines = ["ID                   Date        ❤️     🔁    💬    Text", "─" * 80]
    for tweet in data["tweets"]:
        metrics = tweet.get("public_metrics") or {}
        date = (tweet.get("created_at") or "")[:10]
        lines.append(
            f"{tweet['id']:<20} {date:<10} {metrics.get('like_count', 0):>5} "
            f"{metrics.get('retweet_count', 0):>5} {metrics.get('reply_count', 0):>5} "
            f"{truncate(tweet.get('text', ''), 50)}"
        )
    return lines


def format_tweet_detail(data: Dict[str, Any], url: str) -> List[str]:
    tweet, author = data["tweet"], data.get("author")
    lines = [f"Tweet {tweet['id']}"]
    if author:
        lines.append(f"  Author:  @{author['username']}")
    if tweet.get("created_at"):
        lines.append(f"  Date:    {tweet['created_at']}")
    lines.append(f"  Text:    {tweet.get('text', '')}")
    metrics = tweet.get("public_metrics")
    if metrics:
        lines.append(f"  Likes:   {metrics.get('like_count', 0)}")
        lines.append(f"  Retweets: {metrics.get('retweet_count', 0)}")
        lines.append(f"  Replies:  {metrics.get('reply_count', 0)}")
    lines.append(f"  URL:     {url}")
    return lines


@click.group(invoke_without_command=True)
@click.pass_context
def tweets(ctx: click.Context) -> None:
    """Manage tweets."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_tweets)


@tweets.command("list")
@click.option("-n", "--count", type=int, default=10, show_default=True, help="Number of tweets to list")
@click.option("--user", "username", default=None, help="Username to list tweets for (default: authenticated user)")
@pass_app
def list_tweets(app: AppContext, count: int, username: Optional[str]) -> None:
    """List recent tweets.

    \b
    Examples:
      x-cli tweets list              # List your 10 recent tweets
      x-cli tweets list -n 20        # List 20 recent tweets
      x-cli tweets list --user jack --pretty
    """
    result = app.run(lambda client: client.list_tweets(count=count, username=username))
    data = {"tweets": [t.model_dump(exclude_none=True) for t in result]}
    app.renderer.ok(data, format_tweet_table)


@tweets.command()
@click.option("--text", required=True, help="Tweet text")
@click.option("--image", type=click.Path(dir_okay=False), help="Attach an image file (JPG/PNG/GIF/WebP)")
@click.option("--video", type=click.Path(dir_okay=False), help="Attach a video file (MP4)")
@click.option("--media-ids", help="Pre-uploaded media IDs (comma-separated)")
@click.option("--reply-to", help="Tweet ID to reply to")
@click.option("--quote", "quote_id", help="Tweet ID to quote")
@pass_app
def create(app: AppContext, text: str, image: Optional[str], video: Optional[str],
           media_ids: Optional[str], reply_to: Optional[str], quote_id: Optional[str]) -> None:
    """Create a new tweet.

    \b
    Examples:
      x-cli tweets create --text "Hello X!"
      x-cli tweets create --text "Check this out" --image ./photo.jpg
      x-cli tweets create --text "Sharing this" --quote 1234567890
    """
    async def operation(client):
        tweet = await client.create_tweet(
            text, image=image, video=video, media_ids=media_ids, reply_to=reply_to, quote_id=quote_id
        )
        return tweet, client.post_url(tweet.id)

    tweet, url = app.run(operation)
    app.renderer.ok(
        {"id": tweet.id, "text": tweet.text, "url": url},
        [f"✅ Tweet posted: {url}", f'   Text: "{tweet.text}"', f"   ID: {tweet.id}"],
    )


def read_thread(texts: Tuple[str, ...], file: Optional[str]) -> List[str]:
    if texts and file:
        raise UsageError("Cannot use both --texts and --file options together")
    if texts:
        return list(texts)
    if file:
        try:
            content = Path(file).read_text(encoding="utf-8")
        except OSError as e:
            raise UsageError(f"Failed to read file: {e}") from e
        return split_thread_text(content)
    raise UsageError("Must provide either --texts or --file option")


@tweets.command()
@click.option("--texts", multiple=True, help="Tweet text for the thread (repeat for each tweet)")
@click.option("--file", type=click.Path(dir_okay=False), help="Markdown file with tweets separated by ---")
@pass_app
def thread(app: AppContext, texts: Tuple[str, ...], file: Optional[str]) -> None:
    """Post a thread.

    \b
    Examples:
      x-cli tweets thread --texts "First tweet" --texts "Second tweet"
      x-cli tweets thread --file thread.md
    """
    items = read_thread(texts, file)

    async def operation(client):
        try:
            posted = await client.post_thread(items)
        except SequenceError as e:
            if not app.renderer.pretty:
                raise
            for index, item in enumerate(e.posted_so_far, start=1):
                click.echo(f"   posted {index}: {client.post_url(item.id)}", err=True)
            raise
        return posted, [client.post_url(item.id) for item in posted]

    posted, urls = app.run(operation)
    lines = [f"✅ Thread posted ({len(posted)} tweets):"]
    lines.extend(f"   {i}/{len(urls)}: {url}" for i, url in enumerate(urls, start=1))
    app.renderer.ok(
        {"thread": [item.model_dump() for item in posted], "url": urls[0]},
        lines,
    )


@tweets.command()
@click.argument("tweet_id")
@pass_app
def get(app: AppContext, tweet_id: str) -> None:
    """Get tweet details + metrics."""
    async def operation(client):
        return await client.get_tweet(tweet_id), client.post_url(tweet_id)

    response, url = app.run(operation)
    author = response.includes.users[0] if response.includes and response.includes.users else None
    data = {
        "tweet": response.data.model_dump(exclude_none=True),
        "author": author.model_dump(exclude_none=True) if author else None,
    }
    app.renderer.ok(data, lambda d: format_tweet_detail(d, url))


@tweets.command()
@click.argument("tweet_id")
@pass_app
def delete(app: AppContext, tweet_id: str) -> None:
    """Delete a tweet."""
    app.run(lambda client: client.delete_tweet(tweet_id))
    app.renderer.ok({"deleted": True, "id": tweet_id}, f"✅ Tweet deleted: {tweet_id}")
