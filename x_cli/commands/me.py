from typing import Any, Dict, List

import click

from ..models.api_models import User
from . import AppContext, pass_app


def user_summary(user: User) -> Dict[str, Any]:
    metrics = user.public_metrics
    return {
        "id": user.id,
        "name": user.name,
        "username": user.username,
        "description": user.description,
        "followers": metrics.followers_count if metrics else None,
        "following": metrics.following_count if metrics else None,
        "tweets": metrics.tweet_count if metrics else None,
        "likes": metrics.like_count if metrics else None,
        "profile_image_url": user.profile_image_url,
        "created_at": user.created_at,
    }


def format_user(data: Dict[str, Any]) -> List[str]:
    lines = [
        f"👤 {data['name']} (@{data['username']})",
        f"   ID: {data['id']}",
    ]
    if data.get("description"):
        lines.append(f"   Bio: {data['description']}")
    lines.append(
        f"   📊 {data.get('followers') or 0} followers • {data.get('following') or 0} following"
        f" • {data.get('tweets') or 0} tweets"
    )
    if data.get("created_at"):
        lines.append(f"   📅 Joined {data['created_at'][:10]}")
    if data.get("profile_image_url"):
        lines.append(f"   🖼️  {data['profile_image_url']}")
    return lines


@click.command()
@pass_app
def me(app: AppContext) -> None:
    """Show authenticated user info (id, username, name)."""
    user = app.run(lambda client: client.get_me())
    app.renderer.ok(user_summary(user), format_user)
