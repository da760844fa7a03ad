from typing import Any, Dict, List, Optional

import click

from ..utils.output import truncate
from . import AppContext, pass_app


def format_events(data: Dict[str, Any]) -> List[str]:
    if not data["events"]:
        return ["No DMs found."]
    users = data["users"]
    lines = ["Date                 Sender              Conversation            Text", "─" * 90]
    for event in data["events"]:
        if event.get("event_type") != "MessageCreate":
            continue
        date = (event.get("created_at") or "")[:16].replace("T", " ")
        sender_id = event.get("sender_id") or ""
        sender = f"@{users[sender_id]['username']}" if sender_id in users else sender_id
        lines.append(
            f"{date:<20} {sender:<18} {event.get('dm_conversation_id') or '':<22} "
            f"{truncate(event.get('text') or '', 40)}"
        )
    return lines


def format_conversations(data: Dict[str, Any]) -> List[str]:
    if not data["conversations"]:
        return ["No DM conversations found."]
    lines = ["Conversation ID                        Participants          Last Message", "─" * 90]
    for convo in data["conversations"]:
        parts = ", ".join(
            f"@{p['username']}" if p.get("username") else p["id"] for p in convo["participants"]
        )
        lines.append(f"{convo['id']:<38} {parts:<20} {truncate(convo['last_message'], 30)}")
    return lines


@click.group()
def dms() -> None:
    """Send and read direct messages."""


@dms.command()
@click.option("--text", required=True, help="Message text")
@click.option("--user", help="Recipient @username")
@click.option("--user-id", help="Recipient user ID")
@click.option("--conversation-id", help="Existing conversation ID")
@pass_app
def send(app: AppContext, text: str, user: Optional[str], user_id: Optional[str],
         conversation_id: Optional[str]) -> None:
    """Send a DM (creates a 1-on-1 conversation if needed)."""
    sent = app.run(lambda client: client.send_dm(
        text, user=user, user_id=user_id, conversation_id=conversation_id
    ))
    lines = ["✅ DM sent", f"   Event ID: {sent.dm_event_id}"]
    if sent.dm_conversation_id:
        lines.append(f"   Conversation: {sent.dm_conversation_id}")
    app.renderer.ok(sent.model_dump(exclude_none=True), lines)


@dms.command("list")
@click.option("-n", "--count", type=int, default=20, show_default=True, help="Number of events to list")
@click.option("--conversation-id", help="Only list messages in this conversation")
@pass_app
def list_dms(app: AppContext, count: int, conversation_id: Optional[str]) -> None:
    """List recent DM events."""
    result = app.run(lambda client: client.list_dm_events(count=count, conversation_id=conversation_id))
    users = {
        u.id: {"username": u.username, "name": u.name}
        for u in (result.includes.users if result.includes else [])
    }
    data = {"events": [e.model_dump(exclude_none=True) for e in result.data], "users": users}
    app.renderer.ok(data, format_events)


@dms.command()
@click.option("-n", "--count", type=int, default=20, show_default=True, help="Number of conversations")
@pass_app
def conversations(app: AppContext, count: int) -> None:
    """List recent DM conversations."""
    result = app.run(lambda client: client.list_conversations(count=count))
    app.renderer.ok({"conversations": result}, format_conversations)
