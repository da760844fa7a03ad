import asyncio
from typing import Any, Dict, List

import click

from ..auth import AuthFlow, auth_status
from ..core.errors import AuthorizationError, ConfigurationError, XCliError
from . import AppContext, pass_app


def format_status(data: Dict[str, Any]) -> List[str]:
    lines = [f"✅ Authenticated as @{data['username']}", f"   Name: {data.get('name')}"]
    metrics = data.get("public_metrics")
    if metrics:
        lines.append(f"   Followers: {metrics.get('followers_count', 0):,}")
        lines.append(f"   Following: {metrics.get('following_count', 0):,}")
    return lines


@click.group(invoke_without_command=True)
@click.pass_context
def auth(ctx: click.Context) -> None:
    """Authenticate with X (OAuth 1.0a).

    \b
    Examples:
      x-cli auth          # Run OAuth flow (opens browser)
      x-cli auth status   # Check if authenticated
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(login)


@auth.command()
@pass_app
def login(app: AppContext) -> None:
    """Run the OAuth 1.0a 3-legged flow and save access tokens to .env."""
    flow = AuthFlow(
        app.settings,
        app.env_path,
        announce=lambda message: click.echo(message, err=True),
    )
    result = asyncio.run(flow.login())
    app.renderer.ok(
        result,
        f"✅ Authenticated as @{result['username']}. {result['message']}.",
    )


@auth.command()
@pass_app
def status(app: AppContext) -> None:
    """Verify tokens work and show @username."""
    try:
        result = app.run(auth_status)
    except ConfigurationError:
        raise
    except XCliError as e:
        raise AuthorizationError(
            "Authentication failed. Run 'x-cli auth' to re-authenticate.", cause=e.message
        ) from e
    app.renderer.ok(result, format_status)
