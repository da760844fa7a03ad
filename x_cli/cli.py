"""
CLI main entry point for x-cli.

Registers all subcommands: auth, me, tweets, media, dms.
"""

import sys
from typing import List, Optional

import click

from . import __version__
from .commands import AppContext
from .core.errors import XCliError
from .utils.logger import get_logger

logger = get_logger(__name__)

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class XCliGroup(click.Group):
    """Root group; the one place where failures become exit codes."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except XCliError as e:
            logger.debug(f"{e.kind}: {e.message}")
            app = ctx.find_object(AppContext) or AppContext()
            app.renderer.error(e)
            ctx.exit(EXIT_ERROR)


@click.group(cls=XCliGroup)
@click.version_option(version=__version__, prog_name="x-cli")
@click.option("--pretty", is_flag=True, help="Human-readable formatted output (default: JSON)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr")
@click.option(
    "--env-file",
    default=None,
    envvar="X_CLI_ENV_FILE",
    type=click.Path(dir_okay=False),
    help="Path of the .env file holding credentials (default: ./.env)",
)
@click.pass_context
def cli(ctx: click.Context, pretty: bool, verbose: bool, env_file: Optional[str]) -> None:
    """x-cli - organic posting to X (Twitter) with OAuth 1.0a user tokens."""
    app = AppContext(pretty=pretty, verbose=verbose, env_file=env_file)
    ctx.obj = app
    app.configure_logging()


from .commands.auth import auth
from .commands.me import me
from .commands.tweets import tweets
from .commands.media import media
from .commands.dms import dms

cli.add_command(auth)
cli.add_command(me)
cli.add_command(tweets)
cli.add_command(media)
cli.add_command(dms)


def run(args: Optional[List[str]] = None) -> int:
    """Invoke the CLI and return the process exit code."""
    try:
        result = cli.main(args=args, prog_name="x-cli", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except (click.Abort, KeyboardInterrupt):
        click.echo("Aborted.", err=True)
        return EXIT_INTERRUPTED
    return result if isinstance(result, int) else 0


def main() -> None:
    """Entry point for the CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
