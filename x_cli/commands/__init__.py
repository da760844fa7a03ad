"""
Command context shared by all subcommands.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click

from ..config import Settings, get_settings, resolve_env_file
from ..core.transport import Transport
from ..core.upload import ChunkedUploader
from ..platforms import TwitterClient
from ..utils.logger import configure_logging
from ..utils.output import Renderer

T = TypeVar("T")


class AppContext:
    """Per-invocation state: output mode, .env location and logging."""

    def __init__(self, pretty: bool = False, verbose: bool = False, env_file: Optional[str] = None):
        self.renderer = Renderer(pretty)
        self.verbose = verbose
        self.env_file = env_file

    @property
    def env_path(self) -> Path:
        return resolve_env_file(self.env_file)

    @property
    def settings(self) -> Settings:
        return get_settings(str(self.env_path))

    def configure_logging(self) -> None:
        settings = self.settings
        configure_logging(
            level="DEBUG" if self.verbose else settings.LOG_LEVEL,
            log_format=settings.LOG_FORMAT,
            log_file=settings.LOG_FILE,
        )

    async def _with_client(self, operation: Callable[[TwitterClient], Awaitable[T]]) -> T:
        settings = self.settings
        credentials = settings.credentials()
        async with Transport(credentials, timeout=settings.X_REQUEST_TIMEOUT) as transport:
            uploader = ChunkedUploader(
                transport,
                settings.X_UPLOAD_URL,
                max_processing_wait=settings.X_MEDIA_PROCESSING_TIMEOUT,
            )
            client = TwitterClient(
                transport,
                settings.X_API_BASE_URL,
                settings.X_UPLOAD_URL,
                web_url=settings.X_WEB_URL,
                uploader=uploader,
            )
            return await operation(client)

    def run(self, operation: Callable[[TwitterClient], Awaitable[T]]) -> T:
        """Run one client operation on a fresh event loop and session."""
        return asyncio.run(self._with_client(operation))


pass_app = click.make_pass_decorator(AppContext)
