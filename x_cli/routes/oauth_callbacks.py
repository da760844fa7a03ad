from aiohttp import web
from typing import Awaitable, Callable, Optional
import asyncio
import html

from ..core.errors import AuthorizationError, XCliError
from ..utils.logger import get_logger

logger = get_logger(__name__)

CallbackHandler = Callable[[str, str], Awaitable[object]]


def create_html_response(error: Optional[str] = None, status: int = 200) -> web.Response:
    """Create HTML response for the OAuth callback page."""
    html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>x-cli authorization</title>
        </head>
        <body>
            <h2>{error and 'Authentication Failed' or 'Authentication Successful'}</h2>
            <p>{html.escape(error) if error else 'Success! You can close this tab.'}</p>
        </body>
        </html>
    """
    return web.Response(text=html_content, content_type="text/html", status=status)


class CallbackServer:
    """
    One-shot local server receiving the OAuth 1.0a redirect.

    The first request to ``path`` resolves ``result()``: with the value returned
    by ``on_callback`` on success, or with an AuthorizationError.
    """

    def __init__(self, on_callback: CallbackHandler, host: str = "localhost",
                 port: int = 3456, path: str = "/callback"):
        self.on_callback = on_callback
        self.host = host
        self.port = port
        self.path = path
        self._runner: Optional[web.AppRunner] = None
        self._result: Optional[asyncio.Future] = None

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(self.path, self.handle_callback)
        return app

    async def start(self) -> None:
        self._result = asyncio.get_running_loop().create_future()
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await self.stop()
            raise AuthorizationError(f"Could not listen on {self.host}:{self.port}: {e}") from e
        logger.debug(f"Callback server listening on http://{self.host}:{self.port}{self.path}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    async def __aenter__(self) -> "CallbackServer":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def result(self):
        if self._result is None:
            raise RuntimeError("Callback server not started")
        return await self._result

    def _resolve(self, value=None, error: Optional[BaseException] = None) -> None:
        if self._result is None or self._result.done():
            return
        if error is not None:
            self._result.set_exception(error)
        else:
            self._result.set_result(value)

    async def handle_callback(self, request: web.Request) -> web.Response:
        """Handle the redirect from the authorize page."""
        if self._result is not None and self._result.done():
            return create_html_response(error="Authorization already completed.", status=410)

        oauth_token = request.query.get("oauth_token")
        oauth_verifier = request.query.get("oauth_verifier")
        if not oauth_token or not oauth_verifier:
            message = "Missing oauth_token or oauth_verifier in callback."
            if request.query.get("denied"):
                message = "Authorization was denied."
            logger.error(f"Error in OAuth callback: {message}")
            self._resolve(error=AuthorizationError(message))
            return create_html_response(error=message, status=400)

        try:
            value = await self.on_callback(oauth_token, oauth_verifier)
        except XCliError as e:
            logger.error(f"Error completing authorization: {e.message}")
            self._resolve(error=e)
            return create_html_response(error=e.message, status=500)

        self._resolve(value)
        return create_html_response()
