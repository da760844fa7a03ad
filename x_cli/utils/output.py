import json
from typing import Any, Callable, List, Optional, Union

import click

from ..core.errors import XCliError
from ..models.api_models import OutputEnvelope

TextRenderer = Union[str, List[str], Callable[[Any], Union[str, List[str]]]]


class Renderer:
    """
    Writes the single result of a command.

    JSON mode prints one envelope line to stdout. Pretty mode prints the
    command's human-readable text to stdout and errors to stderr.
    """

    def __init__(self, pretty: bool = False):
        self.pretty = pretty

    @staticmethod
    def _lines(text: TextRenderer, data: Any) -> List[str]:
        if callable(text):
            text = text(data)
        if isinstance(text, str):
            return [text]
        return list(text)

    def envelope(self, envelope: OutputEnvelope) -> str:
        return json.dumps(envelope.model_dump(exclude_none=True), ensure_ascii=False, default=str)

    def ok(self, data: Any, text: Optional[TextRenderer] = None) -> None:
        """
        Emit a success result.

        Args:
            data: JSON-serializable payload
            text: Pretty-mode rendering: a string, lines, or a callable taking data
        """
        if self.pretty:
            if text is None:
                click.echo(data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False, default=str))
            else:
                for line in self._lines(text, data):
                    click.echo(line)
            return
        click.echo(self.envelope(OutputEnvelope(ok=True, data=data)))

    def error(self, error: Union[XCliError, str], details: Any = None) -> None:
        message = error.message if isinstance(error, XCliError) else str(error)
        if details is None and isinstance(error, XCliError):
            details = error.details()
        if self.pretty:
            click.echo(f"Error: {message}", err=True)
            if details:
                click.echo(json.dumps(details, indent=2, ensure_ascii=False, default=str), err=True)
            return
        click.echo(self.envelope(OutputEnvelope(ok=False, error=message, details=details)))


def truncate(text: str, width: int) -> str:
    text = (text or "").replace("\n", " ")
    return text if len(text) <= width else text[:width - 3] + "..."
