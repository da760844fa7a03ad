import click

from . import AppContext, pass_app


@click.group()
def media() -> None:
    """Media upload utilities."""


@media.command()
@click.argument("path", type=click.Path(dir_okay=False))
@pass_app
def upload(app: AppContext, path: str) -> None:
    """Upload a media file and return its media_id.

    \b
    Examples:
      x-cli media upload ./photo.jpg     # Upload image, get media_id
      x-cli media upload ./video.mp4     # Upload video (with processing)
    """
    result = app.run(lambda client: client.upload_media(path))
    key = f" media_key={result.media_key}" if result.media_key else ""
    app.renderer.ok(
        result.model_dump(exclude_none=True),
        f"✅ Uploaded: media_id={result.media_id}{key}",
    )
