"""spritepack command line interface.

Builds a sprite image and its stylesheet from source images, reusing the
previous output when nothing changed.
"""

import sys
from pathlib import Path
from typing import get_args

import click
from pydantic import ValidationError

from spritepack.config import configure_logging, settings
from spritepack.errors import SpriteError
from spritepack.pipeline.orchestrator import SpriteBuilder
from spritepack.schemas import (
    CompositorName,
    CompositorOptions,
    LayoutOptions,
    LayoutPolicy,
    SpriteBuildRequest,
    StylesheetFormat,
    StylesheetOptions,
)
from spritepack.sources import expand_sources


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to SPRITEPACK_LOG_LEVEL)")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Sprite image and stylesheet generator."""
    configure_logging(log_level or settings.log_level)


def _builder(ctx: click.Context) -> SpriteBuilder:
    root = ctx.find_root()
    if root.obj is None:
        root.obj = SpriteBuilder.from_settings(settings)
    return root.obj


@cli.command()
@click.argument("src", nargs=-1, required=True)
@click.option("--sprite-path", required=True, help="Where to write the sprite PNG")
@click.option("--stylesheet-path", required=True, help="Where to write the stylesheet")
@click.option("--layout", "policy", default=settings.default_layout, show_default=True,
              type=click.Choice(get_args(LayoutPolicy)))
@click.option("--padding", default=0, show_default=True, type=int, help="Pixels between images")
@click.option("--max-width", default=None, type=int, help="Row width for the shelf layout")
@click.option("--scaling", default=1.0, show_default=True, type=float, help="Scale factor for every image")
@click.option("--compositor", default=settings.default_compositor, show_default=True,
              type=click.Choice(get_args(CompositorName)))
@click.option("--compression-level", default=settings.png_compression_level, show_default=True, type=int)
@click.option("--stylesheet", "stylesheet_format", default=settings.default_stylesheet, show_default=True,
              type=click.Choice(get_args(StylesheetFormat)))
@click.option("--template", default=None, help="Custom per-image stylesheet template file")
@click.option("--prefix", default="", help="Selector/mixin name prefix")
@click.option("--sprite-url", default=None, help="URL of the sprite as written into the stylesheet")
@click.option("--pixel-ratio", default=1, show_default=True, type=int, help="Device pixel ratio of the sprite")
@click.option("--force", is_flag=True, help="Rebuild even if the previous output is up to date")
@click.pass_context
def build(
    ctx: click.Context,
    src: tuple[str, ...],
    sprite_path: str,
    stylesheet_path: str,
    policy: str,
    padding: int,
    max_width: int | None,
    scaling: float,
    compositor: str,
    compression_level: int,
    stylesheet_format: str,
    template: str | None,
    prefix: str,
    sprite_url: str | None,
    pixel_ratio: int,
    force: bool,
) -> None:
    """Build a sprite from SRC files or glob patterns."""
    try:
        request = SpriteBuildRequest(
            sources=expand_sources(src),
            sprite_path=sprite_path,
            stylesheet_path=stylesheet_path,
            layout=LayoutOptions(policy=policy, padding=padding, max_width=max_width, scaling=scaling),
            compositor=CompositorOptions(name=compositor, compression_level=compression_level),
            stylesheet=StylesheetOptions(
                format=stylesheet_format,
                template=template,
                prefix=prefix,
                sprite_url=sprite_url,
                pixel_ratio=pixel_ratio,
            ),
        )
    except (ValueError, ValidationError) as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        result = _builder(ctx).build(request, force=force)
    except SpriteError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)

    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)
    if result.rebuilt:
        click.echo(f"built {result.sprite_path} {result.stylesheet_path}")
    else:
        click.echo("fresh")


@cli.command()
@click.option("--limit", default=20, show_default=True, type=int)
@click.pass_context
def records(ctx: click.Context, limit: int) -> None:
    """List the most recent successful builds."""
    try:
        rows = _builder(ctx).store.records(limit)
    except SpriteError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)
    for row in rows:
        click.echo(f"{row.succeeded_at.isoformat()}  {row.fingerprint[:12]}  {row.sprite_path}  {row.stylesheet_path}")


@cli.command()
@click.option("--sprite-path", required=True)
@click.option("--stylesheet-path", required=True)
@click.pass_context
def forget(ctx: click.Context, sprite_path: str, stylesheet_path: str) -> None:
    """Drop the build record of an output pair so the next build regenerates it."""
    key = (str(Path(sprite_path).resolve()), str(Path(stylesheet_path).resolve()))
    try:
        removed = _builder(ctx).store.forget(key)
    except SpriteError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)
    click.echo("forgotten" if removed else "no record")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
