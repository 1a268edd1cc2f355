"""
Command-line interface for blindwatermark
"""

import functools
import logging
import sys

import click

from . import __version__
from .config import CHANNELS, WatermarkConfig
from .exceptions import BlindWatermarkError
from .watermark import BlindWatermark


def _configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def watermark_options(func):
    """Options shared by every command that embeds or extracts."""
    options = [
        click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
                     help='JSON configuration file; command-line options override it'),
        click.option('--block-size', '-b', type=int, default=None,
                     help='DCT block size (default: 8)'),
        click.option('--alpha', '-a', type=float, default=None,
                     help='Embedding strength (default: 36.0)'),
        click.option('--position', '-p', type=(int, int), default=None,
                     help='Coefficient position ROW COL inside a block (default: 3 4)'),
        click.option('--symmetric/--no-symmetric', default=None,
                     help='Repeat bits at mirrored positions'),
        click.option('--multi-point/--no-multi-point', default=None,
                     help='Repeat bits at neighbouring positions'),
        click.option('--key', '-k', default=None,
                     help='Key for bit permutation (must match on extraction)'),
        click.option('--channel', '-c', type=click.Choice(CHANNELS), default=None,
                     help='Color channel carrying the watermark (default: blue)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(config_file, **overrides):
    config = WatermarkConfig.load(config_file) if config_file else WatermarkConfig()
    return config.replace(**overrides)


def _handle_errors(func):
    """Turn library errors into a clean message and exit status 2."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BlindWatermarkError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(2)
    return wrapper


@click.group()
@click.option('--log-level', default='warning',
              type=click.Choice(['debug', 'info', 'warning', 'error'], case_sensitive=False),
              help='Logging verbosity (default: warning)')
@click.version_option(version=__version__)
def main(log_level):
    """blindwatermark - invisible DCT watermarks for images"""
    _configure_logging(log_level)


@main.command()
@click.argument('input_image', type=click.Path(exists=True))
@click.argument('output_image', type=click.Path())
@click.option('--text', '-t', required=True, help='Text to embed')
@click.option('--quality', '-q', default=90, type=int,
              help='JPEG quality 1-100 when writing .jpg (default: 90)')
@click.option('--strict', is_flag=True, help='Fail instead of truncating when the image is too small')
@watermark_options
@_handle_errors
def embed(input_image, output_image, text, quality, strict, config_file, **options):
    """Embed TEXT into an image."""
    config = _build_config(config_file, **options)
    watermark = BlindWatermark(config=config)

    click.echo(f"Embedding watermark into {input_image}...")
    watermark.load_image(input_image).embed_text(text, strict=strict)
    watermark.save_image(output_image, quality=quality)

    result = watermark.last_embed
    click.echo(f"Watermarked image saved to {output_image}")
    click.echo(f"Embedded {result.bits_embedded}/{result.bits_total} bits "
               f"(capacity {result.capacity} blocks)")
    if result.truncated:
        click.echo("Warning: image too small, watermark was truncated", err=True)


@main.command()
@click.argument('input_image', type=click.Path(exists=True))
@click.option('--reference', '-r', type=click.Path(exists=True),
              help='Watermarked image as saved right after embedding; enables geometric correction')
@watermark_options
@_handle_errors
def extract(input_image, reference, config_file, **options):
    """Extract a watermark from an image."""
    config = _build_config(config_file, **options)
    if reference:
        config.geometric_correction = True
    watermark = BlindWatermark(config=config)
    if reference:
        watermark.set_reference_image(reference)

    result = watermark.load_image(input_image).extract()
    if not result.found:
        click.echo(f"No watermark found: {result.reason}", err=True)
        sys.exit(1)

    click.echo(result.text)


@main.command()
@click.argument('input_image', type=click.Path(exists=True))
@click.argument('output_image', type=click.Path())
@click.option('--flip', type=click.Choice(['horizontal', 'vertical']), multiple=True,
              help='Flip direction (repeatable)')
@click.option('--rotate', 'angle', type=click.Choice(['90', '180', '270']), default=None,
              help='Clockwise rotation in degrees')
@_handle_errors
def transform(input_image, output_image, flip, angle):
    """Rotate and/or flip an image (for robustness testing)."""
    watermark = BlindWatermark().load_image(input_image)
    if angle:
        watermark.rotate(int(angle))
    for direction in flip:
        if direction == 'horizontal':
            watermark.flip_horizontal()
        else:
            watermark.flip_vertical()
    watermark.save_image(output_image)
    click.echo(f"Transformed image saved to {output_image}")


@main.command()
@click.argument('input_image', type=click.Path(exists=True))
@watermark_options
@_handle_errors
def capacity(input_image, config_file, **options):
    """Show how many bytes an image can carry."""
    config = _build_config(config_file, **options)
    watermark = BlindWatermark(config=config).load_image(input_image)
    image = watermark.image
    click.echo(f"Image size: {image.width}x{image.height}")
    click.echo(f"Block size: {config.block_size}")
    click.echo(f"Capacity: {watermark.capacity_bytes()} bytes")


@main.command()
@click.option('--host', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
@click.option('--port', default=5000, type=int, help='Port to bind to (default: 5000)')
@click.option('--debug/--no-debug', default=False, help='Enable debug mode')
@watermark_options
@_handle_errors
def serve(host, port, debug, config_file, **options):
    """Start the HTTP watermarking service."""
    from .server import run_server

    config = _build_config(config_file, **options)
    click.echo(f"Starting blindwatermark server on {host}:{port}...")
    run_server(host=host, port=port, debug=debug, config=config)


if __name__ == '__main__':
    main()
