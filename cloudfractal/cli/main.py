"""
Command-line interface for Mandelbrot rendering.

Renders images to PNG files, runs the HTTP server and lists palettes.
"""

import click
import sys
import logging
import time

from .. import __version__
from ..acceleration.numba_backend import get_numba_version
from ..api import FractalRenderer
from ..config import Settings
from ..errors import FractalError
from ..rendering.coloring import describe_palettes, list_palettes

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    cloudfractal - Mandelbrot set renderer.

    Renders the Mandelbrot set with smooth coloring, computing image rows
    in parallel.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"cloudfractal v{__version__}")
        click.echo(f"Python: {sys.version}")
        click.echo(f"Numba: {get_numba_version()}")
        if ctx.invoked_subcommand is None:
            ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-h', type=int, help='Image height')
@click.option('--center-x', type=float, help='Real part of the viewport center')
@click.option('--center-y', type=float, help='Imaginary part of the viewport center')
@click.option('--zoom', type=float, help='Magnification, the viewport spans 4/zoom')
@click.option('--palette', type=click.Choice(list_palettes(), case_sensitive=False),
              help='Color palette name')
@click.option('--max-iter', type=int, help='Maximum iterations')
@click.option('--workers', type=int, help='Number of row workers')
@click.option('--executor', type=click.Choice(['thread', 'process']), help='Worker pool kind')
@click.option('--no-metadata', is_flag=True, help='Do not embed render parameters in the PNG')
@click.pass_context
def render(ctx, output, width, height, center_x, center_y, zoom, palette, max_iter,
           workers, executor, no_metadata):
    """
    Render a single Mandelbrot image.

    OUTPUT: Output PNG file path
    """
    try:
        settings = Settings.from_env().with_overrides(workers=workers, executor=executor)
        renderer = FractalRenderer(settings)
        request = renderer.normalize(
            width=width,
            height=height,
            center_x=center_x,
            center_y=center_y,
            zoom=zoom,
            palette=palette,
            max_iterations=max_iter,
        )

        click.echo(f"Rendering {request.width}x{request.height} "
                   f"({request.palette.name.lower()})...")
        start_time = time.time()

        path = renderer.render_to_file(request, output, save_metadata=not no_metadata)

        click.echo(f"Render complete: {time.time() - start_time:.2f}s")
        click.echo(f"Saved: {path}")

    except (FractalError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.option('--host', help='Bind address')
@click.option('--port', type=int, help='Port to listen on')
@click.option('--debug', is_flag=True, help='Run Flask in debug mode')
def serve(host, port, debug):
    """Serve the interactive viewer and the image endpoint over HTTP."""
    from ..web.app import create_app

    try:
        settings = Settings.from_env().with_overrides(host=host, port=port)
    except FractalError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    app = create_app(settings)
    click.echo(f"Serving on http://{settings.host}:{settings.port}/mandelbrot")
    app.run(host=settings.host, port=settings.port, debug=debug)


@main.command('list-palettes')
def list_palettes_command():
    """List available color palettes."""
    click.echo("Available palettes:")
    for name, curve in describe_palettes().items():
        click.echo(f"  {name}:")
        click.echo(f"    hue:        ({curve['hue_offset']} + {curve['hue_scale']}*t) mod 1")
        click.echo(f"    saturation: {curve['saturation_base']} + "
                   f"({curve['saturation_scale']}*t) mod {curve['saturation_span']}")
        click.echo(f"    brightness: {curve['brightness_base']} + "
                   f"({curve['brightness_scale']}*t) mod {curve['brightness_span']}")


if __name__ == '__main__':
    main()
