"""
Command-line interface for jp2bridge
"""

import functools
import logging

import click

from .command import format_command
from .compressor import JP2Compressor
from .environment import ENGINE_HOME_VAR, EngineConfig
from .exceptions import JP2BridgeError
from .imaging import get_image_dimensions
from .params import EncodeParameters, get_level_count


def setup_logging(verbose):
    """Send debug logging to stderr when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s",
    )


def _parse_slope(ctx, param, value):
    if value is None:
        return None
    try:
        slopes = tuple(int(s) for s in value.split(','))
    except ValueError:
        raise click.BadParameter("expected an integer or comma-separated integers")
    return slopes[0] if len(slopes) == 1 else slopes


def encode_options(func):
    """Attach the engine and encode-parameter options to a command."""
    options = [
        click.option('--engine-home', envvar=ENGINE_HOME_VAR,
                     type=click.Path(file_okay=False),
                     help=f'Directory containing kdu_compress (env: {ENGINE_HOME_VAR})'),
        click.option('--rate', '-r', type=float, default=None,
                     help='Target bit rate; takes precedence over --slope'),
        click.option('--slope', '-s', callback=_parse_slope, default=None,
                     help='Distortion-length slope(s), comma-separated'),
        click.option('--levels', '-l', type=click.IntRange(min=0), default=0,
                     help='Resolution levels (default: derived from image size)'),
        click.option('--precincts', default=None, help='Cprecincts value'),
        click.option('--layers', type=click.IntRange(min=0), default=None,
                     help='Quality layers (0 omits the flag)'),
        click.option('--order', 'progression_order', default=None,
                     help='Progression order, e.g. RPCL'),
        click.option('--packet-division', default=None, help='ORGtparts value'),
        click.option('--code-block-size', default=None, help='Cblk value'),
        click.option('--plt/--no-plt', 'insert_plt', default=True,
                     help='Insert PLT marker segments (default: on)'),
        click.option('--reversible/--no-reversible', 'use_reversible', default=False,
                     help='Use the reversible (lossless) transform (default: off)'),
        click.option('--color-space', default=None, help='JP2 colour space, e.g. sRGB'),
        click.option('--verbose', '-v', is_flag=True, help='Enable debug logging'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _params_from_options(options):
    fields = ('rate', 'slope', 'levels', 'precincts', 'layers', 'progression_order',
              'packet_division', 'code_block_size', 'insert_plt', 'use_reversible',
              'color_space')
    values = {name: options[name] for name in fields if options.get(name) is not None}
    return EncodeParameters.from_dict(values)


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (JP2BridgeError, ValueError) as e:
            raise click.ClickException(str(e))
    return wrapper


@click.group()
def main():
    """jp2bridge - JPEG2000 compression via kdu_compress"""
    pass


@main.command()
@click.argument('input_image', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_file', type=click.Path(dir_okay=False, allow_dash=True))
@click.option('--timeout', '-t', type=float, default=None,
              help='Seconds before kdu_compress is killed')
@encode_options
@_handle_errors
def compress(input_image, output_file, timeout, engine_home, verbose, **options):
    """Compress an image to JPEG2000. Use - as OUTPUT_FILE for stdout."""
    setup_logging(verbose)
    params = _params_from_options(options)
    compressor = JP2Compressor(EngineConfig.from_environment(engine_home=engine_home), timeout=timeout)

    if output_file == '-':
        stdout = click.get_binary_stream('stdout')
        compressor.compress_file(input_image, stdout, params)
        stdout.flush()
        return

    compressor.compress_file(input_image, output_file, params)
    click.echo(f"Compressed image saved to {output_file}", err=True)


@main.command()
@click.argument('input_image', type=click.Path(dir_okay=False))
@click.argument('output_file', type=click.Path(dir_okay=False))
@encode_options
@_handle_errors
def command(input_image, output_file, engine_home, verbose, **options):
    """Print the kdu_compress command line without running it."""
    setup_logging(verbose)
    params = _params_from_options(options)
    if params.levels == 0:
        params = params.resolve_levels(*get_image_dimensions(input_image))

    compressor = JP2Compressor(EngineConfig.from_environment(engine_home=engine_home))
    click.echo(format_command(compressor.build_command(input_image, output_file, params)))


@main.command()
@click.argument('width', type=click.IntRange(min=1))
@click.argument('height', type=click.IntRange(min=1))
def levels(width, height):
    """Print the default resolution-level count for an image size."""
    click.echo(get_level_count(width, height))


if __name__ == '__main__':
    main()
