"""
pattern_evolution/cli.py - Command-line interface
"""
import logging
import random
import time

import click

from .ast_nodes import parse_expression
from .errors import PatternEvolutionError
from .growth import create_random_tree, node_counts
from .noise_field import NoiseType, make_noise
from .render import noise_image, tree_image
from .setup_logging import setup_logging


@click.group(context_settings={'auto_envvar_prefix': 'PATTERN_EVOLUTION'})
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def cli(verbose):
    """Pattern Evolution - expression trees and fractal noise fields"""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.option('--operators', '-n', default=8, type=click.IntRange(min=1),
              help='Number of operator nodes to grow')
@click.option('--seed', '-s', type=int, default=None, help='Random seed (random if omitted)')
@click.option('--out', '-o', default=None, help='Render the tree to this PNG file')
@click.option('--size', default=256, type=click.IntRange(min=1), help='Rendered image size')
def grow(operators, seed, out, size):
    """Grow a random complete expression tree"""
    rng = random.Random(seed)
    tree = create_random_tree(operators, rng)
    filled, empty = node_counts(tree)

    click.echo(str(tree))
    click.echo(f"Nodes: {filled}, empty slots: {empty}, depth: {tree.get_depth()}")

    if out:
        start_time = time.time()
        tree_image(tree, size=(size, size), filename=out)
        click.echo(f"Image saved: {out} ({time.time() - start_time:.2f}s)")


@cli.command()
@click.argument('expression')
@click.option('--x', 'x', default=0.0, help='X coordinate to evaluate at')
@click.option('--y', 'y', default=0.0, help='Y coordinate to evaluate at')
def parse(expression, x, y):
    """Parse an expression and evaluate it at one point"""
    try:
        tree = parse_expression(expression)
    except PatternEvolutionError as e:
        raise click.BadParameter(str(e), param_hint='EXPRESSION')
    if tree is None:
        raise click.BadParameter("expression is a single empty slot", param_hint='EXPRESSION')

    filled, empty = node_counts(tree)
    click.echo(str(tree))
    click.echo(f"Nodes: {filled}, empty slots: {empty}, depth: {tree.get_depth()}")
    if empty:
        raise click.ClickException("tree is incomplete and cannot be evaluated")
    click.echo(f"Value at ({x}, {y}): {float(tree.evaluate(x, y)):.9f}")


@cli.command()
@click.option('--kind', '-k', type=click.Choice([t.value for t in NoiseType]), default='fbm',
              help='Fractal sum to compute')
@click.option('--frequency', default=0.01, help='Base frequency')
@click.option('--lacunarity', default=2.0, help='Frequency multiplier per octave')
@click.option('--gain', default=0.5, help='Amplitude multiplier per octave')
@click.option('--octaves', default=4, help='Number of octaves')
@click.option('--width', '-w', default=256, help='Grid width')
@click.option('--height', '-h', default=256, help='Grid height')
@click.option('--workers', type=int, default=None, help='Worker count (CPU count if omitted)')
@click.option('--out', '-o', default=None, help='Save the field as a PNG file')
def noise(kind, frequency, lacunarity, gain, octaves, width, height, workers, out):
    """Compute an fBm or turbulence noise field"""
    start_time = time.time()
    try:
        field = make_noise(kind, frequency, lacunarity, gain, octaves, width, height,
                           workers=workers)
    except PatternEvolutionError as e:
        raise click.ClickException(str(e))

    click.echo(f"{kind} {width}x{height}: min={field.min:.6f} max={field.max:.6f} "
               f"Time={time.time() - start_time:.2f}s")
    if out:
        noise_image(field, filename=out)
        click.echo(f"Image saved: {out}")


if __name__ == '__main__':
    cli()
