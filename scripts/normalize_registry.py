#!/usr/bin/python3
from pathlib import Path

import click

from deployment.constants import REGISTRY_FILEPATH
from deployment.registry import normalize_registry


@click.command()
@click.option(
    "--registry",
    help="Filepath to the address registry",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=REGISTRY_FILEPATH,
)
def cli(registry):
    """Rewrite the address registry with sorted keys and standard formatting."""
    normalize_registry(registry)
