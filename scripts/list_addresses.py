#!/usr/bin/python3

from pathlib import Path

import click

from deployment.constants import REGISTRY_FILEPATH, SUPPORTED_NETWORKS
from deployment.networks import NETWORK_PROFILES
from deployment.registry import AddressRegistry


@click.command(name="list-addresses")
@click.option(
    "--target",
    "-t",
    help="Only list addresses for this network.",
    type=click.Choice(SUPPORTED_NETWORKS),
)
@click.option(
    "--registry",
    help="Filepath to the address registry",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=REGISTRY_FILEPATH,
)
def cli(target, registry):
    """List all contract addresses in the address registry. Optionally filter by network."""
    address_registry = AddressRegistry.from_file(registry)
    for name, profile in NETWORK_PROFILES.items():
        if target and target != name:
            continue
        click.secho(f"\n{name} (chain id {profile.chain_id})", fg="green")
        try:
            section = address_registry.section(profile)
        except AddressRegistry.MissingNetwork:
            click.secho("    no registry section", fg="red")
            continue
        for index, (contract_name, address) in enumerate(sorted(section.items()), start=1):
            click.secho(f"    {index}. {contract_name} {address}", fg="cyan")


if __name__ == "__main__":
    cli()
