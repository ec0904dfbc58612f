#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.constants import PROXY_CONTRACTS
from deployment.networks import get_network_profile, validate_network_choice
from deployment.options import auto_option, target_option, verify_option
from deployment.registry import AddressRegistry
from deployment.types import ChecksumAddress
from deployment.upgrades import Upgrades


@click.command(cls=ConnectedProviderCommand, name="upgrade-zikuani")
@account_option()
@network_option(required=True)
@target_option
@click.option(
    "--contract",
    "-c",
    "contract_name",
    help="Name of the proxied contract to upgrade.",
    type=click.Choice(PROXY_CONTRACTS),
    required=True,
)
@click.option(
    "--proxy-address",
    help="Address of the proxy; defaults to the registered address of the contract.",
    type=ChecksumAddress(),
    required=False,
)
@verify_option
@auto_option
def cli(account, network, target, contract_name, proxy_address, verify, auto):
    """Upgrade a Zikuani proxy to a new implementation of its contract."""
    click.echo(f"Connected to {network.name} network.")

    profile = get_network_profile(target)
    if not proxy_address:
        proxy_address = AddressRegistry.from_file().get_address(profile, contract_name)

    upgrades = Upgrades(profile=profile, verify=verify, account=account, autosign=auto)
    validate_network_choice(profile, upgrades.network_choice)
    container = upgrades.get_contract_factory(contract_name)
    instance = upgrades.upgrade_proxy(proxy_address, container)
    click.secho(f"{contract_name} proxy at {instance.address} upgraded.", fg="green")


if __name__ == "__main__":
    cli()
