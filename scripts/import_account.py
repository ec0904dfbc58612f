#!/usr/bin/env python3

import os

import click
from ape_accounts import import_account_from_private_key

from deployment.constants import DEPLOYER_ALIAS, PASSPHRASE_ENVVAR
from deployment.networks import get_network_profile, get_private_key, is_placeholder_key
from deployment.options import target_option


@click.command(name="import-account")
@target_option
@click.option(
    "--alias",
    help="Alias of the account in the ape keystore.",
    default=DEPLOYER_ALIAS,
    show_default=True,
)
def cli(target, alias):
    """Import the deployer signing key from the environment into the ape keystore."""
    profile = get_network_profile(target)
    private_key = get_private_key(profile)
    if is_placeholder_key(private_key):
        # the placeholder is not a usable key
        click.echo(
            f"Nothing to import for {target}. Local deployments sign with ape's test "
            "accounts (the test mnemonic in ape-config.yaml), e.g. --account TEST::0."
        )
        return

    try:
        passphrase = os.environ[PASSPHRASE_ENVVAR]
    except KeyError:
        raise click.UsageError(
            f"There are missing environment variables. Please set {PASSPHRASE_ENVVAR}."
        )
    account = import_account_from_private_key(alias, passphrase, private_key)
    click.echo(f"Account imported: {account.address}")


if __name__ == "__main__":
    cli()
