#!/usr/bin/python3

from pathlib import Path

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.constants import INITIALIZER_PARAMS_DIR, ZIKUANI_BLACKLIST_TRANSFER
from deployment.networks import get_network_profile
from deployment.options import (
    auto_option,
    params_option,
    save_option,
    target_option,
    verify_option,
)
from deployment.params import ProxyDeployer
from deployment.upgrades import Upgrades

PARAMS_FILENAME = "zikuani-blacklist-transfer.yml"


@click.command(cls=ConnectedProviderCommand, name="deploy-zikuani-blacklist-transfer")
@account_option()
@network_option(required=True)
@target_option
@params_option
@verify_option
@save_option
@auto_option
def cli(account, network, target, params_filepath, verify, save, auto):
    """Deploy a ZikuaniBlacklistTransfer proxy with the target network's eligibility policy and initial lists."""
    click.echo(f"Connected to {network.name} network.")

    profile = get_network_profile(target)
    params_filepath = Path(params_filepath or INITIALIZER_PARAMS_DIR / target / PARAMS_FILENAME)

    upgrades = Upgrades(profile=profile, verify=verify, account=account, autosign=auto)
    deployer = ProxyDeployer.from_yaml(
        filepath=params_filepath, upgrades=upgrades, autosign=auto, save=save
    )

    proxy = deployer.deploy(ZIKUANI_BLACKLIST_TRANSFER)
    deployer.finalize(deployments={ZIKUANI_BLACKLIST_TRANSFER: proxy})


if __name__ == "__main__":
    cli()
