import click

from deployment.constants import SUPPORTED_NETWORKS

target_option = click.option(
    "--target",
    "-t",
    help="Network whose params file and address registry section are used.",
    type=click.Choice(SUPPORTED_NETWORKS),
    required=True,
)

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Override the params file for the target network.",
    type=click.Path(dir_okay=False, exists=True),
    required=False,
)

verify_option = click.option(
    "--verify",
    help="Publish deployed contracts to the block explorer.",
    is_flag=True,
)

save_option = click.option(
    "--save",
    help="Record the deployed proxy address in the address registry.",
    is_flag=True,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)
