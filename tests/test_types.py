import click
from click.testing import CliRunner

from deployment.types import ChecksumAddress


@click.command()
@click.option("--address", type=ChecksumAddress(), required=True)
def echo_address(address):
    click.echo(address)


def test_checksum_address():
    runner = CliRunner()
    result = runner.invoke(
        echo_address, ["--address", "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"]
    )
    assert result.exit_code == 0
    assert result.output.strip() == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_invalid_address():
    result = CliRunner().invoke(echo_address, ["--address", "0x1234"])
    assert result.exit_code != 0
    assert "not a valid ethereum address" in result.output
