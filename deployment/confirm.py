from collections import OrderedDict

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    exit(-1)


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single proxy."""
    answer = input(f"Deploy {contract_name} proxy Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for initializer parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _print_resolution(resolved_params: OrderedDict, initializer: str, contract_name: str) -> bool:
    """Prints the resolved initializer arguments; returns True if any is the zero address."""
    print(f"\nInitializer {initializer} arguments for {contract_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    return contains_zero_address


def _confirm_resolution(resolved_params: OrderedDict, initializer: str, contract_name: str) -> None:
    """Asks the user to confirm the resolved initializer arguments for a single proxy."""
    contains_zero_address = _print_resolution(resolved_params, initializer, contract_name)
    _confirm_deployment(contract_name)
    if contains_zero_address:
        _confirm_zero_address()
