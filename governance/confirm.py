import click


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        click.echo("Aborting!")
        exit(-1)


def _confirm_action(label: str, target: str, description: str, value: int = 0) -> None:
    """Asks the user to confirm a governance action before anything is sent."""
    click.echo(f"\nGovernance action {label}")
    click.echo(f"\ttarget={target}")
    click.echo(f"\tcall={description}")
    if value:
        click.echo(f"\tvalue={value} wei")
    _continue()
