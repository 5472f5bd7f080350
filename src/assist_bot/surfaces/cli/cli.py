import typer

from ... import __version__
from .commands.bot import register_bot_commands
from .commands.utils import raise_exit

app = typer.Typer(add_completion=False, help="Private support-thread bot for Discord.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"assist-bot {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    pass


register_bot_commands(app, raise_exit=raise_exit)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
