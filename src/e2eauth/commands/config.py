"""Config commands -- show what a test run would resolve.

Provides the ``e2eauth config`` sub-command group. Nothing is persisted;
settings always come from the global options and the environment.
"""

from __future__ import annotations

import typer

from e2eauth.output import format_response, info, print_table

config_app = typer.Typer(no_args_is_help=True)

MASK = "********"


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    second_user: bool = typer.Option(
        False, "--second-user", help="Resolve the second persona's credentials."
    ),
) -> None:
    """Show the resolved settings. The password is masked.

    Example::

        e2eauth config show
        e2eauth --realm other --json config show
    """
    from e2eauth.config import resolve_settings, token_endpoint

    obj = ctx.obj or {}
    settings = resolve_settings(obj.get("overrides"), use_secondary_persona=second_user)
    data = settings.model_dump(mode="json")
    if data.get("password"):
        data["password"] = MASK
    data["token_endpoint"] = token_endpoint(settings)
    format_response(data)


@config_app.command("env")
def config_env() -> None:
    """List the recognised environment variables and which are set.

    Values are never printed.
    """
    from e2eauth.config import describe_environment

    rows = [
        [field, name, "yes" if is_set else "no"]
        for field, name, is_set in describe_environment()
    ]
    info("Earlier variables win over later ones for the same setting.")
    print_table(["setting", "variable", "set"], rows, title="Environment")
