"""Auth commands -- store, inspect and clear the bearer token.

The token is kept in the credential store entry of the active profile
(``--profile`` / ``STUDYTRACK_PROFILE`` / config, falling back to
``default``), which is what the default profile's ``store:`` source reads.

Typical workflow::

    studytrack auth login            # prompts for the token
    studytrack auth status
    studytrack auth logout
"""

from __future__ import annotations

from typing import Optional

import typer

from studytrack.commands._runtime import fail, resolve_from_context
from studytrack.output import format_response, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token. Prompted for (hidden) when omitted."
    ),
) -> None:
    """Save a bearer token for the active profile.

    Example::

        studytrack auth login
        studytrack --profile work auth login --token "$TOKEN"
    """
    from studytrack.auth.credential_store import CredentialEntry, CredentialStore

    _, profile = resolve_from_context(ctx)
    if token is None:
        token = typer.prompt("Token", hide_input=True)
    token = token.strip()
    if not token:
        fail("Token must not be empty.")

    store = CredentialStore(profile.name)
    store.save(CredentialEntry(credential=token))
    success(f"Token saved for profile '{profile.name}'.")
    if profile.auth is None or profile.auth.source != f"store:{profile.name}":
        suggest(
            f"Profile '{profile.name}' reads its token from "
            f"{profile.auth.source if profile.auth else 'nowhere'}; "
            "the stored token is used only by 'store:' sources."
        )


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Remove the stored token of the active profile."""
    from studytrack.auth.credential_store import CredentialStore

    _, profile = resolve_from_context(ctx)
    if not CredentialStore(profile.name).clear():
        info(f"No stored token for profile '{profile.name}'.")
        return
    success(f"Token removed for profile '{profile.name}'.")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show where the active profile's token comes from and whether it is usable."""
    from studytrack.auth.credential_store import CredentialStore

    _, profile = resolve_from_context(ctx)
    store = CredentialStore(profile.name)
    entry = store.load()
    format_response(
        {
            "profile": profile.name,
            "base_url": profile.base_url,
            "source": profile.auth.source if profile.auth else None,
            "stored": entry is not None,
            "valid": store.is_valid(),
            "expires_at": entry.expires_at.isoformat() if entry and entry.expires_at else None,
        }
    )
    if entry is None:
        suggest("Run 'studytrack auth login' to store a token.")
