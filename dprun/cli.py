"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

import typer

from dprun.core.builder import SessionBuilder
from dprun.core.encoding import parse_address_part, parse_guid_or_named
from dprun.core.errors import DPRunError
from dprun.core.model import Named
from dprun.core.service import LauncherService

app = typer.Typer(help="Start DirectPlay lobbyable applications through dprun")


def _build_service() -> LauncherService:
    service = LauncherService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _parse_guid(value: str, *, option: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a GUID", param_hint=option) from None


def _apply_options(
    builder: SessionBuilder,
    *,
    player: str | None,
    application: str | None,
    service_provider: str | None,
    address: list[str] | None,
    session_name: str | None,
    password: str | None,
    cwd: Path | None,
) -> SessionBuilder:
    if player is not None:
        builder.player_name(player)
    if application is not None:
        builder.application(_parse_guid(application, option="--application"))
    if service_provider is not None:
        try:
            provider = parse_guid_or_named(service_provider)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--service-provider") from None
        if isinstance(provider, Named):
            builder.named_service_provider(provider.name)
        else:
            builder.service_provider(provider)
    for token in address or []:
        try:
            part = parse_address_part(token)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--address") from None
        if isinstance(part.key, Named):
            builder.named_address_part(part.key.name, part.value)
        else:
            builder.address_part(part.key, part.value)
    if session_name is not None:
        builder.session_name(session_name)
    if password is not None:
        builder.session_password(password)
    if cwd is not None:
        builder.cwd(cwd)
    return builder


def _launch(service: LauncherService, builder: SessionBuilder, *, dry_run: bool) -> None:
    session = service.prepare(builder.finish())
    if dry_run:
        typer.echo(session.command())
        return
    service.launch(session)
    typer.echo("dprun session finished")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log session lifecycle details"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("profiles")
def list_profiles() -> None:
    """List available session profiles."""
    try:
        service = _build_service()
        profiles = service.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)

        for profile in profiles:
            typer.echo(f"{profile.id}: {profile.name}")
    except DPRunError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("host")
def host_session(
    player: str = typer.Option(..., "--player", help="In-game name of the local player"),
    application: str = typer.Option(..., "--application", help="Application GUID"),
    service_provider: str = typer.Option(..., "--service-provider", help="Service provider GUID or alias"),
    session_id: str | None = typer.Option(None, "--session-id", help="Session GUID (generated if omitted)"),
    address: list[str] | None = typer.Option(None, "--address", help="Address part KEY=VALUE (repeatable)"),
    session_name: str | None = typer.Option(None, "--session-name"),
    password: str | None = typer.Option(None, "--password", help="Session password"),
    cwd: Path | None = typer.Option(None, "--cwd", help="Directory containing dprun.exe"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the command instead of running it"),
) -> None:
    """Host a new DirectPlay session."""
    try:
        service = _build_service()
        builder = SessionBuilder().host(
            _parse_guid(session_id, option="--session-id") if session_id else None
        )
        _apply_options(
            builder,
            player=player,
            application=application,
            service_provider=service_provider,
            address=address,
            session_name=session_name,
            password=password,
            cwd=cwd,
        )
        _launch(service, builder, dry_run=dry_run)
    except DPRunError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("join")
def join_session(
    session_id: str = typer.Argument(..., help="GUID of the session to join"),
    player: str = typer.Option(..., "--player", help="In-game name of the local player"),
    application: str = typer.Option(..., "--application", help="Application GUID"),
    service_provider: str = typer.Option(..., "--service-provider", help="Service provider GUID or alias"),
    address: list[str] | None = typer.Option(None, "--address", help="Address part KEY=VALUE (repeatable)"),
    password: str | None = typer.Option(None, "--password", help="Session password"),
    cwd: Path | None = typer.Option(None, "--cwd", help="Directory containing dprun.exe"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the command instead of running it"),
) -> None:
    """Join an existing DirectPlay session."""
    try:
        service = _build_service()
        builder = SessionBuilder().join(_parse_guid(session_id, option="SESSION_ID"))
        _apply_options(
            builder,
            player=player,
            application=application,
            service_provider=service_provider,
            address=address,
            session_name=None,
            password=password,
            cwd=cwd,
        )
        _launch(service, builder, dry_run=dry_run)
    except DPRunError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("launch")
def launch_profile(
    profile: str,
    player: str | None = typer.Option(None, "--player", help="Override the profile's player name"),
    address: list[str] | None = typer.Option(None, "--address", help="Extra address part KEY=VALUE"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the command instead of running it"),
) -> None:
    """Start a session described by a profile.

    Options given on the command line are applied on top of the profile.
    """
    try:
        service = _build_service()
        builder = service.profile_builder(profile)
        _apply_options(
            builder,
            player=player,
            application=None,
            service_provider=None,
            address=address,
            session_name=None,
            password=None,
            cwd=None,
        )
        _launch(service, builder, dry_run=dry_run)
    except DPRunError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
