"""CaseGuard CLI - Encrypted case record vault."""

import dataclasses
import os
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..codec import RecordCodec
from ..config.settings import Settings, get_settings
from ..models import CaseRecord, Hearing, Status, calculate_auto_status, get_status_label
from ..storage import CaseNotFoundError, CaseService, CaseStore
from ..utils.logging import setup_logging
from ..vault import (
    JsonFileMetadataStore,
    VaultConfig,
    VaultError,
    VaultStore,
    user_message,
)

app = typer.Typer(
    name="caseguard",
    help="Encrypted vault for legal case records.",
    no_args_is_help=True,
)

console = Console()

PASSPHRASE_ENV = "CASEGUARD_PASSPHRASE"


@dataclasses.dataclass
class CliState:
    """Options shared by all commands."""

    identity: Optional[str]
    settings: Settings
    vault_config: VaultConfig


@app.callback()
def main_options(
    ctx: typer.Context,
    identity: Optional[str] = typer.Option(
        None,
        "--identity", "-u",
        envvar="CASEGUARD_IDENTITY",
        help="User identity the vault belongs to",
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        help="Directory holding vault metadata and case stores",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
):
    """Encrypted vault for legal case records."""
    settings = dataclasses.replace(get_settings())
    if data_dir is not None:
        settings.data_dir = data_dir

    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)

    ctx.obj = CliState(
        identity=identity,
        settings=settings,
        vault_config=VaultConfig.from_env(),
    )


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@contextmanager
def _vault_errors() -> Iterator[None]:
    """Turn vault exceptions into user-safe messages and exit code 1."""
    try:
        yield
    except VaultError as e:
        _fail(user_message(e))
    except CaseNotFoundError:
        _fail("Case not found.")
    except ValueError as e:
        _fail(str(e))


def _prompt_passphrase(confirm: bool = False) -> str:
    if passphrase := os.getenv(PASSPHRASE_ENV):
        return passphrase
    return typer.prompt("Passphrase", hide_input=True, confirmation_prompt=confirm)


def _open_vault(state: CliState) -> VaultStore:
    if not state.identity:
        _fail("No identity given. Use --identity or set CASEGUARD_IDENTITY.")

    metadata_store = JsonFileMetadataStore(
        state.settings.metadata_path,
        prefix=state.vault_config.storage_prefix,
    )
    vault = VaultStore(metadata_store, state.vault_config)
    vault.bind_identity(state.identity)
    return vault


@contextmanager
def _unlocked_service(state: CliState) -> Iterator[CaseService]:
    """Unlock the vault for one command and lock it again afterwards."""
    with _vault_errors():
        vault = _open_vault(state)

        if not vault.is_initialized():
            _fail("Vault not initialized. Run 'caseguard init' first.")

        vault.unlock(_prompt_passphrase())

        store = CaseStore(state.settings.cases_path(state.identity))
        codec = RecordCodec(state.vault_config.codec_workers)
        try:
            service = CaseService(vault, store, codec)
            service.verify_passphrase()
            yield service
        finally:
            vault.lock()
            codec.close()


@app.command()
def init(ctx: typer.Context):
    """
    Create the vault for an identity.

    Prompts for a new passphrase. The passphrase cannot be recovered.
    """
    state: CliState = ctx.obj

    with _vault_errors():
        vault = _open_vault(state)
        if vault.is_initialized():
            _fail("Vault is already initialized for this identity.")

        vault.initialize(_prompt_passphrase(confirm=True))

        store = CaseStore(state.settings.cases_path(state.identity))
        with RecordCodec(max_workers=1) as codec:
            CaseService(vault, store, codec).seal_verifier()
        vault.lock()

    console.print("[green]Vault initialized.[/green]")


@app.command("vault-status")
def vault_status(ctx: typer.Context):
    """Show whether the identity has a vault."""
    state: CliState = ctx.obj

    with _vault_errors():
        vault = _open_vault(state)

    console.print(f"Identity: {state.identity}")
    console.print(f"Initialized: {'yes' if vault.is_initialized() else 'no'}")
    console.print(f"State: {vault.state.value}")


@app.command()
def add(
    ctx: typer.Context,
    case_number: str = typer.Option(..., "--case-number", "-n", help="Case number"),
    client_name: str = typer.Option("", "--client-name", help="Client name"),
    client_contact: str = typer.Option("", "--client-contact", help="Client contact details"),
    next_hearing: str = typer.Option("", "--next-hearing", help="Next hearing date (YYYY-MM-DD)"),
    evidence: Optional[List[str]] = typer.Option(
        None,
        "--evidence", "-e",
        help="Evidence entry (repeatable)",
    ),
    status: Status = typer.Option(Status.OPEN, "--status", "-s", help="Case status"),
    auto_status: bool = typer.Option(
        False,
        "--auto-status",
        help="Derive status from the next hearing and evidence",
    ),
):
    """Encrypt and store a new case."""
    state: CliState = ctx.obj

    record = CaseRecord(
        case_number=case_number,
        creation_date=date.today().isoformat(),
        next_hearing=next_hearing,
        client_name=client_name,
        client_contact=client_contact,
        evidence=list(evidence or []),
        status=status,
    )
    if auto_status:
        record.status = calculate_auto_status(record)

    with _unlocked_service(state) as service:
        service.create_case(record)

    console.print(f"[green]Case {case_number} saved ({get_status_label(record.status)}).[/green]")


@app.command("list")
def list_cases(
    ctx: typer.Context,
    status: Optional[Status] = typer.Option(None, "--status", "-s", help="Only cases with this status"),
):
    """Decrypt and list cases."""
    state: CliState = ctx.obj

    with _unlocked_service(state) as service:
        cases = service.list_cases(status)

    if not cases:
        console.print("No cases found.")
        return

    table = Table(title=f"Cases ({len(cases)})")
    table.add_column("Case Number", style="cyan")
    table.add_column("Client")
    table.add_column("Next Hearing")
    table.add_column("Evidence", justify="right")
    table.add_column("Status")

    for stored in cases:
        record = stored.record
        table.add_row(
            record.case_number,
            record.client_name,
            record.next_hearing,
            str(record.evidence_count),
            get_status_label(record.status),
        )

    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    case_number: str = typer.Argument(..., help="Case number"),
):
    """Decrypt and show one case."""
    state: CliState = ctx.obj

    with _unlocked_service(state) as service:
        stored = service.find_case(case_number)

    if stored is None:
        _fail("Case not found.")

    record = stored.record
    console.print(f"\n[bold]Case: {record.case_number}[/bold]")
    console.print(f"Status: {get_status_label(record.status)}")
    console.print(f"Created: {record.creation_date}")
    console.print(f"Next hearing: {record.next_hearing or '-'}")
    console.print(f"Client: {record.client_name}")
    console.print(f"Contact: {record.client_contact}")

    console.print(f"\nEvidence ({record.evidence_count}):")
    for item in record.evidence:
        console.print(f"  - {item}")

    if record.hearings:
        table = Table(title="Hearings")
        table.add_column("Date", style="cyan")
        table.add_column("Outcome")
        table.add_column("Notes")
        table.add_column("Status")
        for hearing in record.hearings:
            table.add_row(hearing.date, hearing.outcome, hearing.notes, get_status_label(hearing.status))
        console.print(table)


@app.command("add-hearing")
def add_hearing(
    ctx: typer.Context,
    case_number: str = typer.Argument(..., help="Case number"),
    hearing_date: str = typer.Option(..., "--date", "-d", help="Hearing date"),
    outcome: str = typer.Option("", "--outcome", help="Outcome"),
    notes: str = typer.Option("", "--notes", help="Notes"),
    status: Status = typer.Option(Status.SCHEDULED, "--status", "-s", help="Hearing status"),
):
    """Append a hearing to a case."""
    state: CliState = ctx.obj

    hearing = Hearing(date=hearing_date, outcome=outcome, notes=notes, status=status)
    with _unlocked_service(state) as service:
        service.add_hearing(case_number, hearing)

    console.print(f"[green]Hearing added to {case_number}.[/green]")


@app.command("add-evidence")
def add_evidence(
    ctx: typer.Context,
    case_number: str = typer.Argument(..., help="Case number"),
    evidence: str = typer.Argument(..., help="Evidence entry"),
):
    """Append an evidence entry to a case."""
    state: CliState = ctx.obj

    with _unlocked_service(state) as service:
        service.add_evidence(case_number, evidence)

    console.print(f"[green]Evidence added to {case_number}.[/green]")


@app.command("set-status")
def set_status(
    ctx: typer.Context,
    case_number: str = typer.Argument(..., help="Case number"),
    status: Status = typer.Argument(..., help="New status"),
):
    """Change the status of a case."""
    state: CliState = ctx.obj

    with _unlocked_service(state) as service:
        service.set_status(case_number, status)

    console.print(f"[green]{case_number} is now {get_status_label(status)}.[/green]")


@app.command()
def delete(
    ctx: typer.Context,
    case_number: str = typer.Argument(..., help="Case number"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a case."""
    state: CliState = ctx.obj

    if not yes:
        typer.confirm(f"Delete case {case_number}?", abort=True)

    with _unlocked_service(state) as service:
        service.delete_case(case_number)

    console.print(f"[green]Case {case_number} deleted.[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"CaseGuard v{__version__}")
    console.print("Encrypted case record vault")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
