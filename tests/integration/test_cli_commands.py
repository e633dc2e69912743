"""Integration tests for CLI commands."""

import json
from datetime import date
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from caseguard.cli.main import app
from caseguard.config import Settings

runner = CliRunner()

PASSPHRASE = "correct-horse-battery"
FAST_ENV = {"VAULT_PBKDF2_ITERATIONS": "1000"}


def invoke(data_dir: Path, *args: str, passphrase: str = PASSPHRASE, identity: str = "u1", **kwargs):
    """Run the CLI against an isolated data directory."""
    env = dict(FAST_ENV, CASEGUARD_PASSPHRASE=passphrase)
    return runner.invoke(
        app,
        ["--data-dir", str(data_dir), "-u", identity, *args],
        env=env,
        **kwargs,
    )


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Data directory with an initialized vault for identity u1."""
    result = invoke(tmp_path, "init")
    assert result.exit_code == 0
    return tmp_path


class TestInitCommand:
    """Tests for the init command."""

    def test_init_creates_metadata(self, tmp_path: Path):
        result = invoke(tmp_path, "init")

        assert result.exit_code == 0
        assert "Vault initialized." in result.stdout

        data = json.loads((tmp_path / "vault.json").read_text())
        assert set(data) == {"caseguard_vault_u1"}
        assert data["caseguard_vault_u1"]["initialized"] is True

    def test_init_twice_fails(self, vault_dir: Path):
        """'init' never overwrites an existing vault."""
        before = (vault_dir / "vault.json").read_text()

        result = invoke(vault_dir, "init", passphrase="another-passphrase")

        assert result.exit_code == 1
        assert "already initialized" in result.stdout
        assert (vault_dir / "vault.json").read_text() == before

    def test_init_prompts_for_passphrase(self, tmp_path: Path):
        """Without the environment variable the passphrase is prompted twice."""
        result = invoke(tmp_path, "init", passphrase=None, input=f"{PASSPHRASE}\n{PASSPHRASE}\n")

        assert result.exit_code == 0
        assert "Vault initialized." in result.stdout

    def test_init_short_passphrase(self, tmp_path: Path):
        result = invoke(tmp_path, "init", passphrase="short")

        assert result.exit_code == 1
        assert "at least 8 characters" in result.stdout
        assert not (tmp_path / "vault.json").exists()

    def test_init_without_identity(self, tmp_path: Path):
        env = dict(FAST_ENV, CASEGUARD_IDENTITY=None)

        result = runner.invoke(app, ["--data-dir", str(tmp_path), "init"], env=env)

        assert result.exit_code == 1
        assert "No identity given" in result.stdout


class TestVaultStatusCommand:
    """Tests for the vault-status command."""

    def test_uninitialized(self, tmp_path: Path):
        result = invoke(tmp_path, "vault-status")

        assert result.exit_code == 0
        assert "Initialized: no" in result.stdout
        assert "uninitialized" in result.stdout

    def test_initialized(self, vault_dir: Path):
        result = invoke(vault_dir, "vault-status")

        assert result.exit_code == 0
        assert "Initialized: yes" in result.stdout
        assert "State: locked" in result.stdout


class TestCaseCommands:
    """Tests for adding, listing and showing cases."""

    def test_add_and_list(self, vault_dir: Path):
        result = invoke(
            vault_dir, "add",
            "-n", "CR-1",
            "--client-name", "Maria Garcia",
            "-e", "e1",
            "-e", "e2",
        )

        assert result.exit_code == 0
        assert "Case CR-1 saved (Open)." in result.stdout

        result = invoke(vault_dir, "list")

        assert result.exit_code == 0
        assert "CR-1" in result.stdout
        assert "Maria Garcia" in result.stdout

    def test_case_file_is_encrypted(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1", "--client-name", "Maria Garcia")

        cases_path = Settings(data_dir=vault_dir).cases_path("u1")
        text = cases_path.read_text()

        assert "CR-1" not in text
        assert "Maria Garcia" not in text
        assert yaml.safe_load(text)["cases"][0]["status"] == "open"

    def test_list_empty(self, vault_dir: Path):
        result = invoke(vault_dir, "list")

        assert result.exit_code == 0
        assert "No cases found." in result.stdout

    def test_list_by_status(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1", "-s", "open")
        invoke(vault_dir, "add", "-n", "CR-2", "-s", "closed")

        result = invoke(vault_dir, "list", "--status", "closed")

        assert result.exit_code == 0
        assert "CR-2" in result.stdout
        assert "CR-1" not in result.stdout

    def test_add_auto_status(self, vault_dir: Path):
        """A hearing within the week is scheduled."""
        result = invoke(
            vault_dir, "add",
            "-n", "CR-1",
            "-e", "e1",
            "--next-hearing", date.today().isoformat(),
            "--auto-status",
        )

        assert result.exit_code == 0
        assert "(Scheduled)" in result.stdout

    def test_add_duplicate(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1")

        result = invoke(vault_dir, "add", "-n", "CR-1")

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_show(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1", "--client-contact", "555-0100", "-e", "Body cam")
        invoke(vault_dir, "add-hearing", "CR-1", "-d", "2025-02-01", "--outcome", "Reset")
        invoke(vault_dir, "add-evidence", "CR-1", "Police report")

        result = invoke(vault_dir, "show", "CR-1")

        assert result.exit_code == 0
        assert "Case: CR-1" in result.stdout
        assert "555-0100" in result.stdout
        assert "Evidence (2)" in result.stdout
        assert "Police report" in result.stdout
        assert "2025-02-01" in result.stdout
        assert "Reset" in result.stdout

    def test_show_missing(self, vault_dir: Path):
        result = invoke(vault_dir, "show", "CR-404")

        assert result.exit_code == 1
        assert "Case not found." in result.stdout

    def test_set_status(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1")

        result = invoke(vault_dir, "set-status", "CR-1", "awaitingCourt")

        assert result.exit_code == 0
        assert "Awaiting Court" in result.stdout
        assert "Awaiting Court" in invoke(vault_dir, "show", "CR-1").stdout

    def test_delete(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1")

        result = invoke(vault_dir, "delete", "CR-1", "--yes")

        assert result.exit_code == 0
        assert "No cases found." in invoke(vault_dir, "list").stdout

    def test_delete_missing(self, vault_dir: Path):
        result = invoke(vault_dir, "delete", "CR-404", "--yes")

        assert result.exit_code == 1
        assert "Case not found." in result.stdout


class TestVaultErrors:
    """Tests for user-facing vault errors."""

    def test_not_initialized(self, tmp_path: Path):
        result = invoke(tmp_path, "list")

        assert result.exit_code == 1
        assert "Vault not initialized" in result.stdout

    def test_wrong_passphrase(self, vault_dir: Path):
        """A wrong passphrase is reported on the first decrypt."""
        invoke(vault_dir, "add", "-n", "CR-1")

        result = invoke(vault_dir, "list", passphrase="wrong-passphrase")

        assert result.exit_code == 1
        assert "Incorrect passphrase." in result.stdout

    def test_wrong_passphrase_on_empty_store_writes_nothing(self, vault_dir: Path):
        """A mistyped passphrase cannot seal the first case under the wrong key."""
        result = invoke(vault_dir, "add", "-n", "CR-1", passphrase="typo-horse-battery")

        assert result.exit_code == 1
        assert "Incorrect passphrase." in result.stdout

        result = invoke(vault_dir, "list")
        assert result.exit_code == 0
        assert "No cases found." in result.stdout

        result = invoke(vault_dir, "add", "-n", "CR-1")
        assert result.exit_code == 0
        assert invoke(vault_dir, "delete", "CR-1", "--yes").exit_code == 0

    def test_init_seals_verifier(self, vault_dir: Path):
        cases_path = Settings(data_dir=vault_dir).cases_path("u1")

        data = yaml.safe_load(cases_path.read_text())

        assert isinstance(data["verifier"], str)
        assert data["cases"] == []

    def test_corrupted_store(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1")
        cases_path = Settings(data_dir=vault_dir).cases_path("u1")
        data = yaml.safe_load(cases_path.read_text())
        data["cases"][0]["clientName"] = "not a blob!"
        cases_path.write_text(yaml.safe_dump(data))

        result = invoke(vault_dir, "list")

        assert result.exit_code == 1
        assert "Data corrupted." in result.stdout

    def test_identities_are_separate(self, vault_dir: Path):
        invoke(vault_dir, "add", "-n", "CR-1")
        invoke(vault_dir, "init", identity="u2")

        result = invoke(vault_dir, "list", identity="u2")

        assert result.exit_code == 0
        assert "No cases found." in result.stdout


class TestVersionCommand:
    """Tests for the version command."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "CaseGuard v0.1.0" in result.stdout
