"""Tests for the duobudget command line."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from duobudget.cli import main


@pytest.fixture
def cli_env(tmp_path):
    return {
        "DUOBUDGET_DATA_DIR": str(tmp_path),
        "DUOBUDGET_DATABASE_URL": f"sqlite:///{tmp_path / 'cli.db'}",
        "DUOBUDGET_DEV_MODE": "0",
    }


@pytest.fixture
def runner():
    return CliRunner()


def _invoke(runner, env, *args):
    return runner.invoke(main, list(args), env=env, catch_exceptions=False)


def test_init_db(runner, cli_env, tmp_path):
    result = _invoke(runner, cli_env, "init-db")

    assert result.exit_code == 0
    assert "Database ready" in result.output
    assert (tmp_path / "cli.db").exists()


def test_create_user_twice_fails(runner, cli_env):
    first = _invoke(runner, cli_env, "create-user", "alice")
    second = _invoke(runner, cli_env, "create-user", "alice")

    assert first.exit_code == 0
    assert "Created user alice (id=1)" in first.output
    assert second.exit_code == 1
    assert "already exists" in second.output


def test_seed_categories(runner, cli_env):
    assert "Seeded 9 categories" in _invoke(runner, cli_env, "seed-categories").output
    assert "Seeded 0 categories" in _invoke(runner, cli_env, "seed-categories").output


def test_import_csv_prints_report(runner, cli_env, tmp_path):
    _invoke(runner, cli_env, "create-user", "alice")
    upload = tmp_path / "expenses.csv"
    upload.write_text(
        "date,montant,categorie,description\n"
        "15/01/2024,100.50,Groceries,Milk\n"
        "invalid,200,Rent,Flat\n",
        encoding="utf-8",
    )

    result = _invoke(
        runner, cli_env, "import-csv", str(upload), "--user-id", "1", "--dialect", "generic"
    )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["totalLinesRead"] == 2
    assert payload["importedCount"] == 1
    assert payload["errors"][0]["line"] == 2


def test_import_csv_auto_runs_both_kinds(runner, cli_env, tmp_path):
    _invoke(runner, cli_env, "create-user", "alice")
    upload = tmp_path / "statement.csv"
    upload.write_text(
        "Date;Libellé;Débit;Crédit;Catégorie\n"
        "02/03/2024;Loyer;-750,00;;Logement\n"
        "05/03/2024;Salaire;;2 500,00;Salaire\n",
        encoding="utf-8",
    )

    result = _invoke(runner, cli_env, "import-csv", str(upload), "--user-id", "1", "--kind", "auto")

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["expenses"]["importedCount"] == 1
    assert payload["revenues"]["importedCount"] == 1


def test_import_csv_fatal_error_exits_1(runner, cli_env, tmp_path):
    _invoke(runner, cli_env, "create-user", "alice")
    upload = tmp_path / "broken.csv"
    upload.write_bytes(b'date;amount;category\n"15/01/2024"x;10;Food\n')

    result = _invoke(runner, cli_env, "import-csv", str(upload), "--user-id", "1")

    assert result.exit_code == 1
    assert "Import failed" in result.output
