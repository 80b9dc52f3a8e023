"""
tests.test_consistency

Credential drift between the db service and the psql command line.

Responsibilities:
- Consistent documents report nothing.
- Each mismatched field is reported without leaking passwords.
- psql argv parsing handles option values and positional forms.
"""

from __future__ import annotations

from pathlib import Path

from unistate_devenv.compose.consistency import find_credential_drift, parse_psql_target
from unistate_devenv.compose.io import load_document, read_document


def test_hand_written_file_is_consistent(hand_written_compose: Path) -> None:
    assert find_credential_drift(read_document(hand_written_compose)) == []


def test_user_and_database_drift_reported(hand_written_text: str) -> None:
    text = hand_written_text.replace(
        '"-U", "unistate_dev", "unistate_dev"', '"-U", "postgres", "other_db"'
    )
    drift = {d.field: d for d in find_credential_drift(load_document(text))}

    assert set(drift) == {"user", "database"}
    assert drift["user"].expected == "unistate_dev"
    assert drift["user"].actual == "postgres"


def test_wrong_host_reported(hand_written_text: str) -> None:
    text = hand_written_text.replace('"-h", "db"', '"-h", "localhost"')
    assert [d.field for d in find_credential_drift(load_document(text))] == ["host"]


def test_password_drift_does_not_leak_values(hand_written_text: str) -> None:
    text = hand_written_text.replace(
        "    depends_on:\n      - db\n",
        "    depends_on:\n      - db\n    environment:\n      PGPASSWORD: hunter2\n",
    )
    (drift,) = find_credential_drift(load_document(text))

    assert drift.field == "password"
    assert "hunter2" not in str(drift)
    assert "unistate_dev" not in str(drift)


def test_missing_client_service() -> None:
    doc = load_document("services:\n  db:\n    image: postgres\n")
    (drift,) = find_credential_drift(doc)
    assert drift.field == "service" and drift.expected == "psql"


def test_image_defaults_apply_when_env_is_unset() -> None:
    doc = load_document(
        "services:\n"
        "  db:\n    image: postgres\n"
        "  psql:\n    image: postgres\n    command: psql -h db -U postgres\n"
    )
    assert find_credential_drift(doc) == []


def test_parse_psql_target_forms() -> None:
    assert parse_psql_target(["psql", "--host=db", "--username", "u", "-d", "x"]).database == "x"
    target = parse_psql_target(["psql", "-hdb", "-p", "6543", "mydb", "me"])
    assert (target.host, target.port, target.database, target.user) == ("db", "6543", "mydb", "me")
    assert parse_psql_target(["psql", "-U", "me"]).database == "me"


def test_options_with_values_are_not_mistaken_for_the_database(hand_written_text: str) -> None:
    text = hand_written_text.replace(
        '"-U", "unistate_dev", "unistate_dev"',
        '"-U", "unistate_dev", "-v", "ON_ERROR_STOP=1", "-c", "SELECT 1", "unistate_dev"',
    )
    assert find_credential_drift(load_document(text)) == []


def test_parse_psql_target_skips_option_values() -> None:
    target = parse_psql_target(
        ["psql", "--set", "AUTOCOMMIT=off", "-f", "seed.sql", "-vX=1", "-h", "db", "app", "me"]
    )
    assert (target.host, target.database, target.user) == ("db", "app", "me")

    only_command = parse_psql_target(["psql", "-U", "me", "--command", "SELECT 1"])
    assert only_command.database == "me"
