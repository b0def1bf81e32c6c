import logging
from pathlib import Path

from livechat.api.common import TEMPLATE_DIR
from livechat.database import Database
from livechat.startup_self_check import analyze_startup_state, run_startup_self_check


def test_analyze_startup_state_ok() -> None:
    result = analyze_startup_state(database_ok=True, templates_ok=True)

    assert result.issues == []


def test_analyze_startup_state_collects_issues() -> None:
    result = analyze_startup_state(database_ok=False, templates_ok=False)

    assert result.issues == ["database_unreachable", "templates_missing"]


def test_run_startup_self_check_with_live_database() -> None:
    result = run_startup_self_check(
        database=Database("sqlite://"),
        template_dir=TEMPLATE_DIR,
        logger=logging.getLogger("test"),
    )

    assert result.database_ok is True
    assert result.templates_ok is True


def test_run_startup_self_check_flags_unreachable_database(tmp_path: Path, caplog) -> None:  # type: ignore[no-untyped-def]
    database = Database(f"sqlite:///{tmp_path / 'absent' / 'chat.db'}")

    with caplog.at_level(logging.WARNING):
        result = run_startup_self_check(
            database=database,
            template_dir=tmp_path,
            logger=logging.getLogger("test"),
        )

    assert result.issues == ["database_unreachable", "templates_missing"]
    assert "anomaly=database_unreachable" in caplog.text
