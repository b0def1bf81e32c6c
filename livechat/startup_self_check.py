from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from livechat.database import Database


@dataclass(frozen=True)
class StartupSelfCheckResult:
    database_ok: bool
    templates_ok: bool
    issues: list[str]


def run_startup_self_check(
    *,
    database: Database,
    template_dir: Path,
    logger: logging.Logger,
) -> StartupSelfCheckResult:
    database_ok = _ping_database(database)
    templates_ok = (template_dir / "chat.html").is_file()
    result = analyze_startup_state(database_ok=database_ok, templates_ok=templates_ok)

    if not result.database_ok:
        logger.warning("startup_self_check anomaly=database_unreachable url=%s", _redact(database.url))
    if not result.templates_ok:
        logger.warning("startup_self_check anomaly=templates_missing dir=%s", template_dir)
    if not result.issues:
        logger.info("startup_self_check ok")
    return result


def analyze_startup_state(*, database_ok: bool, templates_ok: bool) -> StartupSelfCheckResult:
    issues: list[str] = []
    if not database_ok:
        issues.append("database_unreachable")
    if not templates_ok:
        issues.append("templates_missing")
    return StartupSelfCheckResult(
        database_ok=database_ok,
        templates_ok=templates_ok,
        issues=issues,
    )


def _ping_database(database: Database) -> bool:
    try:
        database.ping()
    except SQLAlchemyError:
        return False
    return True


def _redact(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    return f"{scheme}://***@{rest.rsplit('@', 1)[1]}"
