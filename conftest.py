from __future__ import annotations

import os

import pytest

# Keep the module-level engine off the dev database file.
os.environ.setdefault("APPHUB_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APPHUB_ENVIRONMENT", "test")


def _db_enabled() -> bool:
    flag = os.getenv("APPHUB_PYTEST_DB") or os.getenv("PYTEST_DB")
    if flag:
        return flag.strip().lower() in {"1", "true", "yes", "on"}
    return False


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "requires_db: marks tests that run against APPHUB_TEST_DATABASE_URL (enable with APPHUB_PYTEST_DB=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items) -> None:
    if _db_enabled():
        return
    skip_db = pytest.mark.skip(reason="external database tests disabled (set APPHUB_PYTEST_DB=1)")
    for item in items:
        if "requires_db" in item.keywords:
            item.add_marker(skip_db)
