import sys
import os

import pytest

# Ensure repo root on sys.path for imports like `codejudge...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tests.fakesupabase import FakeSupabase  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db(monkeypatch):
    """Route every repository's ``get_supabase`` to one in-memory store."""
    from codejudge.features.problems import repository as problems_repo
    from codejudge.features.progress import repository as progress_repo
    from codejudge.features.submissions import repository as submissions_repo

    db = FakeSupabase()

    async def fake_get_supabase():
        return db

    for module in (problems_repo, progress_repo, submissions_repo):
        monkeypatch.setattr(module, "get_supabase", fake_get_supabase)
    return db
