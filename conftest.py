"""Configure pytest for the Course Evaluator project."""
import os
import sys
from pathlib import Path

import pytest

# =============================================================================
# CI/Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports
# Low bcrypt cost keeps the auth tests fast
os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("COURSE_EVAL_SECRET_KEY", "test-secret-key-not-for-production")

# Add repo root to path so tests can import the top-level packages
root_path = Path(__file__).parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))


@pytest.fixture(autouse=True)
def fresh_database(tmp_path):
    """Point persistence at an empty database file for every test."""
    from persistence.db import close_db, configure_db, init_db

    db_path = configure_db(tmp_path / "course_evaluator.db")
    init_db()
    yield db_path
    close_db()
