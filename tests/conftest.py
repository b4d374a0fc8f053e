import os
import tempfile

# Settings and the engine are built at import time, so the environment has
# to point at a throwaway database before the app is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="jobnexus-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_CLOUD_API_KEY"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["EMAIL_NOTIFICATIONS"] = "false"

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session", autouse=True)
def app_tables():
    """Run the app lifespan once so every table exists"""
    from jobnexus.main import app

    with TestClient(app):
        yield
