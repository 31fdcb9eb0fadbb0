import os
import tempfile

# Point the application at throwaway resources before any app module imports
_TEST_DIR = tempfile.mkdtemp(prefix="clean-city-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["AUTH_SECRET_KEY"] = "test-secret"
os.environ["AUTH_ALGORITHM"] = "HS256"
os.environ["SHEETS_EXPORT_URL"] = "https://sheets.example.test/exec"
os.environ.pop("GEMINI_API_KEY", None)
