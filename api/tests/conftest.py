import os
import tempfile
from pathlib import Path

# Keep module-level engine creation off the production database during tests.
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'roomie_match_test.db'}")
