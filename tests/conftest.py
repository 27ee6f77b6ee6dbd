import os
import tempfile

# Settings read the environment at import time
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="fitcheck-test-"))
os.environ.setdefault("RATE_LIMIT_PER_MIN", "0")
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("VTO_PROVIDER", None)
