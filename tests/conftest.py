import os
import tempfile

# Keep the module-level database out of the working tree during tests
os.environ.setdefault("PNL_DB_PATH", os.path.join(tempfile.mkdtemp(), "pnl_test.db"))
