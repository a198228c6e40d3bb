import os
import sys
from pathlib import Path

import pytest

# Puts 'src' on sys.path before collection so the top-level packages
# (common, crud, dal, rest_gateway, schema) import without installation.

if sys.version_info < (3, 10):
    print(
        f"ERROR: This project requires Python 3.10+ (found {sys.version.split()[0]}).",
        file=sys.stderr,
    )
    sys.exit(1)


ROOT_DIR = Path(__file__).parent.absolute()
src_dir = ROOT_DIR / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))


def pytest_collection_modifyitems(config, items):
    """Skip integration and live-database tests unless RUN_INTEGRATION_TESTS=1."""
    run_integration = os.getenv("RUN_INTEGRATION_TESTS", "0") == "1"

    skip_integration = pytest.mark.skip(
        reason="Skipping integration tests (set RUN_INTEGRATION_TESTS=1 to run)"
    )
    for item in items:
        is_integration_path = f"{os.sep}tests{os.sep}integration{os.sep}" in str(item.fspath)
        needs_live_db = item.get_closest_marker("integration") or item.get_closest_marker(
            "requires_db"
        )
        if (is_integration_path or needs_live_db) and not run_integration:
            item.add_marker(skip_integration)
