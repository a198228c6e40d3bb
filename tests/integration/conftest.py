import pytest


def pytest_collection_modifyitems(items):
    """Tests under tests/integration need a live server and RUN_INTEGRATION_TESTS=1."""
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)
