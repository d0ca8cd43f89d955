import os

import pytest
import verboselogs

# No display is needed; the app shell is headless.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(autouse=True, scope="session")
def install_verboselogs_for_tests():
    """
    Ensures that verboselogs is installed (monkeypatches logging)
    once for the entire test session.
    """
    verboselogs.install()
