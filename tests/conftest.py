import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session")
def qapp():
    """A Qt core application for tests that connect signals."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
