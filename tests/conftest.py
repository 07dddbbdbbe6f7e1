"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import hackstore...' and
'import actions...' work without installing the package.
"""
import logging
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def restore_root_logger():
    """
    Snapshot the root logger and restore it after the test.

    setup_logging() replaces the root handlers; without this, handlers bound
    to a test's captured stdout or tmp_path would outlive the test.
    """
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield root
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
