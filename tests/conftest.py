import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from generate_db import build_state_table


@pytest.fixture(scope="session")
def shallow_build():
    """Every state within four quarter turns of solved."""
    return build_state_table(max_depth=4, progress_every=0)


@pytest.fixture(scope="session")
def full_build():
    return build_state_table(progress_every=0)
