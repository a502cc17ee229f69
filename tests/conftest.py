from pathlib import Path

import pytest

from swaggergen.config import Settings
from swaggergen.design.base import DesignRoot
from swaggergen.design.loader import load_design

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def petstore() -> DesignRoot:
    return load_design(FIXTURES / "petstore.yaml")
