import pathlib
import site

import pytest
from tvp.types import TypeHandlerRegistry

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def reset_type_registry():
    """Drop custom type handlers before and after each test to ensure test isolation."""
    TypeHandlerRegistry._instance = None
    yield
    TypeHandlerRegistry._instance = None


pytest_plugins = [
    'tests.fixtures.values',
    'tests.fixtures.tables',
]
