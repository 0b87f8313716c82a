import pytest

from beanbox import api
from beanbox.context import BeanContext


@pytest.fixture
def context() -> BeanContext:
    return BeanContext()


@pytest.fixture(autouse=True)
def fresh_default_context():
    yield
    api.init()
