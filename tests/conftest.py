import pytest

from para_ioc import ServiceContainer


@pytest.fixture
def container():
    return ServiceContainer()
