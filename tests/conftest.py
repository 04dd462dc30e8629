import pytest

from fakes import FakeBackendFactory, make_conf_reader


@pytest.fixture
def backend_factory() -> FakeBackendFactory:
    return FakeBackendFactory()


@pytest.fixture
def conf_reader():
    return make_conf_reader("10.7.0.1", "10.7.0.2")
