import os

import pytest

from shared_http_cache import AsyncInMemoryStorage, MockAsyncTransport


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def use_temp_dir(tmpdir):
    cur_dir = os.getcwd()
    os.chdir(tmpdir)
    yield
    os.chdir(cur_dir)


@pytest.fixture
def storage() -> AsyncInMemoryStorage:
    return AsyncInMemoryStorage()


@pytest.fixture
def transport() -> MockAsyncTransport:
    return MockAsyncTransport()
