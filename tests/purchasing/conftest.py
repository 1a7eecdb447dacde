import os

import pytest


@pytest.fixture(scope="session")
def _purchasing_domain(request):
    """Initialize the purchasing domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from purchasing.domain import purchasing

    purchasing.init()
    return purchasing


@pytest.fixture(scope="session", autouse=True)
def setup_db(_purchasing_domain):
    from purchasing.utils.db import drop_db, setup_db

    setup_db(_purchasing_domain)

    yield

    drop_db(_purchasing_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_purchasing_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _purchasing_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()
