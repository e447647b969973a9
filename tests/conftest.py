import pytest

from formflow.store import FormStore


@pytest.fixture(scope="session")
def store():
    """Load every form under forms/ once for the entire test session."""
    s = FormStore()
    s.load()
    return s


@pytest.fixture
def kitchen(store):
    return store.get_graph("kitchen-quote")


@pytest.fixture
def feedback(store):
    return store.get_graph("customer-feedback")
