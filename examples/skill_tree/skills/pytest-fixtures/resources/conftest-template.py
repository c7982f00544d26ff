import pytest


@pytest.fixture
def sample_user():
    return {"id": 1, "name": "Ada"}
