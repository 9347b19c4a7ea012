import pytest

from socialmeli.memory_store import MemoryStore
from socialmeli.seed import seed_default


@pytest.mark.parametrize("user_id", [123, 234, 6932, 4698])
def test_seed_default_inserts_users(user_id):
    store = MemoryStore()
    seed_default(store)
    user = store.get_user(user_id)
    assert user is not None and user.id == user_id


def test_seed_default_sellers():
    store = MemoryStore()
    seed_default(store)
    assert store.get_user(234).name == "vendedor1"
    assert store.get_user(234).is_seller
    assert not store.get_user(123).is_seller