import sqlite3
from datetime import datetime, timedelta

import pytest

from socialmeli.migrate import MigrationError, apply_migrations
from socialmeli.models import (
    AccountNotFoundError,
    EmailTakenError,
    Post,
    PostForbiddenError,
    PostNotFoundError,
    Product,
    UserNotFoundError,
)
from socialmeli.sql_store import SQLStore

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT UNIQUE,
    password_hash TEXT,
    is_seller BOOLEAN NOT NULL DEFAULT 0,
    avatar_url TEXT,
    created_at TEXT
);
CREATE TABLE follows (
    user_id INTEGER NOT NULL,
    seller_id INTEGER NOT NULL,
    PRIMARY KEY (user_id, seller_id)
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    date TEXT NOT NULL,
    date_str TEXT,
    product_id INTEGER,
    product_name TEXT,
    type TEXT,
    brand TEXT,
    color TEXT,
    notes TEXT,
    image_url TEXT,
    category INTEGER,
    price REAL,
    has_promo BOOLEAN,
    discount REAL
);
"""


@pytest.fixture
def migrations(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "001_init.sql").write_text(SCHEMA, encoding="utf-8")
    return directory


@pytest.fixture
def conn(migrations):
    connection = sqlite3.connect(":memory:")
    apply_migrations(connection, migrations)
    yield connection
    connection.close()


@pytest.fixture
def store(conn):
    return SQLStore(conn)


def add_user(conn, user_id, name, is_seller=False):
    with conn:
        conn.execute(
            "INSERT INTO users (id, name, is_seller) VALUES (?,?,?)",
            (user_id, name, is_seller),
        )


def make_post(user_id, product_id=1, date=None, has_promo=False, discount=0.0, price=100.0):
    return Post(
        user_id=user_id,
        date=date or datetime.now(),
        date_str="01-01-2026",
        product=Product(
            product_id=product_id,
            product_name="Mouse",
            type="peripheral",
            brand="BrandX",
            color="Black",
            notes="note",
        ),
        category=1,
        price=price,
        has_promo=has_promo,
        discount=discount,
    )


def test_get_user_found(store, conn):
    add_user(conn, 1, "Joao", True)
    user = store.get_user(1)
    assert user.id == 1
    assert user.name == "Joao"
    assert user.is_seller is True


def test_get_user_not_found(store):
    assert store.get_user(999) is None


def test_follow_user_not_found(store, conn):
    add_user(conn, 2, "Seller", True)
    with pytest.raises(UserNotFoundError):
        store.follow(1, 2)


def test_follow_success_and_idempotent(store, conn):
    add_user(conn, 1, "Buyer")
    add_user(conn, 2, "Seller", True)
    store.follow(1, 2)
    store.follow(1, 2)
    assert [u.id for u in store.followed_by(1)] == [2]
    assert [u.id for u in store.followers_of(2)] == [1]


def test_unfollow_success(store, conn):
    add_user(conn, 1, "Buyer")
    add_user(conn, 2, "Seller", True)
    store.follow(1, 2)
    store.unfollow(1, 2)
    assert store.followers_of(2) == []


def test_unfollow_user_not_found(store, conn):
    add_user(conn, 1, "Buyer")
    with pytest.raises(UserNotFoundError):
        store.unfollow(1, 2)


def test_followers_of_user_not_found(store):
    with pytest.raises(UserNotFoundError):
        store.followers_of(2)


def test_followers_of_success(store, conn):
    add_user(conn, 1, "Buyer1")
    add_user(conn, 2, "Seller", True)
    add_user(conn, 3, "Buyer2")
    store.follow(1, 2)
    store.follow(3, 2)
    assert sorted(u.name for u in store.followers_of(2)) == ["Buyer1", "Buyer2"]


def test_followed_by_success(store, conn):
    add_user(conn, 1, "Buyer")
    add_user(conn, 2, "SellerA", True)
    add_user(conn, 3, "SellerB", True)
    store.follow(1, 2)
    store.follow(1, 3)
    followed = store.followed_by(1)
    assert len(followed) == 2
    assert all(u.is_seller for u in followed)


def test_add_post_user_not_found(store):
    with pytest.raises(UserNotFoundError):
        store.add_post(make_post(99))


def test_add_post_returns_sequential_ids(store, conn):
    add_user(conn, 2, "Seller", True)
    assert store.add_post(make_post(2)) == 1
    assert store.add_post(make_post(2, product_id=2)) == 2


def test_add_post_round_trip(store, conn):
    add_user(conn, 2, "Seller", True)
    date = datetime(2026, 1, 1, 12, 30)
    store.add_post(make_post(2, product_id=55, date=date, has_promo=True, discount=10.0))
    (post,) = store.posts_by_user(2)
    assert post.product.product_id == 55
    assert post.product.product_name == "Mouse"
    assert post.date == date
    assert post.has_promo is True
    assert post.final_price == 90.0


def test_posts_from_sellers_since_empty_ids(store):
    assert store.posts_from_sellers_since([], datetime.now()) == []


def test_posts_from_sellers_since_filters(store, conn):
    add_user(conn, 2, "SellerA", True)
    add_user(conn, 3, "SellerB", True)
    now = datetime.now()
    t0 = now - timedelta(hours=48)
    t1 = now - timedelta(hours=24)
    store.add_post(make_post(2, date=t0))
    store.add_post(make_post(2, date=now))
    store.add_post(make_post(3, date=t1))
    out = store.posts_from_sellers_since([2, 3], t1)
    assert len(out) == 2
    assert all(p.date >= t1 for p in out)
    only_two = store.posts_from_sellers_since([2], t1)
    assert [p.user_id for p in only_two] == [2]


def test_posts_query_error_returns_empty(migrations, tmp_path):
    broken = sqlite3.connect(":memory:")
    broken.execute("CREATE TABLE posts (id INTEGER, user_id INTEGER, date TEXT, date_str TEXT)")
    broken.execute("INSERT INTO posts VALUES (1, 2, '2026-01-01T00:00:00', '01-01-2026')")
    store = SQLStore(broken)
    assert store.posts_from_sellers_since([2], datetime(2026, 1, 1)) == []
    assert store.posts_by_user(2) == []
    assert store.promo_posts_by_seller(2) == []
    broken.close()


def test_promo_posts_by_seller(store, conn):
    add_user(conn, 2, "SellerA", True)
    add_user(conn, 3, "SellerB", True)
    store.add_post(make_post(2, has_promo=True, discount=10.0))
    store.add_post(make_post(2, has_promo=False))
    store.add_post(make_post(3, has_promo=True, discount=5.0))
    out = store.promo_posts_by_seller(2)
    assert len(out) == 1
    assert out[0].user_id == 2
    assert out[0].has_promo is True
    assert out[0].final_price == 90.0


def test_list_users_asc_and_desc(store, conn):
    add_user(conn, 1, "Alice")
    add_user(conn, 2, "bob", True)
    add_user(conn, 3, "Charlie")
    assert [u.name for u in store.list_users("name_asc")] == ["Alice", "bob", "Charlie"]
    assert [u.name for u in store.list_users("name_desc")] == ["Charlie", "bob", "Alice"]


def test_create_user_uses_next_id(store, conn):
    add_user(conn, 9, "Existing")
    user = store.create_user("New User", True)
    assert (user.id, user.name, user.is_seller) == (10, "New User", True)
    assert store.get_user(10).name == "New User"


def test_create_account_and_get(store, conn):
    add_user(conn, 9, "Existing")
    account = store.create_account("User", "user@example.com", "hash123", True)
    assert account.id == 10
    assert account.email == "user@example.com"
    assert account.created_at is not None
    stored = store.get_account(10)
    assert stored.password_hash == "hash123"
    assert stored.avatar_url == ""
    assert stored.is_seller is True


def test_get_account_by_email_case_insensitive(store):
    account = store.create_account("User", "user@example.com", "hash123", False)
    found = store.get_account_by_email("USER@Example.com")
    assert found.id == account.id


def test_get_account_missing(store):
    assert store.get_account(999) is None
    assert store.get_account_by_email("nobody@example.com") is None


def test_create_account_duplicate_email(store):
    store.create_account("User1", "user@example.com", "hash1", False)
    with pytest.raises(EmailTakenError):
        store.create_account("User2", "User@example.com", "hash2", False)


def test_update_avatar_success(store):
    account = store.create_account("User", "user@example.com", "hash", False)
    updated = store.update_avatar(account.id, "/static/avatars/1.jpg")
    assert updated.avatar_url == "/static/avatars/1.jpg"
    assert store.get_account(account.id).avatar_url == "/static/avatars/1.jpg"


def test_update_avatar_not_found(store):
    with pytest.raises(AccountNotFoundError):
        store.update_avatar(999, "/static/avatars/1.jpg")


def test_posts_by_user(store, conn):
    add_user(conn, 1, "User", True)
    add_user(conn, 2, "Other", True)
    store.add_post(make_post(1, product_id=10))
    store.add_post(make_post(2, product_id=20))
    posts = store.posts_by_user(1)
    assert [p.product.product_id for p in posts] == [10]
    assert posts[0].final_price == 100.0


def test_delete_post_success(store, conn):
    add_user(conn, 1, "User", True)
    post_id = store.add_post(make_post(1))
    store.delete_post(1, post_id)
    assert store.posts_by_user(1) == []


def test_delete_post_not_found(store, conn):
    add_user(conn, 1, "User", True)
    with pytest.raises(PostNotFoundError):
        store.delete_post(1, 999)


def test_delete_post_forbidden(store, conn):
    add_user(conn, 1, "User1", True)
    add_user(conn, 2, "User2", True)
    post_id = store.add_post(make_post(2))
    with pytest.raises(PostForbiddenError):
        store.delete_post(1, post_id)
    assert len(store.posts_by_user(2)) == 1


def test_connect_applies_migrations(migrations, tmp_path):
    with SQLStore.connect(str(tmp_path / "app.db"), migrations) as store:
        user = store.create_user("Ana", False)
        assert store.get_user(user.id).name == "Ana"


def test_connect_missing_migrations_dir(tmp_path):
    with pytest.raises(MigrationError):
        SQLStore.connect(str(tmp_path / "app.db"), tmp_path / "missing")