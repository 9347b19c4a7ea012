# socialmeli

The storage layer for a small social marketplace. Buyers follow sellers,
sellers publish product posts (optionally with a promotional discount), and
accounts carry an e-mail, a password hash and an avatar.

Two interchangeable stores implement the abstract `Store` class from
`socialmeli.models`:

- `MemoryStore` (`socialmeli.memory_store`) keeps everything in memory and is
  thread-safe.
- `SQLStore` (`socialmeli.sql_store`) keeps its data in an SQLite database
  through the standard `sqlite3` module and applies `.sql` migration files on
  connect.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Quick start

```python
from datetime import datetime, timedelta

from socialmeli.memory_store import MemoryStore
from socialmeli.models import Post, Product, UserNotFoundError
from socialmeli.seed import seed_default

store = MemoryStore()
seed_default(store)              # users 123, 234, 4698 and 6932

store.follow(123, 234)
print([u.name for u in store.followers_of(234)])   # ['usuario123']

post_id = store.add_post(Post(
    user_id=234,
    date=datetime.now(),
    date_str="01-01-2026",
    product=Product(product_id=1, product_name="Cadeira Gamer",
                    type="Gamer", brand="Racer", color="Red Black"),
    category=100,
    price=1500.50,
))

recent = store.posts_from_sellers_since([234], datetime.now() - timedelta(days=14))

try:
    store.follow(999, 234)
except UserNotFoundError as exc:
    print(exc)                   # Usuário inexistente.
```

## Records

`socialmeli.models` defines frozen dataclasses:

- `User(id, name, is_seller)`
- `Product(product_id, product_name, type, brand, color, notes, image_url)`
- `Post(post_id, user_id, date, date_str, product, category, price, has_promo, discount, final_price)`
- `Account(id, name, email, is_seller, avatar_url, created_at, password_hash)`

Lookups (`get_user`, `get_account`, `get_account_by_email`) return `None`
when nothing matches. `add_post` assigns and returns a new post id;
`MemoryStore` numbers posts from 1.

## The in-memory store

`MemoryStore.seed_users(users)` inserts users with fixed ids; later
`create_user` and `create_account` calls take ids above the highest seeded
one. `seed_default(store)` from `socialmeli.seed` inserts four demo users.

```python
account = store.create_account("Ana", "  Ana@Example.com ", "placeholder", is_seller=False)
account.email                    # 'ana@example.com'
store.update_avatar(account.id, "/static/avatars/1.jpg")
```

`MemoryStore` trims and lower-cases e-mail addresses; a second account with
the same address raises `EmailTakenError`. Creating an account also creates
the matching `User`, so the account can follow and be followed.

`delete_post(user_id, post_id)` removes a post and raises
`PostNotFoundError` if no such post exists or `PostForbiddenError` if it
belongs to another user.

### Ordering

`list_users` accepts `"name_asc"` or `"name_desc"` (anything other than
`"name_desc"` sorts ascending); names are compared case-insensitively.
`followers_of`, `followed_by` and the post queries return results in no
particular order.

## SQL storage

```python
from socialmeli.sql_store import SQLStore

with SQLStore.connect("social.db", "db/migrations") as store:
    store.create_user("vendedor1", True)
```

`SQLStore.connect(path, migrations_dir)` opens the database and runs the
migrations; `close()` (or leaving the `with` block) closes it. An
`SQLStore` can also be built directly from an open `sqlite3.Connection`.

The package ships no migration files. The queries expect tables along these
lines:

```sql
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    is_seller BOOLEAN NOT NULL DEFAULT 0,
    email TEXT UNIQUE,
    password_hash TEXT,
    avatar_url TEXT,
    created_at TEXT
);
CREATE TABLE IF NOT EXISTS follows (
    user_id INTEGER NOT NULL,
    seller_id INTEGER NOT NULL,
    UNIQUE (user_id, seller_id)
);
CREATE TABLE IF NOT EXISTS posts (
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
```

Dates are stored as ISO-8601 text and compared as text, so keep post dates
and the `since` argument of `posts_from_sellers_since` consistently naive or
consistently aware. Unlike `MemoryStore`, `SQLStore.create_account` stores
the e-mail as given; `get_account_by_email` matches it case-insensitively.
Post queries return an empty list if a row cannot be read.

### Migrations

`apply_migrations(conn, directory)` (`socialmeli.migrate`) runs every `.sql`
file in a directory in alphabetical path order. It uses the connection's
`executescript` when there is one and `execute` otherwise, and raises
`MigrationError` if the directory or a file cannot be read or a script fails.

## Prices

`final_price(price, discount, has_promo)` applies a percentage discount when
a post is on promotion and rounds to cents (halves away from zero); without a
promotion it returns the price unchanged. `SQLStore` fills `Post.final_price`
with it when reading posts; `MemoryStore` stores posts as they are given.

## Errors

All store errors derive from `StoreError`:

| Exception              | Message                                              |
|------------------------|------------------------------------------------------|
| `UserNotFoundError`    | Usuário inexistente.                                 |
| `PostNotFoundError`    | Publicação inexistente.                              |
| `PostForbiddenError`   | Você não pode apagar uma publicação que não é sua.   |
| `EmailTakenError`      | E-mail já cadastrado.                                |
| `AccountNotFoundError` | Conta inexistente.                                   |

## What this package does not do

This is a storage layer only. It has no HTTP server or API routes, no
command-line program, and no service layer: it does not validate names,
prices, discounts or dates, does not hash or check passwords (it stores the
`password_hash` it is given), and does not sort posts by date.