"""SQL-backed implementation of the store on top of sqlite3."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Sequence

from .migrate import apply_migrations
from .models import (
    NAME_DESC,
    Account,
    AccountNotFoundError,
    EmailTakenError,
    Post,
    PostForbiddenError,
    PostNotFoundError,
    Product,
    Store,
    User,
    UserNotFoundError,
    final_price,
)

_POST_COLUMNS = (
    "id, user_id, date, date_str, "
    "product_id, product_name, type, brand, color, notes, image_url, "
    "category, price, has_promo, discount"
)
_ACCOUNT_COLUMNS = "id, name, email, is_seller, avatar_url, created_at, password_hash"

_ROW_ERRORS = (sqlite3.Error, ValueError, TypeError, IndexError)


def _encode_date(value: datetime) -> str:
    return value.isoformat()


def _decode_date(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _user_from_row(row: Sequence) -> User:
    return User(id=int(row[0]), name=row[1], is_seller=bool(row[2]))


def _account_from_row(row: Sequence) -> Account:
    return Account(
        id=int(row[0]),
        name=row[1],
        email=row[2] or "",
        is_seller=bool(row[3]),
        avatar_url=row[4] or "",
        created_at=_decode_date(row[5]),
        password_hash=row[6] or "",
    )


def _post_from_row(row: Sequence, *, always_promo_price: bool = False) -> Post:
    price = float(row[12])
    has_promo = bool(row[13])
    discount = float(row[14])
    return Post(
        post_id=int(row[0]),
        user_id=int(row[1]),
        date=_decode_date(row[2]) or datetime.min,
        date_str=row[3] or "",
        product=Product(
            product_id=int(row[4]),
            product_name=row[5] or "",
            type=row[6] or "",
            brand=row[7] or "",
            color=row[8] or "",
            notes=row[9] or "",
            image_url=row[10] or "",
        ),
        category=int(row[11]),
        price=price,
        has_promo=has_promo,
        discount=discount,
        final_price=final_price(price, discount, always_promo_price or has_promo),
    )


class SQLStore(Store):
    """Store that keeps its data in an SQL database."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @classmethod
    def connect(cls, path, migrations_dir="db/migrations") -> "SQLStore":
        """Open the database at path and apply the migrations in migrations_dir."""
        conn = sqlite3.connect(path)
        try:
            apply_migrations(conn, migrations_dir)
        except Exception:
            conn.close()
            raise
        return cls(conn)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _query_posts(
        self, sql: str, params: Sequence, *, always_promo_price: bool = False
    ) -> list[Post]:
        try:
            rows = self._conn.execute(sql, params).fetchall()
            return [
                _post_from_row(row, always_promo_price=always_promo_price)
                for row in rows
            ]
        except _ROW_ERRORS:
            return []

    def _query_users(self, sql: str, params: Sequence = ()) -> list[User]:
        return [_user_from_row(row) for row in self._conn.execute(sql, params)]

    def _next_id(self) -> int:
        (next_id,) = self._conn.execute(
            "SELECT COALESCE(MAX(id), 0) + 1 FROM users"
        ).fetchone()
        return int(next_id)

    def _require_users(self, *user_ids: int) -> None:
        if any(self.get_user(uid) is None for uid in user_ids):
            raise UserNotFoundError()

    def get_user(self, user_id: int) -> User | None:
        try:
            row = self._conn.execute(
                "SELECT id, name, is_seller FROM users WHERE id=?", (user_id,)
            ).fetchone()
        except sqlite3.Error:
            return None
        return _user_from_row(row) if row is not None else None

    def list_users(self, order: str) -> list[User]:
        direction = "DESC" if order == NAME_DESC else "ASC"
        return self._query_users(
            f"SELECT id, name, is_seller FROM users ORDER BY LOWER(name) {direction}"
        )

    def create_user(self, name: str, is_seller: bool) -> User:
        with self._conn:
            user_id = self._next_id()
            self._conn.execute(
                "INSERT INTO users (id, name, is_seller) VALUES (?,?,?)",
                (user_id, name, is_seller),
            )
        return User(id=user_id, name=name, is_seller=is_seller)

    def _fetch_account(self, where: str, param) -> Account | None:
        try:
            row = self._conn.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE {where}", (param,)
            ).fetchone()
            return _account_from_row(row) if row is not None else None
        except _ROW_ERRORS:
            return None

    def get_account(self, user_id: int) -> Account | None:
        return self._fetch_account("id=?", user_id)

    def get_account_by_email(self, email: str) -> Account | None:
        return self._fetch_account("LOWER(email)=LOWER(?)", email)

    def create_account(
        self, name: str, email: str, password_hash: str, is_seller: bool
    ) -> Account:
        if self.get_account_by_email(email) is not None:
            raise EmailTakenError()
        created_at = datetime.now(timezone.utc)
        try:
            with self._conn:
                account_id = self._next_id()
                self._conn.execute(
                    "INSERT INTO users "
                    "(id, name, email, password_hash, is_seller, created_at) "
                    "VALUES (?,?,?,?,?,?)",
                    (
                        account_id,
                        name,
                        email,
                        password_hash,
                        is_seller,
                        _encode_date(created_at),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if "unique" in str(exc).lower():
                raise EmailTakenError() from exc
            raise
        return Account(
            id=account_id,
            name=name,
            email=email,
            is_seller=is_seller,
            created_at=created_at,
        )

    def update_avatar(self, user_id: int, avatar_url: str) -> Account:
        with self._conn:
            self._conn.execute(
                "UPDATE users SET avatar_url=? WHERE id=?", (avatar_url, user_id)
            )
        account = self.get_account(user_id)
        if account is None:
            raise AccountNotFoundError()
        return account

    def follow(self, user_id: int, seller_id: int) -> None:
        self._require_users(user_id, seller_id)
        with self._conn:
            self._conn.execute(
                "INSERT INTO follows (user_id, seller_id) VALUES (?, ?) "
                "ON CONFLICT (user_id, seller_id) DO NOTHING",
                (user_id, seller_id),
            )

    def unfollow(self, user_id: int, seller_id: int) -> None:
        self._require_users(user_id, seller_id)
        with self._conn:
            self._conn.execute(
                "DELETE FROM follows WHERE user_id=? AND seller_id=?",
                (user_id, seller_id),
            )

    def followers_of(self, seller_id: int) -> list[User]:
        self._require_users(seller_id)
        return self._query_users(
            "SELECT u.id, u.name, u.is_seller FROM follows f "
            "JOIN users u ON u.id = f.user_id WHERE f.seller_id = ?",
            (seller_id,),
        )

    def followed_by(self, user_id: int) -> list[User]:
        self._require_users(user_id)
        return self._query_users(
            "SELECT u.id, u.name, u.is_seller FROM follows f "
            "JOIN users u ON u.id = f.seller_id WHERE f.user_id = ?",
            (user_id,),
        )

    def add_post(self, post: Post) -> int:
        self._require_users(post.user_id)
        product = post.product
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO posts ("
                "user_id, date, date_str, "
                "product_id, product_name, type, brand, color, notes, image_url, "
                "category, price, has_promo, discount"
                ") VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
                (
                    post.user_id,
                    _encode_date(post.date),
                    post.date_str,
                    product.product_id,
                    product.product_name,
                    product.type,
                    product.brand,
                    product.color,
                    product.notes,
                    product.image_url,
                    post.category,
                    post.price,
                    post.has_promo,
                    post.discount,
                ),
            )
        return int(cursor.lastrowid)

    def delete_post(self, user_id: int, post_id: int) -> None:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM posts WHERE id=? AND user_id=?", (post_id, user_id)
            )
        if cursor.rowcount:
            return
        owner = self._conn.execute(
            "SELECT user_id FROM posts WHERE id=?", (post_id,)
        ).fetchone()
        if owner is None:
            raise PostNotFoundError()
        raise PostForbiddenError()

    def posts_from_sellers_since(
        self, seller_ids: Iterable[int], since: datetime
    ) -> list[Post]:
        ids = list(seller_ids)
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        return self._query_posts(
            f"SELECT {_POST_COLUMNS} FROM posts "
            f"WHERE date >= ? AND user_id IN ({placeholders})",
            (_encode_date(since), *ids),
        )

    def promo_posts_by_seller(self, seller_id: int) -> list[Post]:
        return self._query_posts(
            f"SELECT {_POST_COLUMNS} FROM posts WHERE user_id=? AND has_promo=1",
            (seller_id,),
            always_promo_price=True,
        )

    def posts_by_user(self, user_id: int) -> list[Post]:
        return self._query_posts(
            f"SELECT {_POST_COLUMNS} FROM posts WHERE user_id=?", (user_id,)
        )