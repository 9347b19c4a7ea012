"""Thread-safe in-memory implementation of the store."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable

from .models import (
    NAME_DESC,
    Account,
    AccountNotFoundError,
    EmailTakenError,
    Post,
    PostForbiddenError,
    PostNotFoundError,
    Store,
    User,
    UserNotFoundError,
)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class MemoryStore(Store):
    """Keeps users, accounts, follows and posts in memory."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._accounts: dict[int, Account] = {}
        self._account_by_email: dict[str, int] = {}
        self._next_user_id = 1
        # seller id -> follower ids, and user id -> followed seller ids
        self._followers: dict[int, dict[int, None]] = {}
        self._followed: dict[int, dict[int, None]] = {}
        self._posts: list[Post] = []
        self._next_post_id = 1

    def seed_users(self, users: Iterable[User]) -> None:
        with self._lock:
            for user in users:
                self._users[user.id] = user
                if user.id >= self._next_user_id:
                    self._next_user_id = user.id + 1

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def list_users(self, order: str) -> list[User]:
        with self._lock:
            users = list(self._users.values())
        return sorted(
            users, key=lambda u: u.name.lower(), reverse=order == NAME_DESC
        )

    def create_user(self, name: str, is_seller: bool) -> User:
        with self._lock:
            user = User(id=self._next_user_id, name=name, is_seller=is_seller)
            self._next_user_id += 1
            self._users[user.id] = user
            return user

    def get_account(self, user_id: int) -> Account | None:
        with self._lock:
            return self._accounts.get(user_id)

    def get_account_by_email(self, email: str) -> Account | None:
        with self._lock:
            account_id = self._account_by_email.get(_normalize_email(email))
            if account_id is None:
                return None
            return self._accounts.get(account_id)

    def create_account(
        self, name: str, email: str, password_hash: str, is_seller: bool
    ) -> Account:
        with self._lock:
            norm_email = _normalize_email(email)
            if norm_email in self._account_by_email:
                raise EmailTakenError()
            account = Account(
                id=self._next_user_id,
                name=name,
                email=norm_email,
                is_seller=is_seller,
                created_at=datetime.now(timezone.utc),
                password_hash=password_hash,
            )
            self._next_user_id += 1
            self._accounts[account.id] = account
            self._account_by_email[norm_email] = account.id
            self._users[account.id] = User(
                id=account.id, name=name, is_seller=is_seller
            )
            return account

    def update_avatar(self, user_id: int, avatar_url: str) -> Account:
        with self._lock:
            account = self._accounts.get(user_id)
            if account is None:
                raise AccountNotFoundError()
            account = replace(account, avatar_url=avatar_url)
            self._accounts[user_id] = account
            return account

    def _require_users(self, *user_ids: int) -> None:
        if any(uid not in self._users for uid in user_ids):
            raise UserNotFoundError()

    def follow(self, user_id: int, seller_id: int) -> None:
        with self._lock:
            self._require_users(user_id, seller_id)
            self._followers.setdefault(seller_id, {})[user_id] = None
            self._followed.setdefault(user_id, {})[seller_id] = None

    def unfollow(self, user_id: int, seller_id: int) -> None:
        with self._lock:
            self._require_users(user_id, seller_id)
            self._followers.get(seller_id, {}).pop(user_id, None)
            self._followed.get(user_id, {}).pop(seller_id, None)

    def _related(self, graph: dict[int, dict[int, None]], user_id: int) -> list[User]:
        with self._lock:
            self._require_users(user_id)
            return [
                self._users[uid]
                for uid in graph.get(user_id, {})
                if uid in self._users
            ]

    def followers_of(self, seller_id: int) -> list[User]:
        return self._related(self._followers, seller_id)

    def followed_by(self, user_id: int) -> list[User]:
        return self._related(self._followed, user_id)

    def add_post(self, post: Post) -> int:
        with self._lock:
            self._require_users(post.user_id)
            stored = replace(post, post_id=self._next_post_id)
            self._next_post_id += 1
            self._posts.append(stored)
            return stored.post_id

    def posts_from_sellers_since(
        self, seller_ids: Iterable[int], since: datetime
    ) -> list[Post]:
        sellers = set(seller_ids)
        with self._lock:
            return [
                p for p in self._posts if p.user_id in sellers and p.date >= since
            ]

    def promo_posts_by_seller(self, seller_id: int) -> list[Post]:
        with self._lock:
            return [p for p in self._posts if p.user_id == seller_id and p.has_promo]

    def posts_by_user(self, user_id: int) -> list[Post]:
        with self._lock:
            return [p for p in self._posts if p.user_id == user_id]

    def delete_post(self, user_id: int, post_id: int) -> None:
        with self._lock:
            self._require_users(user_id)
            for index, post in enumerate(self._posts):
                if post.post_id == post_id:
                    if post.user_id != user_id:
                        raise PostForbiddenError()
                    del self._posts[index]
                    return
            raise PostNotFoundError()