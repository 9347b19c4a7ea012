"""Domain records, store errors and the storage interface."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

NAME_ASC = "name_asc"
NAME_DESC = "name_desc"


@dataclass(frozen=True)
class User:
    """A member of the social graph."""

    id: int
    name: str
    is_seller: bool = False


@dataclass(frozen=True)
class Product:
    """The product described by a post."""

    product_id: int = 0
    product_name: str = ""
    type: str = ""
    brand: str = ""
    color: str = ""
    notes: str = ""
    image_url: str = ""


@dataclass(frozen=True)
class Post:
    """A publication of a product by a user."""

    post_id: int = 0
    user_id: int = 0
    date: datetime = datetime.min
    date_str: str = ""
    product: Product = field(default_factory=Product)
    category: int = 0
    price: float = 0.0
    has_promo: bool = False
    discount: float = 0.0
    final_price: float = 0.0


@dataclass(frozen=True)
class Account:
    """A user together with login credentials."""

    id: int
    name: str
    email: str
    is_seller: bool = False
    avatar_url: str = ""
    created_at: datetime | None = None
    password_hash: str = ""


class StoreError(Exception):
    """Base class of all storage errors."""

    default_message = "Erro de armazenamento."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UserNotFoundError(StoreError):
    default_message = "Usuário inexistente."


class PostNotFoundError(StoreError):
    default_message = "Publicação inexistente."


class PostForbiddenError(StoreError):
    default_message = "Você não pode apagar uma publicação que não é sua."


class EmailTakenError(StoreError):
    default_message = "E-mail já cadastrado."


class AccountNotFoundError(StoreError):
    default_message = "Conta inexistente."


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def final_price(price: float, discount: float, has_promo: bool) -> float:
    """Price after a percentage discount, rounded to cents, when on promotion."""
    if not has_promo:
        return price
    return _round_half_away(price * (1 - discount / 100) * 100) / 100


class Store(ABC):
    """Storage of users, accounts, the follow graph and posts."""

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def list_users(self, order: str) -> list[User]: ...

    @abstractmethod
    def create_user(self, name: str, is_seller: bool) -> User: ...

    @abstractmethod
    def get_account(self, user_id: int) -> Account | None: ...

    @abstractmethod
    def get_account_by_email(self, email: str) -> Account | None: ...

    @abstractmethod
    def create_account(
        self, name: str, email: str, password_hash: str, is_seller: bool
    ) -> Account: ...

    @abstractmethod
    def update_avatar(self, user_id: int, avatar_url: str) -> Account: ...

    @abstractmethod
    def follow(self, user_id: int, seller_id: int) -> None: ...

    @abstractmethod
    def unfollow(self, user_id: int, seller_id: int) -> None: ...

    @abstractmethod
    def followers_of(self, seller_id: int) -> list[User]: ...

    @abstractmethod
    def followed_by(self, user_id: int) -> list[User]: ...

    @abstractmethod
    def add_post(self, post: Post) -> int: ...

    @abstractmethod
    def delete_post(self, user_id: int, post_id: int) -> None:
        """Remove a user's post; raise if it is missing or belongs to someone else."""

    @abstractmethod
    def posts_from_sellers_since(
        self, seller_ids: Iterable[int], since: datetime
    ) -> list[Post]: ...

    @abstractmethod
    def promo_posts_by_seller(self, seller_id: int) -> list[Post]: ...

    @abstractmethod
    def posts_by_user(self, user_id: int) -> list[Post]: ...