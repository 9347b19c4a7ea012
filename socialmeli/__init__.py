"""Storage for a social marketplace: users, accounts, follows and posts, in memory or SQLite."""

__version__ = "0.1.0"