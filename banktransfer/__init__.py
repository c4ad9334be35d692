"""Bank accounts and transfers between them: domain rules, use cases, storage adapters and request actions."""

__version__ = "1.0.0"