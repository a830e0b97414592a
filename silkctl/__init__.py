"""Subnet lease storage, migrations, request handlers and test doubles for an overlay network controller."""

__version__ = "0.1.0"

__all__ = [
    "models",
    "logsession",
    "recording",
    "database",
    "dbfakes",
    "checkfakes",
    "leasefakes",
    "migrator",
    "handlers",
]