"""Declarative base shared by every model.

``UUIDAuditBase`` supplies the ``id`` primary key plus ``created_at`` and
``updated_at`` timestamps.
"""

from advanced_alchemy.base import UUIDAuditBase


class Base(UUIDAuditBase):
    __abstract__ = True
