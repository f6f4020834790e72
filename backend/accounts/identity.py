"""
Read-only officer identity lookup.

The case lifecycle never touches ``User`` rows directly: it resolves the
officer identifiers it is handed (police ID or numeric user ID) through
``IdentityLookup`` and only ever stores the resulting police ID on the
case.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model

from core.constants import is_reserved_police_id

User = get_user_model()


class IdentityLookup:
    """Resolve officer identifiers to ``User`` records without mutating them."""

    @staticmethod
    def find_by_police_id(police_id: str | None) -> User | None:
        if not police_id:
            return None
        return User.objects.select_related("role").filter(police_id=police_id).first()

    @staticmethod
    def find_by_user_id(user_id) -> User | None:
        try:
            pk = int(user_id)
        except (TypeError, ValueError):
            return None
        return User.objects.select_related("role").filter(pk=pk).first()

    @classmethod
    def resolve(cls, identifier) -> User | None:
        """
        Resolve an officer identifier.

        The police ID is tried first; a purely numeric identifier that is
        not a known police ID is then treated as a user primary key.
        The reserved sentinels ("Unassigned", "System") never resolve.
        """
        if identifier is None:
            return None
        identifier = str(identifier).strip()
        if not identifier or is_reserved_police_id(identifier):
            return None
        user = cls.find_by_police_id(identifier)
        if user is None and identifier.isdigit():
            user = cls.find_by_user_id(identifier)
        return user

    @classmethod
    def exists(cls, identifier) -> bool:
        return cls.resolve(identifier) is not None
