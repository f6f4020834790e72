"""
Custom authentication backend for police-ID login.

Allows officers to authenticate using either their ``police_id`` or
their ``email`` together with their passcode.

This backend is registered in ``settings.AUTHENTICATION_BACKENDS``
so that Django's ``authenticate()`` call dispatches to it.  The login
endpoint itself goes through ``AuthenticationService.login`` which
adds the lockout rules on top of the same lookup.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class PoliceIdAuthBackend(ModelBackend):
    """
    Authenticate against ``police_id`` or ``email``.

    When ``django.contrib.auth.authenticate(identifier=..., password=...)``
    (or the admin login form's ``username=...``) is called, this backend
    resolves the user from the supplied identifier.
    """

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        """
        Resolve the user by *identifier* and verify *password*.

        Parameters
        ----------
        request : HttpRequest | None
        identifier : str
            Police ID or e-mail address.  Falls back to the ``username``
            keyword used by Django's admin login form.
        password : str
            The raw passcode to verify.

        Returns
        -------
        User | None
            The authenticated user, or ``None`` on failure.
        """
        if identifier is None:
            identifier = kwargs.get(User.USERNAME_FIELD, kwargs.get("username"))
        if identifier is None or password is None:
            return None

        try:
            user = User.objects.get(Q(police_id=identifier) | Q(email__iexact=identifier))
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
