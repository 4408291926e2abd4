"""
Custom authentication backend for e-mail login.

Users authenticate with their ``email`` (case-insensitive) together with
their ``password``.  Accounts whose ``status`` is not ``active`` are
rejected (``is_active`` mirrors the status).

This backend is registered in ``settings.AUTHENTICATION_BACKENDS``
so that Django's ``authenticate()`` call dispatches to it.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailAuthBackend(ModelBackend):
    """
    Authenticate against ``email``.

    Accepts either ``email=`` or the generic ``username=`` keyword so the
    Django admin login form works unchanged.
    """

    def authenticate(self, request, email=None, password=None, username=None, **kwargs):
        """
        Resolve the user by e-mail and verify *password*.

        Returns
        -------
        User | None
            The authenticated user, or ``None`` on failure.
        """
        email = email or username
        if email is None or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
