"""
Custom authentication backend for token-based auth.

Subclasses Django REST framework's ``TokenAuthentication`` so the
project settings have a stable import path.  Keeping it apart from the
login views avoids circular imports when DRF loads authentication
classes during initialization.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'
