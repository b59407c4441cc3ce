"""
Session module.

In-memory credential and session state for FShare authentication.
"""
from .models import Credential, Session

__all__ = [
    'Credential',
    'Session',
]
