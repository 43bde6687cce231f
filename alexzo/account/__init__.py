"""
Account
Removal of everything stored for a user
"""

from .service import AccountService

__all__ = ['AccountService']
