"""
Credential store: login identities, password hashes and sessions.

Kept apart from the relational student/admin rows. Every call runs in its
own database session and commits on its own, so it never shares a
transaction with the portal's data.
"""

from portal.modules.credentials.service import (
    CredentialStore,
    CredentialStoreError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    Session,
    get_credential_store,
)

__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "EmailAlreadyRegisteredError",
    "InvalidCredentialsError",
    "Session",
    "get_credential_store",
]
