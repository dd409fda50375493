"""
Resolved AWS credentials.
"""
from dataclasses import dataclass
from typing import Optional

from botocore.credentials import Credentials as BotocoreCredentials


@dataclass(frozen=True)
class Credentials:
    """
    Access key, secret key and optional session token.

    ``temporary`` marks credentials issued by the instance metadata service;
    requests signed with them need the ``X-Amz-Security-Token`` header.
    """
    access_key: str
    secret_key: str
    session_token: Optional[str] = None
    temporary: bool = False
    expiration: Optional[str] = None
    method: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key={self.access_key!r}, secret_key='***', "
            f"temporary={self.temporary}, method={self.method!r})"
        )

    def to_botocore(self) -> BotocoreCredentials:
        """Convert to the credentials object botocore signers expect."""
        return BotocoreCredentials(
            self.access_key,
            self.secret_key,
            self.session_token,
            method=self.method
        )
