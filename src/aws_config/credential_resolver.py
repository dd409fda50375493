"""
Credential resolution chain.

Sources are consulted in order and the first that yields both an access key
and a secret key wins:

1. ``AWS_ACCESS_KEY_ID`` / ``AWS_SECRET_ACCESS_KEY``
2. the profile in the config file
3. the profile in the shared credentials file
4. the IAM role of the EC2 instance (temporary credentials)
"""
import logging
import os
from typing import List, Mapping, Optional

from .aws_credentials import Credentials
from .config_store import ConfigSource, ConfigStore
from .error_handler import ErrorKind, Result
from .ini_parser import Section
from .metadata_client import MetadataClient, MetadataConfig
from .profiles import active_profile
from .value_coercion import as_string

logger = logging.getLogger(__name__)

ACCESS_KEY_SETTING = "aws_access_key_id"
SECRET_KEY_SETTING = "aws_secret_access_key"
SESSION_TOKEN_SETTING = "aws_session_token"


class CredentialProvider:
    """One link of the chain; ``load`` returns None to fall through."""

    METHOD: Optional[str] = None

    def load(self, profile: str) -> Optional[Credentials]:
        raise NotImplementedError


class EnvProvider(CredentialProvider):
    METHOD = "env"
    ACCESS_KEY = "AWS_ACCESS_KEY_ID"
    SECRET_KEY = "AWS_SECRET_ACCESS_KEY"

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self.env = os.environ if env is None else env

    def load(self, profile: str) -> Optional[Credentials]:
        access_key = self.env.get(self.ACCESS_KEY)
        secret_key = self.env.get(self.SECRET_KEY)
        if not (access_key and secret_key):
            return None
        return Credentials(access_key, secret_key, method=self.METHOD)


class FileProvider(CredentialProvider):
    """Credentials stored in a profile of one of the AWS settings files."""

    SOURCE: ConfigSource

    def __init__(self, store: ConfigStore):
        self.store = store

    def load(self, profile: str) -> Optional[Credentials]:
        settings = self.store.settings_for(profile, self.SOURCE)
        if not settings.is_ok:
            return None
        return credentials_from_section(settings.value, self.METHOD)


class ConfigFileProvider(FileProvider):
    METHOD = "config-file"
    SOURCE = ConfigSource.CONFIG


class SharedCredentialsProvider(FileProvider):
    METHOD = "shared-credentials-file"
    SOURCE = ConfigSource.CREDENTIALS


class InstanceMetadataProvider(CredentialProvider):
    METHOD = "iam-role"

    def __init__(self, client: MetadataClient):
        self.client = client

    def load(self, profile: str) -> Optional[Credentials]:
        result = self.client.temporary_credentials()
        return result.value if result.is_ok else None


def _credential_value(section: Section, key: str) -> Optional[str]:
    return as_string(section.get(key))


def credentials_from_section(section: Section, method: Optional[str] = None) -> Optional[Credentials]:
    """Build credentials from a profile section, or None if a key is missing."""
    access_key = _credential_value(section, ACCESS_KEY_SETTING)
    secret_key = _credential_value(section, SECRET_KEY_SETTING)
    if not (access_key and secret_key):
        return None
    return Credentials(
        access_key,
        secret_key,
        session_token=_credential_value(section, SESSION_TOKEN_SETTING),
        method=method
    )


class CredentialResolver:
    """Ordered, short-circuiting credential chain."""

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        store: Optional[ConfigStore] = None,
        metadata: Optional[MetadataClient] = None
    ):
        self.env = os.environ if env is None else env
        self.store = store or ConfigStore(env=self.env)
        self.metadata = metadata or MetadataClient(MetadataConfig.from_env(self.env))
        self.providers: List[CredentialProvider] = [
            EnvProvider(self.env),
            ConfigFileProvider(self.store),
            SharedCredentialsProvider(self.store),
            InstanceMetadataProvider(self.metadata),
        ]

    def resolve(self, profile: Optional[str] = None) -> Result[Credentials]:
        """
        Resolve credentials for ``profile``.

        Args:
            profile: Profile name (defaults to the active profile)

        Returns:
            Result holding Credentials, or an UNDEFINED error when no source
            supplied them
        """
        profile = profile or active_profile(self.env)
        for provider in self.providers:
            credentials = provider.load(profile)
            if credentials is not None:
                logger.info(f"Found credentials for profile '{profile}' via {provider.METHOD}")
                return Result.ok(credentials)
            logger.debug(f"No credentials via {provider.METHOD} for profile '{profile}'")

        logger.debug(f"Unable to resolve credentials for profile '{profile}'")
        return Result.fail(ErrorKind.UNDEFINED)
