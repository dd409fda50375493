"""
Resolve AWS credentials and the default region from the environment, the AWS
config and shared credentials files, and the EC2 instance metadata service.
"""
from typing import Mapping, Optional

from .aws_credentials import Credentials
from .config_store import ConfigStore
from .credential_resolver import CredentialResolver
from .error_handler import (
    ConfigError,
    ConfigMalformedError,
    ConfigNotFoundError,
    ErrorKind,
    Result,
    ValueUndefinedError,
)
from .ini_parser import FileReader
from .metadata_client import MetadataClient, MetadataConfig
from .profiles import DEFAULT_PROFILE, active_profile
from .region_resolver import RegionResolver
from .value_coercion import Value, coerce

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ConfigMalformedError",
    "ConfigNotFoundError",
    "ConfigStore",
    "CredentialResolver",
    "Credentials",
    "DEFAULT_PROFILE",
    "ErrorKind",
    "FileReader",
    "MetadataClient",
    "MetadataConfig",
    "RegionResolver",
    "Result",
    "Value",
    "ValueUndefinedError",
    "active_profile",
    "coerce",
    "credentials",
    "region",
    "value",
    "values",
]


def credentials(
    profile: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    reader: Optional[FileReader] = None,
    metadata: Optional[MetadataClient] = None
) -> Result[Credentials]:
    """
    Return credentials from the environment, the config or shared credentials
    file, or the instance metadata service, in that order.
    """
    store = ConfigStore(env=env, reader=reader)
    return CredentialResolver(env=env, store=store, metadata=metadata).resolve(profile)


def region(
    profile: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    reader: Optional[FileReader] = None,
    metadata: Optional[MetadataClient] = None
) -> Result[str]:
    """Return the region from ``AWS_DEFAULT_REGION``, the config file or metadata."""
    store = ConfigStore(env=env, reader=reader)
    return RegionResolver(env=env, store=store, metadata=metadata).resolve(profile)


def values(
    profile: str,
    env: Optional[Mapping[str, str]] = None,
    reader: Optional[FileReader] = None
) -> Result[dict]:
    """Return every config-file setting of ``profile``."""
    return ConfigStore(env=env, reader=reader).values(profile)


def value(
    profile: str,
    key: str,
    env: Optional[Mapping[str, str]] = None,
    reader: Optional[FileReader] = None
) -> Result:
    """Return one config-file setting of ``profile``."""
    return ConfigStore(env=env, reader=reader).value(profile, key)
