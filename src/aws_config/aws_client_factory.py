"""
boto3 sessions and clients built from the resolved credentials and region.
"""
import logging
from typing import Mapping, Optional

import boto3
from botocore.config import Config

from .config_store import ConfigStore
from .credential_resolver import CredentialResolver
from .metadata_client import MetadataClient
from .region_resolver import RegionResolver

logger = logging.getLogger(__name__)


def get_boto3_config() -> Config:
    """Get standard boto3 configuration with SigV4 signing."""
    return Config(
        retries={'max_attempts': 3, 'mode': 'adaptive'},
        signature_version='v4'
    )


def get_boto3_session(
    profile: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    store: Optional[ConfigStore] = None,
    metadata: Optional[MetadataClient] = None
) -> boto3.Session:
    """
    Create a boto3 session from the resolved credentials and region.

    Values that cannot be resolved are left as None so boto3 applies its own
    defaults.
    """
    credentials = CredentialResolver(env=env, store=store, metadata=metadata).resolve(profile)
    region = RegionResolver(env=env, store=store, metadata=metadata).resolve(profile)

    if not credentials.is_ok:
        logger.warning("No AWS credentials resolved; deferring to boto3 defaults")
    if not region.is_ok:
        logger.warning("No AWS region resolved; deferring to boto3 defaults")

    resolved = credentials.value
    return boto3.Session(
        aws_access_key_id=resolved.access_key if resolved else None,
        aws_secret_access_key=resolved.secret_key if resolved else None,
        aws_session_token=resolved.session_token if resolved else None,
        region_name=region.value
    )


def get_aws_client(service_name: str, profile: Optional[str] = None, **kwargs):
    """Get an AWS client for ``service_name`` using the resolved settings."""
    session = get_boto3_session(profile, **kwargs)
    return session.client(service_name, config=get_boto3_config())
