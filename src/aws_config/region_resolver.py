"""
Region resolution chain: environment, config file, then instance metadata.
"""
import logging
import os
from typing import Mapping, Optional

from .config_store import ConfigStore
from .error_handler import ErrorKind, Result
from .metadata_client import MetadataClient, MetadataConfig
from .profiles import active_profile
from .value_coercion import as_string

logger = logging.getLogger(__name__)

REGION_ENV_VAR = "AWS_DEFAULT_REGION"
REGION_SETTING = "region"


class RegionResolver:
    """Resolve the default region for a profile."""

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        store: Optional[ConfigStore] = None,
        metadata: Optional[MetadataClient] = None
    ):
        self.env = os.environ if env is None else env
        self.store = store or ConfigStore(env=self.env)
        self.metadata = metadata or MetadataClient(MetadataConfig.from_env(self.env))

    def resolve(self, profile: Optional[str] = None) -> Result[str]:
        """
        Resolve the region for ``profile``.

        ``AWS_DEFAULT_REGION`` is returned verbatim when set. Any failure to
        read the config file falls through to the metadata service.
        """
        region = self.env.get(REGION_ENV_VAR)
        if region is not None:
            return Result.ok(region)

        profile = profile or active_profile(self.env)
        region = self._from_config(profile)
        if region:
            logger.info(f"Found region for profile '{profile}' in config file")
            return Result.ok(region)

        result = self.metadata.region()
        if result.is_ok:
            logger.info("Found region from instance metadata")
            return result

        logger.debug(f"Unable to resolve region for profile '{profile}'")
        return Result.fail(ErrorKind.UNDEFINED)

    def _from_config(self, profile: str) -> Optional[str]:
        settings = self.store.values(profile)
        if not settings.is_ok:
            return None
        return as_string(settings.value.get(REGION_SETTING))
