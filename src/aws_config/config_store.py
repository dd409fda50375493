"""
Access to the AWS config and shared credentials files.

Files are located through ``AWS_CONFIG_FILE`` / ``AWS_SHARED_CREDENTIALS_FILE``
or under ``$HOME/.aws``, and are read and parsed on every call.
"""
import logging
import os
from enum import Enum
from typing import Mapping, Optional

from .error_handler import ConfigError, ErrorKind, Result, ValueUndefinedError
from .ini_parser import FileReader, Section, Settings, load
from .profiles import profile_sections
from .value_coercion import SettingValue

logger = logging.getLogger(__name__)


class ConfigSource(Enum):
    """The two well-known AWS settings files."""
    CONFIG = "config"
    CREDENTIALS = "credentials"


_PATH_ENV_VARS = {
    ConfigSource.CONFIG: "AWS_CONFIG_FILE",
    ConfigSource.CREDENTIALS: "AWS_SHARED_CREDENTIALS_FILE",
}


def lookup_profile(settings: Settings, profile: str) -> Section:
    """
    Return the section for ``profile``, trying the bare name first.

    Raises:
        ValueUndefinedError: If neither candidate section exists
    """
    for section_name in profile_sections(profile):
        if section_name in settings:
            return settings[section_name]
    raise ValueUndefinedError(
        f"Profile '{profile}' not found",
        context={"profile": profile}
    )


class ConfigStore:
    """Profile-scoped view over the config and shared credentials files."""

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        reader: Optional[FileReader] = None
    ):
        """
        Initialize the store.

        Args:
            env: Environment mapping (defaults to ``os.environ``)
            reader: File access provider
        """
        self.env = os.environ if env is None else env
        self.reader = reader or FileReader()

    def home_path(self) -> str:
        """Return ``$HOME``, or the current working directory if unset."""
        return self.env.get("HOME") or os.path.abspath(".")

    def path_for(self, source: ConfigSource) -> str:
        override = self.env.get(_PATH_ENV_VARS[source])
        if override:
            return override
        return os.path.join(self.home_path(), ".aws", source.value)

    def config_file(self) -> str:
        return self.path_for(ConfigSource.CONFIG)

    def credentials_file(self) -> str:
        return self.path_for(ConfigSource.CREDENTIALS)

    def file_data(self, source: ConfigSource) -> Settings:
        """
        Load every section of a settings file.

        Raises:
            ConfigNotFoundError: If the file does not exist
            ConfigMalformedError: If the file cannot be read
        """
        return load(self.path_for(source), self.reader)

    def settings_for(self, profile: str, source: ConfigSource = ConfigSource.CONFIG) -> Result[Section]:
        """
        Return the settings of ``profile`` from one of the files.

        Errors are NOT_FOUND when the file is absent and UNDEFINED when the
        file exists but holds no such profile.
        """
        try:
            section = lookup_profile(self.file_data(source), profile)
        except ConfigError as e:
            logger.debug(f"No {source.value} settings for profile '{profile}': {e.message}")
            return Result.from_error(e)
        return Result.ok(section)

    def values(self, profile: str) -> Result[Section]:
        """Return the config-file settings for ``profile``."""
        return self.settings_for(profile, ConfigSource.CONFIG)

    def value(self, profile: str, key: str) -> Result[SettingValue]:
        """Return one config-file setting for ``profile``."""
        settings = self.values(profile)
        if not settings.is_ok:
            return Result.fail(settings.error)
        if key not in settings.value:
            return Result.fail(ErrorKind.UNDEFINED)
        return Result.ok(settings.value[key])
