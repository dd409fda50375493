"""
Client for the EC2 instance metadata service.

Off EC2 the link-local address does not answer, so every request is bounded
by a short connect timeout and any failure is reported as UNDEFINED.
"""
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Sequence

import urllib3

from .aws_credentials import Credentials
from .error_handler import ErrorKind, Result

logger = logging.getLogger(__name__)

INSTANCE_SCHEME = "http"
INSTANCE_HOST = "169.254.169.254"
INSTANCE_CONNECT_TIMEOUT = 0.1
METADATA_BASE = ("latest", "meta-data")
AVAILABILITY_ZONE = ("placement", "availability-zone")
SECURITY_CREDENTIALS = ("iam", "security-credentials")
TOKEN_PATH = ("latest", "api", "token")

TOKEN_HEADER = "X-aws-ec2-metadata-token"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
METADATA_DISABLED_ENV_VAR = "AWS_EC2_METADATA_DISABLED"

# Token endpoint answers these when IMDSv2 is unavailable; fall back to v1.
_TOKEN_FALLBACK_STATUSES = (403, 404, 405)


class MetadataUnavailable(Exception):
    """Raised internally when the metadata service cannot be reached."""
    pass


class MetadataConfig:
    """Configuration for instance metadata lookups."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize metadata configuration.

        Args:
            config: Configuration dictionary
        """
        config = config or {}
        self.host = config.get('host', INSTANCE_HOST)
        self.connect_timeout = config.get('connectTimeout', INSTANCE_CONNECT_TIMEOUT)
        self.read_timeout = config.get('readTimeout', 1.0)
        self.use_token = config.get('useToken', True)
        self.token_ttl = config.get('tokenTTL', 21600)
        self.disabled = config.get('disabled', False)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MetadataConfig":
        env = os.environ if env is None else env
        disabled = env.get(METADATA_DISABLED_ENV_VAR, "").strip().lower() == "true"
        return cls({'disabled': disabled})


def region_from_availability_zone(zone: str) -> str:
    """Strip the zone letter: ``us-east-1a`` -> ``us-east-1``."""
    return zone[:-1]


class MetadataClient:
    """Availability zone and IAM role credentials from the metadata service."""

    def __init__(self, config: Optional[MetadataConfig] = None, http: Any = None):
        """
        Initialize the client.

        Args:
            config: Metadata configuration
            http: urllib3 ``PoolManager`` compatible request object
        """
        self.config = config or MetadataConfig()
        self.http = http or urllib3.PoolManager(retries=False)

    def url(self, *parts: str) -> str:
        path = "/".join(parts)
        return f"{INSTANCE_SCHEME}://{self.config.host}/{path}"

    def metadata_url(self, parts: Sequence[str]) -> str:
        return self.url(*METADATA_BASE, *parts)

    def _timeout(self) -> urllib3.Timeout:
        return urllib3.Timeout(connect=self.config.connect_timeout, read=self.config.read_timeout)

    def _request(self, method: str, url: str, headers: Dict[str, str]):
        try:
            return self.http.request(
                method,
                url,
                headers=headers,
                timeout=self._timeout(),
                retries=False
            )
        except urllib3.exceptions.HTTPError as e:
            raise MetadataUnavailable(f"{method} {url} failed: {e}") from e

    def _token_headers(self) -> Dict[str, str]:
        """
        Fetch an IMDSv2 session token.

        Returns an empty dict when the service only speaks IMDSv1.

        Raises:
            MetadataUnavailable: If the service cannot be reached
        """
        if not self.config.use_token:
            return {}

        response = self._request(
            "PUT",
            self.url(*TOKEN_PATH),
            {TOKEN_TTL_HEADER: str(self.config.token_ttl)}
        )
        if response.status == 200:
            return {TOKEN_HEADER: response.data.decode("utf-8").strip()}
        if response.status not in _TOKEN_FALLBACK_STATUSES:
            logger.debug(f"Unexpected metadata token status {response.status}")
        return {}

    def _get_text(self, parts: Sequence[str], headers: Dict[str, str]) -> Optional[str]:
        response = self._request("GET", self.metadata_url(parts), headers)
        if response.status != 200:
            logger.debug(f"Metadata request for {'/'.join(parts)} returned {response.status}")
            return None
        return response.data.decode("utf-8")

    def availability_zone(self) -> Result[str]:
        """Return the instance's availability zone, e.g. ``us-east-1a``."""
        if self.config.disabled:
            return Result.fail(ErrorKind.UNDEFINED)

        try:
            body = self._get_text(AVAILABILITY_ZONE, self._token_headers())
        except (MetadataUnavailable, UnicodeDecodeError) as e:
            logger.debug(f"Availability zone unavailable: {e}")
            return Result.fail(ErrorKind.UNDEFINED)

        zone = (body or "").strip()
        if not zone:
            return Result.fail(ErrorKind.UNDEFINED)
        return Result.ok(zone)

    def region(self) -> Result[str]:
        """Return the region derived from the availability zone."""
        zone = self.availability_zone()
        if not zone.is_ok:
            return zone
        return Result.ok(region_from_availability_zone(zone.value))

    def temporary_credentials(self) -> Result[Credentials]:
        """
        Return the IAM role credentials attached to the instance.

        The first role listed under ``iam/security-credentials/`` is used.
        """
        if self.config.disabled:
            return Result.fail(ErrorKind.UNDEFINED)

        try:
            headers = self._token_headers()
            role_name = self._role_name(headers)
            if role_name is None:
                return Result.fail(ErrorKind.UNDEFINED)
            document = self._get_text((*SECURITY_CREDENTIALS, role_name), headers)
        except (MetadataUnavailable, UnicodeDecodeError) as e:
            logger.debug(f"Instance role credentials unavailable: {e}")
            return Result.fail(ErrorKind.UNDEFINED)

        credentials = self._parse_credentials(document)
        if credentials is None:
            return Result.fail(ErrorKind.UNDEFINED)

        logger.info(f"Found credentials from IAM role: {role_name}")
        return Result.ok(credentials)

    def _role_name(self, headers: Dict[str, str]) -> Optional[str]:
        listing = self._get_text((*SECURITY_CREDENTIALS, ""), headers)
        if not listing:
            return None
        for line in listing.splitlines():
            if line.strip():
                return line.strip()
        return None

    def _parse_credentials(self, document: Optional[str]) -> Optional[Credentials]:
        if not document:
            return None
        try:
            data = json.loads(document)
        except ValueError as e:
            logger.debug(f"Invalid credential document: {e}")
            return None
        if not isinstance(data, dict):
            return None
        if data.get("Code", "Success") != "Success":
            logger.debug(f"Credential document reported code {data.get('Code')}")
            return None

        access_key = data.get("AccessKeyId")
        secret_key = data.get("SecretAccessKey")
        token = data.get("Token")
        if not (access_key and secret_key and token):
            return None

        return Credentials(
            access_key=access_key,
            secret_key=secret_key,
            session_token=token,
            temporary=True,
            expiration=data.get("Expiration"),
            method="iam-role"
        )
