"""
Tests for credential_resolver - the credential fallback chain.
"""
import os
import tempfile
import time
import unittest
from unittest.mock import Mock

import urllib3

from aws_config.aws_credentials import Credentials
from aws_config.config_store import ConfigSource, ConfigStore
from aws_config.credential_resolver import (
    ConfigFileProvider,
    CredentialResolver,
    EnvProvider,
    SharedCredentialsProvider,
    credentials_from_section,
)
from aws_config.error_handler import ErrorKind, Result
from aws_config.ini_parser import parse
from aws_config.metadata_client import MetadataClient


class TestCredentialResolver(unittest.TestCase):
    """Test the env -> config -> credentials file -> metadata chain."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.home = self.tmp.name
        os.makedirs(os.path.join(self.home, ".aws"))
        self.env = {"HOME": self.home}

        self.metadata = Mock(spec=MetadataClient)
        self.metadata.temporary_credentials.return_value = Result.fail(ErrorKind.UNDEFINED)

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, content):
        with open(os.path.join(self.home, ".aws", name), "w") as f:
            f.write(content)

    def _resolve(self, profile=None):
        resolver = CredentialResolver(env=self.env, metadata=self.metadata)
        return resolver.resolve(profile)

    def test_environment_takes_precedence(self):
        self.env.update({"AWS_ACCESS_KEY_ID": "AKIDENV", "AWS_SECRET_ACCESS_KEY": "env-secret"})
        self._write("config", "[default]\naws_access_key_id=AKIDCFG\naws_secret_access_key=cfg-secret\n")
        self.metadata.temporary_credentials.return_value = Result.ok(
            Credentials("ASIAMETA", "meta-secret", "meta-token", temporary=True)
        )

        result = self._resolve()

        self.assertTrue(result.is_ok)
        self.assertEqual(result.value.access_key, "AKIDENV")
        self.assertEqual(result.value.secret_key, "env-secret")
        self.assertIsNone(result.value.session_token)
        self.assertFalse(result.value.temporary)
        self.assertEqual(result.value.method, "env")
        self.metadata.temporary_credentials.assert_not_called()

    def test_partial_environment_falls_through(self):
        self.env["AWS_ACCESS_KEY_ID"] = "AKIDENV"
        self._write("credentials", "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        result = self._resolve()

        self.assertEqual(result.value.access_key, "AKIDFILE")

    def test_empty_environment_values_fall_through(self):
        self.env.update({"AWS_ACCESS_KEY_ID": "", "AWS_SECRET_ACCESS_KEY": ""})
        self._write("credentials", "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        self.assertEqual(self._resolve().value.method, "shared-credentials-file")

    def test_config_file(self):
        self._write("config", "[profile work]\naws_access_key_id=AKIDCFG\naws_secret_access_key=cfg-secret\n")
        self._write("credentials", "[work]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        result = self._resolve("work")

        self.assertEqual(result.value.access_key, "AKIDCFG")
        self.assertEqual(result.value.method, "config-file")
        self.assertFalse(result.value.temporary)

    def test_credentials_file_when_config_lacks_keys(self):
        self._write("config", "[profile work]\nregion=eu-west-1\naws_access_key_id=AKIDCFG\n")
        self._write("credentials", "[work]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        result = self._resolve("work")

        self.assertEqual(result.value.access_key, "AKIDFILE")
        self.assertEqual(result.value.method, "shared-credentials-file")

    def test_credentials_file_when_config_missing(self):
        self._write("credentials", "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        result = self._resolve()

        self.assertEqual(result.value.access_key, "AKIDFILE")

    def test_session_token_from_file(self):
        self._write(
            "credentials",
            "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\naws_session_token=file-token\n"
        )

        result = self._resolve()

        self.assertEqual(result.value.session_token, "file-token")
        self.assertFalse(result.value.temporary)

    def test_active_profile_from_environment(self):
        self.env["AWS_DEFAULT_PROFILE"] = "ci"
        self._write("credentials", "[ci]\naws_access_key_id=AKIDCI\naws_secret_access_key=ci-secret\n")

        self.assertEqual(self._resolve().value.access_key, "AKIDCI")

    def test_explicit_profile_overrides_environment(self):
        self.env["AWS_DEFAULT_PROFILE"] = "ci"
        self._write(
            "credentials",
            "[ci]\naws_access_key_id=AKIDCI\naws_secret_access_key=ci-secret\n"
            "[prod]\naws_access_key_id=AKIDPROD\naws_secret_access_key=prod-secret\n"
        )

        self.assertEqual(self._resolve("prod").value.access_key, "AKIDPROD")

    def test_metadata_fallback(self):
        self.metadata.temporary_credentials.return_value = Result.ok(
            Credentials("ASIAMETA", "meta-secret", "meta-token", temporary=True, method="iam-role")
        )

        result = self._resolve()

        self.assertTrue(result.value.temporary)
        self.assertEqual(result.value.session_token, "meta-token")
        self.metadata.temporary_credentials.assert_called_once_with()

    def test_nothing_configured_is_undefined(self):
        result = self._resolve()

        self.assertFalse(result.is_ok)
        self.assertEqual(result.error, ErrorKind.UNDEFINED)

    def test_missing_profile_is_undefined(self):
        self._write("credentials", "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        self.assertEqual(self._resolve("absent").error, ErrorKind.UNDEFINED)

    def test_unreadable_file_falls_through(self):
        with open(os.path.join(self.home, ".aws", "config"), "wb") as f:
            f.write(b"[default]\n\xff\xfe\n")
        self._write("credentials", "[default]\naws_access_key_id=AKIDFILE\naws_secret_access_key=file-secret\n")

        self.assertEqual(self._resolve().value.access_key, "AKIDFILE")

    def test_unreachable_metadata_is_bounded(self):
        http = Mock()
        http.request.side_effect = urllib3.exceptions.ConnectTimeoutError("timed out")
        resolver = CredentialResolver(env=self.env, metadata=MetadataClient(http=http))

        started = time.monotonic()
        result = resolver.resolve()

        self.assertEqual(result.error, ErrorKind.UNDEFINED)
        self.assertLess(time.monotonic() - started, 1.0)
        self.assertEqual(http.request.call_count, 1)

    def test_uses_injected_store(self):
        store = Mock(spec=ConfigStore)
        store.settings_for.return_value = Result.ok(
            {"aws_access_key_id": "AKIDSTORE", "aws_secret_access_key": "store-secret"}
        )

        result = CredentialResolver(env={}, store=store, metadata=self.metadata).resolve("work")

        self.assertEqual(result.value.access_key, "AKIDSTORE")
        self.assertEqual(store.settings_for.call_args[0][0], "work")


class TestCredentialsFromSection(unittest.TestCase):

    def test_numeric_values_become_strings(self):
        credentials = credentials_from_section(
            {"aws_access_key_id": "AKID", "aws_secret_access_key": 1234567890}
        )

        self.assertEqual(credentials.secret_key, "1234567890")

    def test_empty_value_is_not_usable(self):
        section = parse(["[default]", "aws_access_key_id=AKID", "aws_secret_access_key ="])["default"]

        self.assertIsNone(credentials_from_section(section))

    def test_nested_value_is_not_usable(self):
        section = {"aws_access_key_id": "AKID", "aws_secret_access_key": {"child": 1}}

        self.assertIsNone(credentials_from_section(section))


class TestFileProviders(unittest.TestCase):

    def test_method_and_source_are_class_constants(self):
        self.assertEqual(ConfigFileProvider.METHOD, "config-file")
        self.assertIs(ConfigFileProvider.SOURCE, ConfigSource.CONFIG)
        self.assertEqual(SharedCredentialsProvider.METHOD, "shared-credentials-file")
        self.assertIs(SharedCredentialsProvider.SOURCE, ConfigSource.CREDENTIALS)

    def test_load_reads_its_own_source(self):
        store = Mock(spec=ConfigStore)
        store.settings_for.return_value = Result.ok(
            {"aws_access_key_id": "AKID", "aws_secret_access_key": "secret"}
        )

        credentials = SharedCredentialsProvider(store).load("work")

        store.settings_for.assert_called_once_with("work", ConfigSource.CREDENTIALS)
        self.assertEqual(credentials.method, "shared-credentials-file")

    def test_resolver_chain_order(self):
        resolver = CredentialResolver(env={}, store=Mock(spec=ConfigStore), metadata=Mock(spec=MetadataClient))

        self.assertEqual(
            [provider.METHOD for provider in resolver.providers],
            ["env", "config-file", "shared-credentials-file", "iam-role"]
        )


class TestEnvProvider(unittest.TestCase):

    def test_load(self):
        provider = EnvProvider({"AWS_ACCESS_KEY_ID": "AKID", "AWS_SECRET_ACCESS_KEY": "secret"})

        credentials = provider.load("default")

        self.assertEqual((credentials.access_key, credentials.secret_key), ("AKID", "secret"))

    def test_missing(self):
        self.assertIsNone(EnvProvider({}).load("default"))


if __name__ == "__main__":
    unittest.main()
