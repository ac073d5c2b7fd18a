# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for TLS trust material resolution."""

import ssl

import pytest

from theme_mailer.config_loader import TrustSettings
from theme_mailer.errors import TrustSetupError
from theme_mailer.trust import (
    HostnameVerificationPolicy,
    TrustConfigurator,
    TrustMaterial,
    TrustProvider,
    TruststoreProvider,
)


class StaticProvider:
    def __init__(self, context=None, policy=HostnameVerificationPolicy.STRICT):
        self.context = context
        self._policy = policy
        self.calls = 0

    @property
    def policy(self):
        return self._policy

    def get_ssl_context(self):
        self.calls += 1
        return self.context


class BrokenProvider(StaticProvider):
    def get_ssl_context(self):
        raise OSError("cannot read truststore")


def test_no_provider_gives_default_material():
    assert TrustConfigurator().configure() == TrustMaterial()


def test_strict_policy_passes_context_through():
    context = ssl.create_default_context()

    material = TrustConfigurator(StaticProvider(context)).configure()

    assert material.ssl_context is context
    assert material.ssl_context.check_hostname is True
    assert material.hostname_verification_disabled is False


def test_strict_policy_without_context():
    material = TrustConfigurator(StaticProvider()).configure()

    assert material.ssl_context is None
    assert material.hostname_verification_disabled is False


def test_any_policy_disables_hostname_check():
    context = ssl.create_default_context()
    provider = StaticProvider(context, HostnameVerificationPolicy.ANY)

    material = TrustConfigurator(provider).configure()

    assert material.hostname_verification_disabled is True
    assert material.ssl_context is context
    assert context.check_hostname is False
    assert context.verify_mode == ssl.CERT_REQUIRED


def test_any_policy_without_context_builds_one():
    material = TrustConfigurator(StaticProvider(policy=HostnameVerificationPolicy.ANY)).configure()

    assert isinstance(material.ssl_context, ssl.SSLContext)
    assert material.ssl_context.check_hostname is False
    assert material.hostname_verification_disabled is True


def test_provider_failure_becomes_trust_setup_error():
    with pytest.raises(TrustSetupError, match="cannot read truststore") as exc_info:
        TrustConfigurator(BrokenProvider()).configure()

    assert exc_info.value.code == "trust_setup_failed"
    assert isinstance(exc_info.value.__cause__, OSError)


def test_truststore_provider_without_files_uses_system_store():
    provider = TruststoreProvider()

    assert provider.get_ssl_context() is None
    assert provider.policy is HostnameVerificationPolicy.STRICT
    assert isinstance(provider, TrustProvider)


def test_truststore_provider_missing_cafile_fails_setup(tmp_path):
    provider = TruststoreProvider(cafile=str(tmp_path / "missing-ca.pem"))

    with pytest.raises(TrustSetupError):
        TrustConfigurator(provider).configure()


def test_truststore_provider_from_settings():
    provider = TruststoreProvider.from_settings(
        TrustSettings(cafile="/etc/ssl/ca.pem", policy=HostnameVerificationPolicy.ANY)
    )

    assert provider.cafile == "/etc/ssl/ca.pem"
    assert provider.capath is None
    assert provider.policy is HostnameVerificationPolicy.ANY


def test_any_policy_leaves_later_contexts_strict(tmp_path):
    provider = TruststoreProvider(capath=str(tmp_path), policy=HostnameVerificationPolicy.ANY)
    configurator = TrustConfigurator(provider)

    first = configurator.configure()
    second = configurator.configure()

    assert first.ssl_context is not second.ssl_context
    assert first.ssl_context.check_hostname is False
    assert provider.get_ssl_context().check_hostname is True
