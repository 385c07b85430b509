"""Unit tests for client configuration."""

import pytest

from deriv_playground import ClientConfig, SubscriptionMode


class TestUrl:
    """Connection URL building."""

    def test_default_url(self):
        assert ClientConfig().url == (
            "wss://ws.derivws.com/websockets/v3?app_id=1&l=EN&brand=deriv"
        )

    def test_custom_endpoint_and_app_id(self):
        config = ClientConfig(endpoint="wss://blue.derivws.com/websockets/v3", app_id="1089")

        assert config.url.startswith("wss://blue.derivws.com/websockets/v3?app_id=1089&")

    def test_endpoint_with_query(self):
        config = ClientConfig(endpoint="wss://example.test/ws?debug=1")

        assert config.url.startswith("wss://example.test/ws?debug=1&app_id=1")


class TestOverrides:
    """with_overrides() and from_env()."""

    def test_none_values_are_ignored(self):
        config = ClientConfig().with_overrides(app_id=None, language="DE")

        assert config.app_id == "1"
        assert config.language == "DE"

    def test_unknown_keys_are_ignored(self):
        config = ClientConfig().with_overrides(colour="blue")

        assert config == ClientConfig()

    def test_mode_string_is_converted(self):
        config = ClientConfig().with_overrides(subscription_mode="once")

        assert config.subscription_mode is SubscriptionMode.ONCE

    def test_from_env(self):
        config = ClientConfig.from_env(
            {
                "DERIV_APP_ID": "1089",
                "DERIV_LANGUAGE": "FR",
                "DERIV_SUBSCRIPTION_MODE": "once",
                "DERIV_REQUEST_TIMEOUT": "2.5",
            }
        )

        assert config.app_id == "1089"
        assert config.language == "FR"
        assert config.subscription_mode is SubscriptionMode.ONCE
        assert config.request_timeout == 2.5

    def test_from_env_defaults(self):
        config = ClientConfig.from_env({})

        assert config == ClientConfig()
        assert config.request_timeout is None

    def test_from_env_bad_timeout(self):
        with pytest.raises(ValueError, match="DERIV_REQUEST_TIMEOUT"):
            ClientConfig.from_env({"DERIV_REQUEST_TIMEOUT": "soon"})

    def test_from_env_bad_mode(self):
        with pytest.raises(ValueError):
            ClientConfig.from_env({"DERIV_SUBSCRIPTION_MODE": "sometimes"})
