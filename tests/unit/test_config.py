"""Tests for configuration resolution."""
import pytest

from mantapy.core.config import (
    DEFAULT_HTTP_SIGN_ALGO,
    DEFAULT_MANTA_URL,
    DEFAULT_MAX_RETRIES,
    MAXIMUM_PRIV_KEY_SIZE,
    MantaConfig,
    ProxyConfig,
    SSLConfig,
    resolve_config,
)
from mantapy.core.exceptions import ConfigurationError

BASE_ENV = {
    'MANTA_USER': 'env-acct',
    'MANTA_KEY_ID': 'env-key',
    'MANTA_KEY_CONTENT': 'env-key-material',
}


class TestResolveConfig:
    """Test suite for resolve_config."""

    def test_environment_values(self):
        """Test values are read from the environment."""
        config = resolve_config(environ=BASE_ENV)

        assert config.account == 'env-acct'
        assert config.key_id == 'env-key'
        assert config.private_key == b'env-key-material'

    def test_explicit_overrides_environment(self):
        """Test explicit arguments win over the environment."""
        config = resolve_config(account='explicit', key_id='k', private_key=b'pem', environ=BASE_ENV)

        assert config.account == 'explicit'
        assert config.key_id == 'k'
        assert config.private_key == b'pem'

    def test_defaults(self):
        """Test defaults apply when nothing is set."""
        config = resolve_config(environ=BASE_ENV)

        assert config.endpoint == DEFAULT_MANTA_URL
        assert config.algorithm == DEFAULT_HTTP_SIGN_ALGO
        assert config.retry.max_retries == DEFAULT_MAX_RETRIES
        assert config.ssl.verify is True
        assert config.subuser is None

    def test_missing_account(self):
        """Test a missing account raises ConfigurationError."""
        env = dict(BASE_ENV)
        del env['MANTA_USER']

        with pytest.raises(ConfigurationError, match='account'):
            resolve_config(environ=env)

    def test_missing_key_id(self):
        """Test a missing key id names its environment variable."""
        env = dict(BASE_ENV)
        del env['MANTA_KEY_ID']

        with pytest.raises(ConfigurationError, match='MANTA_KEY_ID'):
            resolve_config(environ=env)

    def test_key_read_from_path(self, tmp_path):
        """Test the key file is read up to the size limit."""
        key_file = tmp_path / 'id_rsa'
        key_file.write_bytes(b'k' * (MAXIMUM_PRIV_KEY_SIZE + 10))
        env = {'MANTA_USER': 'a', 'MANTA_KEY_ID': 'b', 'MANTA_KEY_PATH': str(key_file)}

        config = resolve_config(environ=env)

        assert len(config.private_key) == MAXIMUM_PRIV_KEY_SIZE

    def test_missing_key_file(self, tmp_path):
        """Test an unreadable key file raises ConfigurationError."""
        env = {'MANTA_USER': 'a', 'MANTA_KEY_ID': 'b'}

        with pytest.raises(ConfigurationError, match='private key'):
            resolve_config(key_path=tmp_path / 'nope', environ=env)

    def test_numeric_environment_values(self):
        """Test numeric settings are parsed from the environment."""
        env = dict(BASE_ENV, MANTA_TIMEOUT='15', MANTA_HTTP_RETRIES='5')

        config = resolve_config(environ=env)

        assert config.timeout.total == 15.0
        assert config.retry.max_retries == 5

    def test_zero_retries_explicit(self):
        """Test zero retries is an accepted explicit value."""
        config = resolve_config(max_retries=0, environ=BASE_ENV)

        assert config.retry.max_retries == 0

    @pytest.mark.parametrize('key,value', [
        ('MANTA_TIMEOUT', 'soon'),
        ('MANTA_TIMEOUT', '-1'),
        ('MANTA_HTTP_RETRIES', 'many'),
        ('MANTA_HTTP_RETRIES', '-2'),
    ])
    def test_invalid_numbers(self, key, value):
        """Test invalid numeric settings are rejected."""
        with pytest.raises(ConfigurationError):
            resolve_config(environ=dict(BASE_ENV, **{key: value}))

    def test_tls_insecure_env(self):
        """Test MANTA_TLS_INSECURE disables verification."""
        config = resolve_config(environ=dict(BASE_ENV, MANTA_TLS_INSECURE='true'))

        assert config.ssl.verify is False

    def test_subuser_from_env(self):
        """Test the subuser is part of the login."""
        config = resolve_config(environ=dict(BASE_ENV, MANTA_SUBUSER='builder'))

        assert config.credential.login == 'env-acct/builder'

    def test_extra_fields_passed_through(self):
        """Test extra keyword arguments reach MantaConfig."""
        config = resolve_config(user_agent='tests/1.0', environ=BASE_ENV)

        assert config.get_default_headers()['User-Agent'] == 'tests/1.0'


class TestSubConfigs:
    """Tests for proxy and TLS helpers."""

    def test_proxy_credentials(self):
        """Test proxy credentials are embedded in the URL."""
        proxy = ProxyConfig(url='http://proxy:8888', username='u', password='p')

        assert proxy.to_aiohttp_proxy() == 'http://u:p@proxy:8888'
        assert proxy.to_requests_proxies() == {
            'http': 'http://u:p@proxy:8888',
            'https': 'http://u:p@proxy:8888',
        }

    def test_no_proxy(self):
        """Test no proxies without a proxy URL."""
        assert ProxyConfig().to_requests_proxies() is None

    def test_insecure_ssl(self):
        """Test disabled verification for both transports."""
        ssl_config = SSLConfig(verify=False)

        assert ssl_config.create_ssl_context() is False
        assert ssl_config.to_requests_verify() is False

    def test_base_url_strips_slash(self):
        """Test the endpoint loses its trailing slash."""
        assert MantaConfig(endpoint='https://manta.test/').base_url == 'https://manta.test'
