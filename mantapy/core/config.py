"""
Client configuration module.

Provides the configuration dataclasses for the Manta client and the single
resolver that reads the process environment. Values are taken from an
explicit argument, then the environment, then a default; a required value
with none of the three raises ConfigurationError.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Callable, Mapping, Union
import os
import ssl

from .exceptions import ConfigurationError

MANTA_URL_ENV_KEY = 'MANTA_URL'
MANTA_USER_ENV_KEY = 'MANTA_USER'
MANTA_SUBUSER_ENV_KEY = 'MANTA_SUBUSER'
MANTA_KEY_ID_ENV_KEY = 'MANTA_KEY_ID'
MANTA_KEY_PATH_ENV_KEY = 'MANTA_KEY_PATH'
MANTA_KEY_CONTENT_ENV_KEY = 'MANTA_KEY_CONTENT'
MANTA_ALGORITHM_ENV_KEY = 'MANTA_HTTP_SIGNATURE_ALGORITHM'
MANTA_TIMEOUT_ENV_KEY = 'MANTA_TIMEOUT'
MANTA_RETRIES_ENV_KEY = 'MANTA_HTTP_RETRIES'
MANTA_TLS_INSECURE_ENV_KEY = 'MANTA_TLS_INSECURE'

DEFAULT_MANTA_URL = 'https://us-east.manta.joyent.com:443'
DEFAULT_KEY_PATH_SUFFIX = '.ssh/id_rsa'
DEFAULT_HTTP_SIGN_ALGO = 'RSA-SHA256'
DEFAULT_TIMEOUT = 200.0
DEFAULT_MAX_RETRIES = 3
MAXIMUM_PRIV_KEY_SIZE = 51200

_TRUTHY = ('1', 'true', 'yes', 'on')


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP, HTTPS, and SOCKS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def _with_credentials(self) -> Optional[str]:
        if not self.url:
            return None

        if self.username and self.password and '://' in self.url:
            protocol, rest = self.url.split('://', 1)
            return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        return self._with_credentials()

    def to_requests_proxies(self) -> Optional[Dict[str, str]]:
        """Convert to a requests ``proxies`` mapping."""
        url = self._with_credentials()
        if not url:
            return None
        return {'http': url, 'https': url}


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for security requirements.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """Create an SSL context for aiohttp (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context

    def to_requests_verify(self) -> Union[bool, str]:
        """Value for the requests ``verify`` argument."""
        if not self.verify:
            return False
        return self.ca_file or True

    def to_requests_cert(self) -> Optional[Any]:
        """Value for the requests ``cert`` argument."""
        if not self.cert_file:
            return None
        if self.key_file:
            return (self.cert_file, self.key_file)
        return self.cert_file


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Applied per physical HTTP attempt; an expired timeout surfaces as a
    connection-level failure.
    """
    total: float = DEFAULT_TIMEOUT
    connect: float = 30.0
    sock_read: float = 60.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )

    def to_requests_timeout(self) -> tuple:
        """Convert to a requests ``(connect, read)`` timeout tuple."""
        return (self.connect, min(self.sock_read, self.total))


@dataclass
class RetryConfig:
    """
    Retry configuration.

    ``backoff`` maps the 0-based attempt number to a delay in seconds.
    Without one, retries are immediate.
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff: Optional[Callable[[int], float]] = None


@dataclass(frozen=True)
class Credential:
    """
    Account identity and key material used to sign requests.

    Immutable for the life of a client.
    """
    account: str
    key_id: str
    private_key: bytes = field(repr=False)
    algorithm: str = DEFAULT_HTTP_SIGN_ALGO
    subuser: Optional[str] = None

    @property
    def login(self) -> str:
        """Account path used in the signature keyId."""
        if self.subuser:
            return f"{self.account}/{self.subuser}"
        return self.account


@dataclass
class MantaConfig:
    """
    Complete client configuration.

    Centralizes all configuration options for the Manta client.
    """
    endpoint: str = DEFAULT_MANTA_URL
    account: str = ''
    key_id: str = ''
    private_key: bytes = field(default=b'', repr=False)
    algorithm: str = DEFAULT_HTTP_SIGN_ALGO
    subuser: Optional[str] = None

    # User agent
    user_agent: str = 'mantapy/1.0.0'

    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Additional headers
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Logging; applied to the mantapy loggers unless the root logger is configured
    log_level: int = 20  # logging.INFO

    # Worker threads backing the future-returning call path
    max_workers: int = 4

    @property
    def credential(self) -> Credential:
        """Signing identity derived from this configuration."""
        return Credential(
            account=self.account,
            key_id=self.key_id,
            private_key=self.private_key,
            algorithm=self.algorithm,
            subuser=self.subuser
        )

    @property
    def base_url(self) -> str:
        """Endpoint without a trailing slash."""
        return self.endpoint.rstrip('/')

    def get_default_headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        return {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

    @classmethod
    def from_env(cls, **kwargs) -> 'MantaConfig':
        """Create configuration from arguments and the process environment."""
        return resolve_config(**kwargs)


def _param_env_or_default(
    value: Any,
    env_key: Optional[str],
    default: Any,
    name: str,
    environ: Mapping[str, str]
) -> Any:
    if value is not None and value != '':
        return value

    if env_key:
        env_value = environ.get(env_key)
        if env_value:
            return env_value

    if default is not None and default != '':
        return default

    hint = f" or set the environment variable [{env_key}]" if env_key else ''
    raise ConfigurationError(
        f"You must set the [{name}] argument explicitly{hint}"
    )


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid value for [{name}]: {value!r}")


def _as_int(value: Any, name: str) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid value for [{name}]: {value!r}")
    if result < 0:
        raise ConfigurationError(f"[{name}] must not be negative: {result}")
    return result


def _read_private_key(key_path: Union[str, Path]) -> bytes:
    path = Path(key_path).expanduser()
    try:
        with open(path, 'rb') as f:
            contents = f.read(MAXIMUM_PRIV_KEY_SIZE)
    except OSError as e:
        raise ConfigurationError(f"Unable to read private key [{path}]: {e}")

    if not contents:
        raise ConfigurationError(f"Private key file is empty: {path}")

    return contents


def resolve_config(
    endpoint: Optional[str] = None,
    account: Optional[str] = None,
    key_id: Optional[str] = None,
    private_key: Optional[Union[str, bytes]] = None,
    key_path: Optional[Union[str, Path]] = None,
    algorithm: Optional[str] = None,
    subuser: Optional[str] = None,
    timeout: Optional[float] = None,
    max_retries: Optional[int] = None,
    verify_tls: Optional[bool] = None,
    backoff: Optional[Callable[[int], float]] = None,
    proxy: Optional[ProxyConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    **kwargs
) -> MantaConfig:
    """
    Build a MantaConfig with explicit > environment > default precedence.

    Args:
        endpoint: Manta endpoint (e.g. https://us-east.manta.joyent.com)
        account: Manta account login
        key_id: Fingerprint of the signing key
        private_key: Private key contents (PEM or OpenSSH)
        key_path: Path to the private key, used when no contents are given
        algorithm: Signature algorithm (RSA-SHA256, RSA-SHA1, DSA-SHA1, ...)
        subuser: Optional sub-account login
        timeout: Per-attempt timeout in seconds
        max_retries: Retry limit for transient failures
        verify_tls: Whether to verify the server certificate
        backoff: Optional delay hook for retries
        proxy: Optional proxy settings
        environ: Environment mapping (defaults to ``os.environ``)
        **kwargs: Extra MantaConfig fields (user_agent, extra_headers, ...)

    Returns:
        Resolved configuration

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    env = os.environ if environ is None else environ

    resolved_endpoint = _param_env_or_default(
        endpoint, MANTA_URL_ENV_KEY, DEFAULT_MANTA_URL, 'endpoint', env
    )
    resolved_account = _param_env_or_default(
        account, MANTA_USER_ENV_KEY, None, 'account', env
    )
    resolved_key_id = _param_env_or_default(
        key_id, MANTA_KEY_ID_ENV_KEY, None, 'key_id', env
    )
    resolved_subuser = subuser or env.get(MANTA_SUBUSER_ENV_KEY) or None
    resolved_algorithm = _param_env_or_default(
        algorithm, MANTA_ALGORITHM_ENV_KEY, DEFAULT_HTTP_SIGN_ALGO, 'algorithm', env
    )

    if private_key:
        key_material = private_key
    elif env.get(MANTA_KEY_CONTENT_ENV_KEY):
        key_material = env[MANTA_KEY_CONTENT_ENV_KEY]
    else:
        default_path = Path.home() / DEFAULT_KEY_PATH_SUFFIX
        resolved_path = _param_env_or_default(
            key_path, MANTA_KEY_PATH_ENV_KEY, str(default_path), 'key_path', env
        )
        key_material = _read_private_key(resolved_path)

    if isinstance(key_material, str):
        key_material = key_material.encode('utf-8')

    resolved_timeout = _as_float(
        _param_env_or_default(timeout, MANTA_TIMEOUT_ENV_KEY, DEFAULT_TIMEOUT, 'timeout', env),
        'timeout'
    )
    if resolved_timeout <= 0:
        raise ConfigurationError(f"[timeout] must be positive: {resolved_timeout}")

    resolved_retries = _as_int(
        _param_env_or_default(
            max_retries, MANTA_RETRIES_ENV_KEY, DEFAULT_MAX_RETRIES, 'max_retries', env
        ),
        'max_retries'
    )

    if verify_tls is None:
        verify_tls = env.get(MANTA_TLS_INSECURE_ENV_KEY, '').lower() not in _TRUTHY

    return MantaConfig(
        endpoint=resolved_endpoint,
        account=resolved_account,
        key_id=resolved_key_id,
        private_key=key_material,
        algorithm=resolved_algorithm,
        subuser=resolved_subuser,
        proxy=proxy,
        ssl=SSLConfig(verify=verify_tls, check_hostname=verify_tls),
        timeout=TimeoutConfig(
            total=resolved_timeout,
            connect=min(30.0, resolved_timeout),
            sock_read=resolved_timeout
        ),
        retry=RetryConfig(max_retries=resolved_retries, backoff=backoff),
        **kwargs
    )
