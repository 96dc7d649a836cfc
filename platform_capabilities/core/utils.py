"""
Core Utilities

Logging setup, log redaction and name validation shared by the platform
capabilities library.
"""

import logging
import re
from typing import Iterable, Optional

import urllib3

from .exceptions import ConfigurationError

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# HTTP and client libraries below the cluster client log every request at INFO
NOISY_LOGGERS = ('urllib3', 'kubernetes', 'openshift')

_DNS_LABEL = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')
_LABEL_KEY = re.compile(r'^([a-z0-9]([-a-z0-9.]*[a-z0-9])?/)?[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$')
_LABEL_VALUE = re.compile(r'^([A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?)?$')

_SECRET_PATTERNS = (
    (re.compile(r'Bearer [A-Za-z0-9+/=_-]+'), 'Bearer ***MASKED***'),
    (re.compile(r'sha256~[A-Za-z0-9_-]+'), 'sha256~***MASKED***'),
)


def setup_logging(debug: bool = False, quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure the root logger of the owning process.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        debug: Log at DEBUG instead of INFO
        quiet: Library loggers limited to WARNING
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Debug logging enabled")


def disable_ssl_warnings() -> None:
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def mask_sensitive_info(text: str, url: Optional[str] = None) -> str:
    """Redact the cluster URL and bearer or OpenShift tokens before logging"""
    if not text:
        return text
    if url:
        text = text.replace(url, "https://****:***")
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def validate_namespace(namespace: str) -> bool:
    """
    Check that a namespace name is a valid DNS-1123 label.

    Args:
        namespace: Namespace name from configuration

    Returns:
        bool: True when valid

    Raises:
        ConfigurationError: If the name is empty, malformed or longer than 63 characters
    """
    if not isinstance(namespace, str) or not namespace:
        raise ConfigurationError("Namespace cannot be empty")
    if len(namespace) > 63:
        raise ConfigurationError(f"Namespace {namespace!r} is longer than 63 characters")
    if not _DNS_LABEL.fullmatch(namespace):
        raise ConfigurationError(
            f"Invalid Kubernetes namespace {namespace!r}: use lowercase alphanumerics and '-'"
        )
    return True


def validate_name(name: str, what: str = "Name") -> bool:
    """
    Check that an object name is a valid DNS-1123 label.

    Raises:
        ConfigurationError: If the name is empty, malformed or longer than 63 characters
    """
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"{what} cannot be empty")
    if len(name) > 63 or not _DNS_LABEL.fullmatch(name):
        raise ConfigurationError(f"Invalid {what.lower()} {name!r}: use at most 63 lowercase alphanumerics and '-'")
    return True


def validate_label(key: str, value: str) -> bool:
    """
    Validate a label selector key/value pair.

    Raises:
        ConfigurationError: If either part is not a valid label
    """
    if not key or not _LABEL_KEY.fullmatch(key):
        raise ConfigurationError(f"Invalid label key: {key!r}")
    if value is None or len(value) > 63 or not _LABEL_VALUE.fullmatch(value):
        raise ConfigurationError(f"Invalid label value for {key}: {value!r}")
    return True


def object_id(obj: dict) -> str:
    """Short kind/namespace/name identifier of a cluster object for logs and reports"""
    metadata = obj.get('metadata', {})
    namespace = metadata.get('namespace')
    name = metadata.get('name', '<unnamed>')
    kind = obj.get('kind', '<unknown>')
    return f"{kind}/{namespace}/{name}" if namespace else f"{kind}/{name}"
