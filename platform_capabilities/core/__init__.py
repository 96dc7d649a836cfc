"""
Core Libraries

Shared functionality and utilities for the platform capabilities.
"""

from .context import ReconcileContext
from .exceptions import (
    AuthenticationError,
    CapabilityError,
    ClusterClientError,
    ConfigurationError,
    FeatureApplicationError,
    ManifestApplicationError,
    ManifestRenderError,
    PostconditionError,
    PreconditionError,
    RBACSynthesisError,
    ReadinessTimeoutError,
    ReconciliationCancelledError,
)
from .utils import setup_logging, disable_ssl_warnings, validate_namespace

__all__ = [
    'ReconcileContext',
    'AuthenticationError',
    'CapabilityError',
    'ClusterClientError',
    'ConfigurationError',
    'FeatureApplicationError',
    'ManifestApplicationError',
    'ManifestRenderError',
    'PostconditionError',
    'PreconditionError',
    'RBACSynthesisError',
    'ReadinessTimeoutError',
    'ReconciliationCancelledError',
    'setup_logging',
    'disable_ssl_warnings',
    'validate_namespace',
]
