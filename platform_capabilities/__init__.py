"""
Platform Capabilities

Reconciles optional platform capabilities, such as service mesh ingress
routing, for the components that enroll into them.
"""

__version__ = "1.0.0"

from .bootstrap import create_routing_capability, load_platform_config
from .capabilities import Reconciler, Routing, RoutingCapability, create_or_update_platform_rbac
from .core import ReconcileContext, setup_logging
from .core.exceptions import (
    CapabilityError,
    ConfigurationError,
    FeatureApplicationError,
    ManifestApplicationError,
    PostconditionError,
    PreconditionError,
    RBACSynthesisError,
    ReconciliationCancelledError,
)
from .data_models import (
    ControlPlaneSpec,
    IngressConfig,
    IngressGatewaySpec,
    ResourceReference,
    RoutingSpec,
    RoutingTarget,
)

__all__ = [
    'create_routing_capability',
    'load_platform_config',
    'Reconciler',
    'Routing',
    'RoutingCapability',
    'create_or_update_platform_rbac',
    'ReconcileContext',
    'setup_logging',
    'CapabilityError',
    'ConfigurationError',
    'FeatureApplicationError',
    'ManifestApplicationError',
    'PostconditionError',
    'PreconditionError',
    'RBACSynthesisError',
    'ReconciliationCancelledError',
    'ControlPlaneSpec',
    'IngressConfig',
    'IngressGatewaySpec',
    'ResourceReference',
    'RoutingSpec',
    'RoutingTarget',
]
