"""
Capabilities

Optional platform capabilities components can enroll into.
"""

from .protocols import Reconciler, Routing
from .rbac import build_rules, create_or_update_platform_rbac
from .routing import RoutingCapability
from .templates import Templates

__all__ = [
    'Reconciler',
    'Routing',
    'build_rules',
    'create_or_update_platform_rbac',
    'RoutingCapability',
    'Templates',
]
