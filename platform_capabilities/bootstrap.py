"""
Bootstrap

Wires configuration into capability instances for the owning controller
process.
"""

import logging
from typing import Optional

from .capabilities.routing import RoutingCapability
from .core.config import ConfigManager, PlatformConfig

logger = logging.getLogger(__name__)


def load_platform_config(config_path: Optional[str] = None) -> PlatformConfig:
    """
    Load and validate the platform configuration

    Args:
        config_path: YAML configuration file (optional)

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    manager = ConfigManager()
    manager.load_config(config_path)
    return manager.get_platform_config()


def create_routing_capability(config_path: Optional[str] = None,
                              platform_config: Optional[PlatformConfig] = None) -> RoutingCapability:
    """
    Create the routing capability from configuration

    Args:
        config_path: YAML configuration file, used when platform_config is not given
        platform_config: Already loaded configuration

    Returns:
        RoutingCapability with no targets exposed yet
    """
    platform_config = platform_config or load_platform_config(config_path)
    gateway = platform_config.routing_spec.ingress_gateway
    logger.info(
        f"Routing capability {'available' if platform_config.routing_available else 'not available'}; "
        f"gateway {gateway.namespace}/{gateway.name}"
    )
    return RoutingCapability(
        platform_config.routing_spec,
        platform_config.routing_available,
        service_account=platform_config.service_account,
        service_account_namespace=platform_config.platform_namespace,
    )
