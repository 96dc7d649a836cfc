"""
Configuration Management

Loads the platform's static capability configuration from a YAML file, with
environment variable overrides, and validates it.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from decouple import config as env_config, strtobool

from ..data_models import ControlPlaneSpec, IngressGatewaySpec, RoutingSpec
from .constants import PlatformConstants, RoutingConstants, ServiceMeshConstants
from .exceptions import ConfigurationError
from .utils import validate_label, validate_name, validate_namespace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformConfig:
    """Validated static configuration of the platform capabilities"""
    routing_available: bool = True
    routing_spec: RoutingSpec = field(default_factory=RoutingSpec)
    service_account: str = PlatformConstants.DEFAULT_SERVICE_ACCOUNT
    platform_namespace: str = PlatformConstants.DEFAULT_PLATFORM_NAMESPACE


class ConfigManager:
    """Manages configuration loading and validation"""

    # Configuration schema - defines expected structure and types
    CONFIG_SCHEMA = {
        'platform': {
            'type': dict,
            'required': False,
            'fields': {
                'namespace': {'type': str, 'required': False},
                'serviceAccount': {'type': str, 'required': False},
            }
        },
        'routing': {
            'type': dict,
            'required': False,
            'fields': {
                'available': {'type': bool, 'required': False},
                'ingressGateway': {
                    'type': dict,
                    'required': False,
                    'fields': {
                        'name': {'type': str, 'required': False},
                        'namespace': {'type': str, 'required': False},
                        'labelSelectorKey': {'type': str, 'required': False},
                        'labelSelectorValue': {'type': str, 'required': False},
                    }
                },
                'controlPlane': {
                    'type': dict,
                    'required': False,
                    'fields': {
                        'name': {'type': str, 'required': False},
                        'namespace': {'type': str, 'required': False},
                    }
                },
            }
        },
    }

    # Environment variables overriding configuration file values
    ENV_OVERRIDES = {
        'PLATFORM_NAMESPACE': 'platform.namespace',
        'PLATFORM_SERVICE_ACCOUNT': 'platform.serviceAccount',
        'ROUTING_CAPABILITY_AVAILABLE': 'routing.available',
        'ROUTING_GATEWAY_NAME': 'routing.ingressGateway.name',
        'ROUTING_GATEWAY_NAMESPACE': 'routing.ingressGateway.namespace',
        'ROUTING_SELECTOR_KEY': 'routing.ingressGateway.labelSelectorKey',
        'ROUTING_SELECTOR_VALUE': 'routing.ingressGateway.labelSelectorValue',
        'MESH_CONTROL_PLANE_NAME': 'routing.controlPlane.name',
        'MESH_CONTROL_PLANE_NAMESPACE': 'routing.controlPlane.namespace',
    }

    def __init__(self):
        self.config_data: Dict[str, Any] = {}
        self.config_file_path: Optional[str] = None

    def load_config(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the configuration file, apply environment overrides and validate the result

        Args:
            config_path: YAML configuration file; built-in defaults apply when omitted

        Returns:
            Dict of the merged configuration

        Raises:
            ConfigurationError: If the file is missing or malformed, or a value has the wrong type
        """
        self.config_data = self._read_file(config_path) if config_path else {}
        self.config_file_path = config_path
        if config_path:
            logger.info(f"Loaded platform configuration from {config_path}")

        self._apply_env_overrides()
        self._validate_against_schema(self.config_data, self.CONFIG_SCHEMA)
        return self.config_data

    @staticmethod
    def _read_file(config_path: str) -> Dict[str, Any]:
        path = Path(config_path)
        if not path.is_file():
            reason = "is not a file" if path.exists() else "not found"
            raise ConfigurationError(f"Configuration file {config_path} {reason}")

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {config_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {config_path} must be a dictionary, got {type(data).__name__}")
        return data

    def _apply_env_overrides(self) -> None:
        for env_name, key in self.ENV_OVERRIDES.items():
            cast = bool if key == 'routing.available' else str
            value = env_config(env_name, default=None, cast=_optional(cast))
            if value is None:
                continue
            logger.debug(f"Configuration {key} overridden by {env_name}")
            self._set_value(key, value)

    def _set_value(self, key: str, value: Any) -> None:
        section = self.config_data
        *parents, leaf = key.split('.')
        for part in parents:
            if not isinstance(section.get(part), dict):
                section[part] = {}
            section = section[part]
        section[leaf] = value

    def _validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Check a configuration section against its schema, recursing into nested sections

        Raises:
            ConfigurationError: On the first missing required key or mistyped value
        """
        for key, rules in schema.items():
            key_path = f"{path}.{key}" if path else key
            value = data.get(key)

            if value is None:
                if rules.get('required', False):
                    raise ConfigurationError(f"Required field {key_path} is missing")
                continue

            if not isinstance(value, rules['type']):
                raise ConfigurationError(
                    f"{key_path} must be a {rules['type'].__name__}, got {type(value).__name__}"
                )

            if 'fields' in rules:
                self._validate_against_schema(value, rules['fields'], key_path)

    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted path, e.g. 'routing.ingressGateway.name'

        Returns:
            The value, or default when any path segment is missing or null
        """
        node: Any = self.config_data
        for part in key.split('.'):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def get_platform_config(self) -> PlatformConfig:
        """
        Build the typed platform configuration from loaded data

        Returns:
            PlatformConfig with defaults filled in

        Raises:
            ConfigurationError: If namespaces or label selectors are invalid
        """
        gateway = IngressGatewaySpec(
            name=self.get_value('routing.ingressGateway.name', RoutingConstants.DEFAULT_GATEWAY_NAME),
            namespace=self.get_value('routing.ingressGateway.namespace', RoutingConstants.DEFAULT_GATEWAY_NAMESPACE),
            label_selector_key=self.get_value('routing.ingressGateway.labelSelectorKey',
                                              RoutingConstants.DEFAULT_SELECTOR_KEY),
            label_selector_value=self.get_value('routing.ingressGateway.labelSelectorValue',
                                                RoutingConstants.DEFAULT_SELECTOR_VALUE),
        )
        control_plane = ControlPlaneSpec(
            name=self.get_value('routing.controlPlane.name', ServiceMeshConstants.DEFAULT_CONTROL_PLANE_NAME),
            namespace=self.get_value('routing.controlPlane.namespace',
                                     ServiceMeshConstants.DEFAULT_CONTROL_PLANE_NAMESPACE),
        )
        platform_namespace = self.get_value('platform.namespace', PlatformConstants.DEFAULT_PLATFORM_NAMESPACE)

        validate_name(gateway.name, "Ingress gateway name")
        validate_name(control_plane.name, "Control plane name")
        validate_namespace(gateway.namespace)
        validate_namespace(control_plane.namespace)
        validate_namespace(platform_namespace)
        validate_label(gateway.label_selector_key, gateway.label_selector_value)

        return PlatformConfig(
            routing_available=self.get_value('routing.available', True),
            routing_spec=RoutingSpec(ingress_gateway=gateway, control_plane=control_plane),
            service_account=self.get_value('platform.serviceAccount', PlatformConstants.DEFAULT_SERVICE_ACCOUNT),
            platform_namespace=platform_namespace,
        )


def _optional(cast):
    """decouple cast passing None through, so unset variables can be told apart"""
    def convert(value):
        if value is None:
            return None
        if cast is bool:
            try:
                return bool(strtobool(str(value).strip()))
            except ValueError as e:
                raise ConfigurationError(f"Invalid boolean value: {value!r}") from e
        return cast(value)
    return convert
