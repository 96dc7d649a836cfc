"""
Data Models Module.

Typed data structures shared between consumer components and platform
capabilities: resource references contributed by components, the static
routing configuration and the projections handed to the transport layer.
"""

from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .core.constants import (
    KubernetesConstants,
    RoutingConstants,
    ServiceMeshConstants,
)


@dataclass(frozen=True)
class ResourceReference:
    """
    Identifies a type of cluster object, and optionally a single instance of it.

    The reference is used both to derive RBAC rules (which resources the
    platform is allowed to watch) and as input to manifest templates.
    """
    version: str
    kind: str
    resources: str
    api_group: str = KubernetesConstants.CORE_API_GROUP
    name: Optional[str] = None
    namespace: Optional[str] = None

    @property
    def api_version(self) -> str:
        if self.api_group:
            return f"{self.api_group}/{self.version}"
        return self.version

    def to_rule(self) -> Dict[str, List[str]]:
        """
        Build the RBAC policy rule granting read and watch access to this reference.

        The namespace is not represented; the rule applies cluster wide.

        Returns:
            Dict in the shape of a Kubernetes PolicyRule
        """
        rule = {
            'apiGroups': [self.api_group],
            'resources': [self.resources],
            'verbs': [str(verb) for verb in KubernetesConstants.RBACVerb.get_read_verbs()],
        }
        if self.name:
            rule['resourceNames'] = [self.name]
        return rule


@dataclass(frozen=True)
class RoutingTarget:
    """A resource a consumer component wants exposed through the platform ingress"""
    resource_reference: ResourceReference
    service_port: int = 80
    host_prefix: Optional[str] = None
    labels: Mapping[str, str] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.resource_reference, self.service_port, self.host_prefix,
                     tuple(sorted(self.labels.items()))))


@dataclass(frozen=True)
class IngressGatewaySpec:
    """Where and how the platform ingress gateway is deployed"""
    name: str = RoutingConstants.DEFAULT_GATEWAY_NAME
    namespace: str = RoutingConstants.DEFAULT_GATEWAY_NAMESPACE
    label_selector_key: str = RoutingConstants.DEFAULT_SELECTOR_KEY
    label_selector_value: str = RoutingConstants.DEFAULT_SELECTOR_VALUE


@dataclass(frozen=True)
class ControlPlaneSpec:
    """Service mesh control plane the gateway namespace becomes a member of"""
    name: str = ServiceMeshConstants.DEFAULT_CONTROL_PLANE_NAME
    namespace: str = ServiceMeshConstants.DEFAULT_CONTROL_PLANE_NAMESPACE


@dataclass(frozen=True)
class RoutingSpec:
    """Static routing configuration supplied by the platform, never by consumers"""
    ingress_gateway: IngressGatewaySpec = field(default_factory=IngressGatewaySpec)
    control_plane: ControlPlaneSpec = field(default_factory=ControlPlaneSpec)

    def as_template_data(self) -> Dict[str, Any]:
        """Flattened view used as manifest template variables"""
        return flatten_data(self)


@dataclass(frozen=True)
class IngressConfig:
    """Read-only projection of the routing spec for the transport layer"""
    ingress_selector_label: str
    ingress_selector_value: str
    ingress_service: str
    gateway_namespace: str


class SourceType(str, Enum):
    """Origin of a set of features"""
    COMPONENT = "component"
    PLATFORM_CAPABILITY = "platform-capability"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Source:
    """Who or what contributed a set of features. Used for labeling only."""
    type: SourceType
    name: str


@dataclass(frozen=True)
class OwnerReference:
    """Owner of applied objects, used by the cluster for garbage collection"""
    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Return the owner reference in Kubernetes API field naming"""
        return {
            'apiVersion': self.api_version,
            'kind': self.kind,
            'name': self.name,
            'uid': self.uid,
            'controller': self.controller,
            'blockOwnerDeletion': self.block_owner_deletion,
        }


def flatten_data(data: Any, prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested dataclasses and mappings into a single-level dictionary.

    Nested keys are joined with underscores, so ``RoutingSpec.ingress_gateway.namespace``
    becomes ``ingress_gateway_namespace``.

    Args:
        data: Dataclass instance or mapping
        prefix: Key prefix used during recursion

    Returns:
        Dict of flattened keys to leaf values
    """
    if is_dataclass(data) and not isinstance(data, type):
        data = asdict(data)
    if not isinstance(data, Mapping):
        raise TypeError(f"Cannot flatten {type(data).__name__}; expected a dataclass or mapping")

    flattened = {}
    for key, value in data.items():
        full_key = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, Mapping) or (is_dataclass(value) and not isinstance(value, type)):
            flattened.update(flatten_data(value, full_key))
        else:
            flattened[full_key] = value
    return flattened
