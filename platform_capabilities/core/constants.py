"""
Constants Module

Centralized constants for the platform capabilities library to eliminate magic
strings and improve maintainability.
"""

from enum import Enum


class KubernetesConstants:
    """Kubernetes-related constants"""

    # API Group constants
    CORE_API_GROUP = ""  # Core API group (empty string)
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    RBAC_API_VERSION = "rbac.authorization.k8s.io/v1"
    APIEXTENSIONS_API_VERSION = "apiextensions.k8s.io/v1"

    # Standard Kubernetes labels
    MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
    MANAGED_BY_VALUE = "platform-capabilities"

    # Objects that never carry a namespace
    CLUSTER_SCOPED_KINDS = frozenset({
        "Namespace",
        "ClusterRole",
        "ClusterRoleBinding",
        "CustomResourceDefinition",
    })

    class RBACVerb(str, Enum):
        """RBAC verbs used in Kubernetes role definitions"""
        CREATE = "create"
        GET = "get"
        LIST = "list"
        WATCH = "watch"
        UPDATE = "update"
        PATCH = "patch"
        DELETE = "delete"

        def __str__(self) -> str:
            """Return the verb value for use in RBAC rules"""
            return self.value

        @classmethod
        def get_read_verbs(cls) -> list:
            """Get all read-only RBAC verbs"""
            return [cls.GET, cls.LIST, cls.WATCH]


class PlatformConstants:
    """Labels and annotations stamped on objects applied by the feature pipeline"""

    LABEL_PREFIX = "platform.capabilities.io"

    PART_OF_LABEL = f"{LABEL_PREFIX}/part-of"
    SOURCE_TYPE_ANNOTATION = f"{LABEL_PREFIX}/source-type"
    FEATURE_ANNOTATION = f"{LABEL_PREFIX}/feature"
    MANAGED_ANNOTATION = f"{LABEL_PREFIX}/managed"

    DEFAULT_PLATFORM_NAMESPACE = "opendatahub"
    DEFAULT_SERVICE_ACCOUNT = "platform-controller-manager"


class RoutingConstants:
    """Routing capability constants"""

    CAPABILITY_NAME = "routing"
    WATCHER_ROLE_NAME = "platform-routing-resources-watcher"

    NS_CREATION_FEATURE = "mesh-ingress-ns-creation"
    INGRESS_CREATION_FEATURE = "mesh-ingress-creation"

    DEFAULT_GATEWAY_NAME = "odh-router-ingress"
    DEFAULT_GATEWAY_NAMESPACE = "opendatahub-routing"
    DEFAULT_SELECTOR_KEY = "istio"
    DEFAULT_SELECTOR_VALUE = "rhoai-gateway"


class ServiceMeshConstants:
    """Service mesh (Maistra/OSSM) constants"""

    API_VERSION = "maistra.io/v1"
    CONTROL_PLANE_CRD = "servicemeshcontrolplanes.maistra.io"
    MEMBER_KIND = "ServiceMeshMember"
    MEMBER_NAME = "default"

    DEFAULT_CONTROL_PLANE_NAME = "data-science-smcp"
    DEFAULT_CONTROL_PLANE_NAMESPACE = "istio-system"


class TimeoutConstants:
    """Polling intervals and timeouts (seconds) for readiness checks"""

    DEFAULT_INTERVAL = 2
    DEFAULT_TIMEOUT = 300
    MEMBER_READY_TIMEOUT = 120


class ErrorMessages:
    """Centralized error message templates"""

    OWNER_REFERENCE_INVALID = "Cannot define owner reference for {owner}: {reason}"
    CAPABILITY_UNAVAILABLE = (
        "Routing capability is required by {count} target(s) but is not available on this platform. "
        "Enable the capability in the platform configuration or stop exposing routing targets."
    )
    MESH_OPERATOR_MISSING = (
        "Service mesh operator is not installed: CustomResourceDefinition {crd} not found. "
        "Install the OpenShift Service Mesh operator before enabling routing."
    )
    READINESS_TIMEOUT = "timed out after {timeout}s waiting for {description}"
    TEMPLATE_NOT_FOUND = "Manifest template not found: {path}"
    TEMPLATE_VARIABLE_MISSING = "Manifest template {path} references undefined variable {variable}"
