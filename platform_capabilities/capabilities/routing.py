"""
Routing Capability

Lets components enroll resources into the platform's ingress routing. The
ingress gateway and its mesh membership are only installed once at least one
component has exposed a routing target.
"""

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from ..cluster.client import ClusterClient
from ..cluster.owner import as_owner_ref, with_owner_reference
from ..core.constants import ErrorMessages, PlatformConstants, RoutingConstants, TimeoutConstants
from ..core.context import ReconcileContext
from ..core.exceptions import (
    ConfigurationError,
    FeatureApplicationError,
    FeatureStageError,
)
from ..data_models import IngressConfig, OwnerReference, RoutingSpec, RoutingTarget, Source, SourceType
from ..feature import (
    Feature,
    FeatureResult,
    FeaturesHandler,
    FeaturesProvider,
    FeaturesRegistry,
    ManifestLocation,
    ManifestRenderer,
    create_namespace_if_not_exists,
    define,
    ensure_service_mesh_operator_installed,
    wait_for_pods_to_be_ready,
    wait_for_service_mesh_member,
)
from .rbac import create_or_update_platform_rbac
from .templates import Templates

logger = logging.getLogger(__name__)

OwnerReferenceFactory = Callable[[Any], OwnerReference]


class RoutingCapability:
    """
    Platform routing capability.

    Components call expose() during their setup, possibly from several threads.
    The platform controller calls reconcile() once per reconciliation cycle;
    overlapping reconcile() calls for the same instance must be prevented by
    the caller.
    """

    def __init__(self, spec: RoutingSpec, available: bool,
                 owner_reference_factory: OwnerReferenceFactory = as_owner_ref,
                 renderer: Optional[ManifestRenderer] = None,
                 service_account: str = PlatformConstants.DEFAULT_SERVICE_ACCOUNT,
                 service_account_namespace: str = PlatformConstants.DEFAULT_PLATFORM_NAMESPACE,
                 readiness_timeout: Optional[float] = None,
                 poll_interval: float = TimeoutConstants.DEFAULT_INTERVAL):
        """
        Initialize routing capability

        Args:
            spec: Static ingress gateway configuration
            available: Whether this platform build offers routing at all
            owner_reference_factory: Computes the owner reference of applied objects
            renderer: Manifest renderer (defaults to the template renderer)
            service_account: Platform controller service account granted watch access
            service_account_namespace: Namespace of that service account
            readiness_timeout: Seconds postconditions wait for readiness (None for each check's default)
            poll_interval: Seconds between readiness probes
        """
        self._available = available
        self._routing_spec = spec
        self._routing_targets: List[RoutingTarget] = []
        self._lock = threading.Lock()
        self._owner_reference_factory = owner_reference_factory
        self._renderer = renderer
        self._service_account = service_account
        self._service_account_namespace = service_account_namespace
        self._readiness_timeout = readiness_timeout
        self._poll_interval = poll_interval
        self.last_results: List[FeatureResult] = []

    @property
    def routing_spec(self) -> RoutingSpec:
        return self._routing_spec

    def ingress_config(self) -> IngressConfig:
        gateway = self._routing_spec.ingress_gateway
        return IngressConfig(
            ingress_selector_label=gateway.label_selector_key,
            ingress_selector_value=gateway.label_selector_value,
            ingress_service=gateway.name,
            gateway_namespace=gateway.namespace,
        )

    def routing_targets(self) -> Tuple[RoutingTarget, ...]:
        """Snapshot of the exposed targets in registration order"""
        with self._lock:
            return tuple(self._routing_targets)

    # Component registration API

    def expose(self, *targets: RoutingTarget) -> None:
        """
        Register resources to be watched and routed for a component.

        Registration is additive: no deduplication and no availability check.
        """
        with self._lock:
            self._routing_targets.extend(targets)
        logger.debug(f"Exposed {len(targets)} routing target(s)")

    def is_available(self) -> bool:
        return self._available

    # Platform reconciliation API

    def is_required(self) -> bool:
        with self._lock:
            return len(self._routing_targets) > 0

    def reconcile(self, ctx: ReconcileContext, cli: ClusterClient, owner: Any) -> None:
        """
        Ensure routing RBAC and ingress configuration are wired when needed.

        Args:
            ctx: Reconcile context carrying cancellation and deadline
            cli: Cluster client
            owner: Object owning everything this capability applies

        Raises:
            ConfigurationError: If routing is required but not available, or the
                owner cannot be turned into an owner reference
            RBACSynthesisError: If the watcher role or binding cannot be written
            FeatureApplicationError: If a routing feature fails, chained to the
                PreconditionError, ManifestApplicationError or PostconditionError
            ReconciliationCancelledError: If the context is cancelled
        """
        self.last_results = []
        targets = self.routing_targets()

        if targets and not self._available:
            raise ConfigurationError(ErrorMessages.CAPABILITY_UNAVAILABLE.format(count=len(targets)))

        try:
            owner_ref = self._owner_reference_factory(owner)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to define owner reference while reconciling routing capability: {e}") from e

        references = [target.resource_reference for target in targets]
        create_or_update_platform_rbac(
            ctx, cli, RoutingConstants.WATCHER_ROLE_NAME, references,
            with_owner_reference(owner_ref),
            service_account=self._service_account,
            service_account_namespace=self._service_account_namespace,
        )

        handler = FeaturesHandler(
            self._routing_spec.ingress_gateway.namespace,
            Source(type=SourceType.PLATFORM_CAPABILITY, name=RoutingConstants.CAPABILITY_NAME),
            cli,
            self._define_routing_features(owner_ref, targets),
            renderer=self._renderer,
        )

        try:
            self.last_results = handler.apply(ctx)
        except FeatureStageError as e:
            self.last_results = list(handler.results)
            raise FeatureApplicationError(f"Failed to apply routing features: {e}", e) from e

    def _define_routing_features(self, owner_ref: OwnerReference,
                                 targets: Tuple[RoutingTarget, ...]) -> FeaturesProvider:
        spec = self._routing_spec
        namespace = spec.ingress_gateway.namespace
        location = ManifestLocation(Templates.LOCATION)
        ingress_dir = Templates.SERVICE_MESH_INGRESS_DIR
        template_data = spec.as_template_data()
        waits = {'interval': self._poll_interval}
        if self._readiness_timeout is not None:
            waits['timeout'] = self._readiness_timeout

        def routing_required(_ctx: ReconcileContext, _feature: Feature) -> bool:
            # Evaluated at apply time against the snapshot taken on reconcile entry
            return len(targets) > 0

        def provider(registry: FeaturesRegistry) -> None:
            registry.add(
                define(RoutingConstants.NS_CREATION_FEATURE)
                .manifests(location.include(f"{ingress_dir}/servicemeshmember.tmpl.yaml"))
                .managed()
                .owned_by(owner_ref)
                .enabled_when(routing_required)
                .with_data(template_data)
                .pre_conditions(
                    ensure_service_mesh_operator_installed,
                    create_namespace_if_not_exists(namespace),
                )
                .post_conditions(
                    wait_for_service_mesh_member(namespace, **waits),
                ),
                define(RoutingConstants.INGRESS_CREATION_FEATURE)
                .manifests(location.include(
                    f"{ingress_dir}/service.tmpl.yaml",
                    f"{ingress_dir}/role.tmpl.yaml",
                    f"{ingress_dir}/rolebinding.tmpl.yaml",
                    f"{ingress_dir}/deployment.tmpl.yaml",
                    f"{ingress_dir}/gateway.tmpl.yaml",
                    f"{ingress_dir}/networkpolicy.tmpl.yaml",
                ))
                .managed()
                .owned_by(owner_ref)
                .enabled_when(routing_required)
                .with_data(template_data)
                .pre_conditions(
                    ensure_service_mesh_operator_installed,
                    create_namespace_if_not_exists(namespace),
                )
                .post_conditions(
                    wait_for_pods_to_be_ready(namespace, **waits),
                ),
            )

        return provider
