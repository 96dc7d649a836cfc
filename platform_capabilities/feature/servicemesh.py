"""
Service Mesh Checks

Preconditions and postconditions specific to OpenShift Service Mesh (Maistra).
"""

import logging

from ..core.constants import ErrorMessages, KubernetesConstants, ServiceMeshConstants, TimeoutConstants
from ..core.context import ReconcileContext
from ..core.exceptions import CapabilityError
from .conditions import named, wait_until_ready
from .feature import Check, Feature

logger = logging.getLogger(__name__)


def ensure_service_mesh_operator_installed(ctx: ReconcileContext, feature: Feature) -> bool:
    """
    Precondition: the service mesh operator's control plane CRD is served.

    Raises:
        CapabilityError: With installation guidance when the CRD is missing
    """
    crd = feature.client.get(
        ctx,
        KubernetesConstants.APIEXTENSIONS_API_VERSION,
        "CustomResourceDefinition",
        ServiceMeshConstants.CONTROL_PLANE_CRD,
    )
    if crd is None:
        raise CapabilityError(ErrorMessages.MESH_OPERATOR_MISSING.format(crd=ServiceMeshConstants.CONTROL_PLANE_CRD))
    logger.debug(f"Service mesh operator found ({ServiceMeshConstants.CONTROL_PLANE_CRD})")
    return True


ensure_service_mesh_operator_installed.check_name = "ensure-service-mesh-operator-installed"


def is_member_ready(member: dict) -> bool:
    for condition in member.get('status', {}).get('conditions', []) or []:
        if condition.get('type') == 'Ready':
            return condition.get('status') == 'True'
    return False


def wait_for_service_mesh_member(namespace: str, timeout: float = TimeoutConstants.MEMBER_READY_TIMEOUT,
                                 interval: float = TimeoutConstants.DEFAULT_INTERVAL) -> Check:
    """
    Postcondition waiting until the namespace's ServiceMeshMember reports Ready

    Raises:
        ReadinessTimeoutError: If the member is not Ready within the timeout
    """
    @named(f"wait-for-service-mesh-member({namespace})")
    def check(ctx: ReconcileContext, feature: Feature) -> bool:
        def probe() -> bool:
            member = feature.client.get(
                ctx,
                ServiceMeshConstants.API_VERSION,
                ServiceMeshConstants.MEMBER_KIND,
                ServiceMeshConstants.MEMBER_NAME,
                namespace=namespace,
            )
            return member is not None and is_member_ready(member)

        return wait_until_ready(ctx, probe, timeout, interval, f"ServiceMeshMember in {namespace} to be ready")
    return check
