"""
Shared Test Fixtures

In-memory stand-in for the cluster API plus common objects used across the
test suites.
"""

import copy
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from platform_capabilities.cluster.client import merge_for_update
from platform_capabilities.core.constants import KubernetesConstants, ServiceMeshConstants
from platform_capabilities.core.context import ReconcileContext
from platform_capabilities.core.exceptions import ClusterClientError
from platform_capabilities.data_models import (
    ControlPlaneSpec,
    IngressGatewaySpec,
    ResourceReference,
    RoutingSpec,
    RoutingTarget,
)


class FakeClusterClient:
    """
    In-memory ClusterClient recording every write.

    With ``auto_ready`` the fake behaves like a healthy cluster: a created
    ServiceMeshMember reports Ready and every applied Deployment gets a ready pod.
    """

    def __init__(self, auto_ready: bool = True, mesh_installed: bool = True):
        self.objects: Dict[Tuple[str, str, Optional[str], str], Dict[str, Any]] = {}
        self.operations: List[Tuple[str, str]] = []
        self.fail_on: Set[Tuple[str, str]] = set()
        self.auto_ready = auto_ready
        self._resource_version = 0
        if mesh_installed:
            self.seed({
                'apiVersion': KubernetesConstants.APIEXTENSIONS_API_VERSION,
                'kind': 'CustomResourceDefinition',
                'metadata': {'name': ServiceMeshConstants.CONTROL_PLANE_CRD},
            })

    @staticmethod
    def key(api_version: str, kind: str, name: str, namespace: Optional[str] = None):
        return (api_version, kind, namespace, name)

    def _key_of(self, obj: Dict[str, Any]):
        metadata = obj.get('metadata', {})
        return self.key(obj['apiVersion'], obj['kind'], metadata['name'], metadata.get('namespace'))

    def seed(self, obj: Dict[str, Any]) -> None:
        """Store an object without recording an operation"""
        self.objects[self._key_of(obj)] = copy.deepcopy(obj)

    def _check_failure(self, action: str, kind: str) -> None:
        if (action, kind) in self.fail_on:
            raise ClusterClientError(f"injected failure on {action} {kind}", status=500)

    def _bump(self, obj: Dict[str, Any]) -> None:
        self._resource_version += 1
        obj.setdefault('metadata', {})['resourceVersion'] = str(self._resource_version)

    def get(self, ctx: ReconcileContext, api_version: str, kind: str, name: str,
            namespace: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ctx.check()
        self._check_failure('get', kind)
        obj = self.objects.get(self.key(api_version, kind, name, namespace))
        return copy.deepcopy(obj) if obj is not None else None

    def list(self, ctx: ReconcileContext, api_version: str, kind: str, namespace: Optional[str] = None,
             label_selector: Optional[str] = None) -> List[Dict[str, Any]]:
        ctx.check()
        return [copy.deepcopy(obj) for (av, k, ns, _), obj in self.objects.items()
                if av == api_version and k == kind and (namespace is None or ns == namespace)]

    def create(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ctx.check()
        self._check_failure('create', obj['kind'])
        key = self._key_of(obj)
        if key in self.objects:
            raise ClusterClientError(f"{obj['kind']} {key[3]} already exists", status=409)
        stored = copy.deepcopy(obj)
        self._bump(stored)
        self.objects[key] = stored
        self.operations.append(('create', self.describe(obj)))
        self._simulate_controllers(stored)
        return copy.deepcopy(stored)

    def update(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ctx.check()
        self._check_failure('update', obj['kind'])
        key = self._key_of(obj)
        if key not in self.objects:
            raise ClusterClientError(f"{obj['kind']} {key[3]} not found", status=404)
        stored = copy.deepcopy(obj)
        if 'status' in self.objects[key] and 'status' not in stored:
            stored['status'] = copy.deepcopy(self.objects[key]['status'])
        self._bump(stored)
        self.objects[key] = stored
        self.operations.append(('update', self.describe(obj)))
        self._simulate_controllers(stored)
        return copy.deepcopy(stored)

    def apply(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        metadata = obj.get('metadata', {})
        existing = self.get(ctx, obj['apiVersion'], obj['kind'], metadata['name'], metadata.get('namespace'))
        if existing is None:
            return self.create(ctx, obj)
        return self.update(ctx, merge_for_update(existing, obj))

    def _simulate_controllers(self, obj: Dict[str, Any]) -> None:
        if not self.auto_ready:
            return
        namespace = obj['metadata'].get('namespace')
        if obj['kind'] == ServiceMeshConstants.MEMBER_KIND:
            obj['status'] = {'conditions': [{'type': 'Ready', 'status': 'True'}]}
        elif obj['kind'] == 'Deployment':
            self.seed(ready_pod(f"{obj['metadata']['name']}-pod", namespace))

    @staticmethod
    def describe(obj: Dict[str, Any]) -> str:
        metadata = obj.get('metadata', {})
        namespace = metadata.get('namespace')
        return f"{obj['kind']}/{namespace}/{metadata['name']}" if namespace else f"{obj['kind']}/{metadata['name']}"

    def find(self, kind: str, name: str, namespace: Optional[str] = None) -> Optional[Dict[str, Any]]:
        for (_, k, ns, n), obj in self.objects.items():
            if k == kind and n == name and ns == namespace:
                return obj
        return None

    def kinds_written(self) -> List[str]:
        return [description.split('/')[0] for _, description in self.operations]


def ready_pod(name: str, namespace: str, ready: bool = True) -> Dict[str, Any]:
    return {
        'apiVersion': 'v1',
        'kind': 'Pod',
        'metadata': {'name': name, 'namespace': namespace},
        'status': {
            'phase': 'Running',
            'conditions': [{'type': 'Ready', 'status': 'True' if ready else 'False'}],
        },
    }


def service_target(name: str, namespace: str = "models") -> RoutingTarget:
    return RoutingTarget(
        resource_reference=ResourceReference(
            version="v1", kind="Service", resources="services", name=name, namespace=namespace
        )
    )


@pytest.fixture
def ctx() -> ReconcileContext:
    return ReconcileContext.background()


@pytest.fixture
def cluster() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture
def routing_spec() -> RoutingSpec:
    return RoutingSpec(
        ingress_gateway=IngressGatewaySpec(
            name="odh-router-ingress",
            namespace="opendatahub-routing",
            label_selector_key="istio",
            label_selector_value="rhoai-gateway",
        ),
        control_plane=ControlPlaneSpec(name="data-science-smcp", namespace="istio-system"),
    )


@pytest.fixture
def owner() -> Dict[str, Any]:
    return {
        'apiVersion': 'dscinitialization.opendatahub.io/v1',
        'kind': 'DSCInitialization',
        'metadata': {'name': 'default-dsci', 'uid': '3f1c9a52-4d1b-4b7e-9a3e-7c2f0e1d5b6a'},
    }
