"""
Capability Protocols

Interfaces capabilities expose to consumer components and to the platform.
"""

from typing import Any, Protocol

from ..cluster.client import ClusterClient
from ..core.context import ReconcileContext
from ..data_models import RoutingTarget


class Routing(Protocol):
    """Component-facing interface allowing components to enroll into platform routing"""

    def is_available(self) -> bool:
        ...

    def expose(self, *targets: RoutingTarget) -> None:
        """Define which resources should be watched and routed for a component"""
        ...


class Reconciler(Protocol):
    """Platform-facing interface of a capability"""

    def is_required(self) -> bool:
        ...

    def reconcile(self, ctx: ReconcileContext, cli: ClusterClient, owner: Any) -> None:
        ...
