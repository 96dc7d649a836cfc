"""
Feature Definition

A feature is a named unit of cluster configuration: a set of manifest
templates, the data they are rendered with, an enablement predicate, the
checks that must hold before the manifests are applied and the checks that
must hold after.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, TYPE_CHECKING

from ..core.context import ReconcileContext
from ..data_models import OwnerReference, Source
from .manifest import TemplateManifest

if TYPE_CHECKING:
    from ..cluster.client import ClusterClient

# A check answers "may the feature proceed?". Returning False and raising are
# both blocking; the raised error only changes the reported reason.
Check = Callable[[ReconcileContext, 'Feature'], bool]


class FeatureState(str, Enum):
    """Lifecycle of a feature within one pipeline run"""
    PENDING = "pending"
    SKIPPED = "skipped"
    EVALUATING_PRECONDITIONS = "evaluating-preconditions"
    RENDERING = "rendering"
    EVALUATING_POSTCONDITIONS = "evaluating-postconditions"
    APPLIED = "applied"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (FeatureState.SKIPPED, FeatureState.APPLIED, FeatureState.FAILED)


def always_enabled(_ctx: ReconcileContext, _feature: 'Feature') -> bool:
    return True


def check_name(check: Callable) -> str:
    """Human readable name of a check for error messages"""
    return getattr(check, 'check_name', None) or getattr(check, '__name__', None) or repr(check)


@dataclass
class Feature:
    """
    Declarative unit of cluster configuration.

    The cluster client, target namespace and source are attached by the
    FeaturesHandler when the feature is registered, so checks can reach the
    cluster through ``feature.client``.
    """
    name: str
    manifests: List[TemplateManifest] = field(default_factory=list)
    data: Any = None
    enabled: Check = always_enabled
    preconditions: List[Check] = field(default_factory=list)
    postconditions: List[Check] = field(default_factory=list)
    owner: Optional[OwnerReference] = None
    managed: bool = False
    state: FeatureState = FeatureState.PENDING

    client: Optional['ClusterClient'] = field(default=None, repr=False)
    namespace: Optional[str] = None
    source: Optional[Source] = None

    def __str__(self) -> str:
        return f"Feature({self.name}, state={self.state})"


class FeatureBuilder:
    """Fluent builder for features, started with define()"""

    def __init__(self, name: str):
        self._feature = Feature(name=name)

    def manifests(self, *sources: Sequence[TemplateManifest]) -> 'FeatureBuilder':
        """Add manifest templates; accepts lists as returned by ManifestLocation.include()"""
        for source in sources:
            if isinstance(source, TemplateManifest):
                self._feature.manifests.append(source)
            else:
                self._feature.manifests.extend(source)
        return self

    def with_data(self, data: Any) -> 'FeatureBuilder':
        self._feature.data = data
        return self

    def enabled_when(self, predicate: Check) -> 'FeatureBuilder':
        self._feature.enabled = predicate
        return self

    def pre_conditions(self, *checks: Check) -> 'FeatureBuilder':
        self._feature.preconditions.extend(checks)
        return self

    def post_conditions(self, *checks: Check) -> 'FeatureBuilder':
        self._feature.postconditions.extend(checks)
        return self

    def owned_by(self, owner: OwnerReference) -> 'FeatureBuilder':
        self._feature.owner = owner
        return self

    def managed(self) -> 'FeatureBuilder':
        """Mark applied objects as managed so they can be tracked and pruned"""
        self._feature.managed = True
        return self

    def build(self) -> Feature:
        return self._feature


def define(name: str) -> FeatureBuilder:
    """Start defining a feature with the given name"""
    return FeatureBuilder(name)
