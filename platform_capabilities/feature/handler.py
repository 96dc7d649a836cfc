"""
Features Handler

Applies an ordered list of features against the cluster. Each feature moves
through an explicit state machine:

    PENDING -> SKIPPED                                (predicate false)
    PENDING -> EVALUATING_PRECONDITIONS -> RENDERING
            -> EVALUATING_POSTCONDITIONS -> APPLIED
    any non-terminal state -> FAILED

The handler stops at the first failed feature and raises its error; later
features are never evaluated.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..cluster.client import ClusterClient
from ..cluster.owner import apply_meta_options, with_annotations, with_labels, with_owner_reference
from ..core.constants import KubernetesConstants, PlatformConstants
from ..core.context import ReconcileContext
from ..core.exceptions import (
    ConfigurationError,
    FeatureStageError,
    ManifestApplicationError,
    PostconditionError,
    PreconditionError,
    ReconciliationCancelledError,
)
from ..core.utils import object_id
from ..data_models import Source
from .feature import Check, Feature, FeatureBuilder, FeatureState, check_name
from .manifest import ManifestRenderer, TemplateRenderer, template_variables

logger = logging.getLogger(__name__)


@dataclass
class FeatureResult:
    """Outcome of one feature in a pipeline run"""
    name: str
    state: FeatureState
    applied_objects: List[str] = field(default_factory=list)
    error: Optional[FeatureStageError] = None


class FeaturesRegistry:
    """Collects features for a handler, rejecting duplicate names"""

    def __init__(self):
        self._features: List[Feature] = []

    def add(self, *features: Union[Feature, FeatureBuilder]) -> None:
        """
        Register features in order

        Raises:
            ConfigurationError: If a feature name is already registered
        """
        for item in features:
            feature = item.build() if isinstance(item, FeatureBuilder) else item
            if any(existing.name == feature.name for existing in self._features):
                raise ConfigurationError(f"Feature '{feature.name}' is defined more than once")
            self._features.append(feature)

    @property
    def features(self) -> List[Feature]:
        return list(self._features)


FeaturesProvider = Callable[[FeaturesRegistry], None]


class FeaturesHandler:
    """Ordered, fail-fast application of features within a namespace"""

    def __init__(self, namespace: str, source: Source, cli: ClusterClient, *providers: FeaturesProvider,
                 renderer: Optional[ManifestRenderer] = None):
        """
        Initialize features handler

        Args:
            namespace: Namespace the features are scoped to
            source: Origin of the features, stamped on applied objects
            cli: Cluster client used to apply manifests and handed to checks
            providers: Callables registering features, evaluated in order
            renderer: Manifest renderer (defaults to TemplateRenderer)

        Raises:
            ConfigurationError: If providers register duplicate feature names
        """
        self.namespace = namespace
        self.source = source
        self.cli = cli
        self.renderer = renderer or TemplateRenderer()
        self.results: List[FeatureResult] = []

        registry = FeaturesRegistry()
        for provider in providers:
            provider(registry)

        self.features = registry.features
        for feature in self.features:
            feature.client = cli
            feature.namespace = namespace
            feature.source = source

    def apply(self, ctx: ReconcileContext) -> List[FeatureResult]:
        """
        Apply all features in declaration order

        Args:
            ctx: Reconcile context observed by every cluster call and check

        Returns:
            List of FeatureResult, one per feature

        Raises:
            PreconditionError: If a feature's predicate or precondition blocked it
            ManifestApplicationError: If rendering or applying manifests failed
            PostconditionError: If applied objects did not become ready
            ReconciliationCancelledError: If the context was cancelled
        """
        self.results = []
        for feature in self.features:
            result = self._apply_feature(ctx, feature)
            self.results.append(result)
            if result.error is not None:
                raise result.error

        applied = sum(1 for result in self.results if result.state == FeatureState.APPLIED)
        logger.info(f"Applied {applied}/{len(self.results)} feature(s) from {self.source.type} '{self.source.name}'")
        return list(self.results)

    def _apply_feature(self, ctx: ReconcileContext, feature: Feature) -> FeatureResult:
        feature.state = FeatureState.PENDING
        result = FeatureResult(name=feature.name, state=feature.state)
        ctx.check()

        try:
            enabled = feature.enabled(ctx, feature)
        except ReconciliationCancelledError:
            raise
        except Exception as e:
            return self._fail(feature, result, PreconditionError(feature.name, str(e), check_name="enabled-when"), e)

        if not enabled:
            logger.debug(f"Feature '{feature.name}' is not enabled, skipping")
            feature.state = result.state = FeatureState.SKIPPED
            return result

        feature.state = FeatureState.EVALUATING_PRECONDITIONS
        for check in feature.preconditions:
            error = self._run_check(ctx, feature, check, PreconditionError)
            if error is not None:
                return self._fail(feature, result, error, error.__cause__)

        feature.state = FeatureState.RENDERING
        try:
            result.applied_objects = self._apply_manifests(ctx, feature)
        except ReconciliationCancelledError:
            raise
        except Exception as e:
            return self._fail(feature, result, ManifestApplicationError(feature.name, str(e)), e)

        feature.state = FeatureState.EVALUATING_POSTCONDITIONS
        for check in feature.postconditions:
            error = self._run_check(ctx, feature, check, PostconditionError)
            if error is not None:
                return self._fail(feature, result, error, error.__cause__)

        feature.state = result.state = FeatureState.APPLIED
        logger.info(f"Feature '{feature.name}' applied ({len(result.applied_objects)} object(s))")
        return result

    @staticmethod
    def _run_check(ctx: ReconcileContext, feature: Feature, check: Check, error_class) -> Optional[FeatureStageError]:
        name = check_name(check)
        try:
            satisfied = check(ctx, feature)
        except ReconciliationCancelledError:
            raise
        except Exception as e:
            error = error_class(feature.name, str(e), check_name=name)
            error.__cause__ = e
            return error

        if not satisfied:
            return error_class(feature.name, "check not satisfied", check_name=name)
        return None

    @staticmethod
    def _fail(feature: Feature, result: FeatureResult, error: FeatureStageError,
              cause: Optional[BaseException]) -> FeatureResult:
        if cause is not None:
            error.__cause__ = cause
        logger.error(f"{error}")
        feature.state = result.state = FeatureState.FAILED
        result.error = error
        return result

    def _apply_manifests(self, ctx: ReconcileContext, feature: Feature) -> List[str]:
        variables = template_variables(feature.data, {
            'feature_name': feature.name,
            'source_name': self.source.name,
            'namespace': self.namespace,
        })
        objects = self.renderer.render(feature.manifests, variables)

        applied = []
        for obj in objects:
            self._decorate(feature, obj)
            self.cli.apply(ctx, obj)
            applied.append(object_id(obj))
            logger.debug(f"Feature '{feature.name}' applied {object_id(obj)}")
        return applied

    def _decorate(self, feature: Feature, obj: Dict[str, Any]) -> None:
        metadata = obj.setdefault('metadata', {})
        if obj.get('kind') not in KubernetesConstants.CLUSTER_SCOPED_KINDS and not metadata.get('namespace'):
            metadata['namespace'] = self.namespace

        annotations = {
            PlatformConstants.SOURCE_TYPE_ANNOTATION: str(self.source.type),
            PlatformConstants.FEATURE_ANNOTATION: feature.name,
        }
        if feature.managed:
            annotations[PlatformConstants.MANAGED_ANNOTATION] = "true"

        options = [
            with_labels({
                KubernetesConstants.MANAGED_BY_LABEL: KubernetesConstants.MANAGED_BY_VALUE,
                PlatformConstants.PART_OF_LABEL: self.source.name,
            }),
            with_annotations(annotations),
        ]
        if feature.owner is not None:
            options.append(with_owner_reference(feature.owner))
        apply_meta_options(obj, *options)
