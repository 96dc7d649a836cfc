"""
Exceptions

Error taxonomy for the platform capabilities library. Every error raised by the
library derives from CapabilityError and states whether re-running the
reconciliation can be expected to help.
"""

from typing import Optional


class CapabilityError(Exception):
    """Base exception for all platform capability errors"""

    retryable = True


class ConfigurationError(CapabilityError):
    """Invalid owner, static routing configuration or configuration file"""

    retryable = False


class AuthenticationError(ConfigurationError):
    """Cluster connection could not be configured"""


class ClusterClientError(CapabilityError):
    """A call against the cluster API failed"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ReconciliationCancelledError(CapabilityError):
    """The reconcile context was cancelled or its deadline passed"""


class ReadinessTimeoutError(CapabilityError):
    """An awaited cluster state was not reached before the check's timeout"""

    def __init__(self, message: str, timeout: float):
        super().__init__(message)
        self.timeout = timeout


class RBACSynthesisError(CapabilityError):
    """Creating or updating the watcher role or its binding failed"""

    def __init__(self, message: str, object_kind: Optional[str] = None, object_name: Optional[str] = None):
        super().__init__(message)
        self.object_kind = object_kind
        self.object_name = object_name


class FeatureStageError(CapabilityError):
    """Base class for failures of a single feature in the pipeline"""

    stage = "unknown"

    def __init__(self, feature_name: str, reason: str, check_name: Optional[str] = None):
        self.feature_name = feature_name
        self.check_name = check_name
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        if self.check_name:
            return f"feature '{self.feature_name}' failed at {self.stage} '{self.check_name}': {self.reason}"
        return f"feature '{self.feature_name}' failed at {self.stage}: {self.reason}"


class PreconditionError(FeatureStageError):
    """A precondition (or the enablement predicate) blocked the feature"""

    stage = "precondition"


class ManifestApplicationError(FeatureStageError):
    """Rendering or applying the feature manifests failed"""

    stage = "manifest application"


class ManifestRenderError(CapabilityError):
    """A manifest template could not be read, substituted or parsed"""


class PostconditionError(FeatureStageError):
    """Manifests were applied but the feature did not become ready"""

    stage = "postcondition"


class FeatureApplicationError(CapabilityError):
    """Raised by a capability when its feature pipeline fails"""

    def __init__(self, message: str, cause: FeatureStageError):
        super().__init__(message)
        self.feature_name = cause.feature_name
        self.stage = cause.stage
        self.retryable = cause.retryable
