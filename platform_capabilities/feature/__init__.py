"""
Feature Libraries

Declarative features and the pipeline applying them.
"""

from .conditions import create_namespace_if_not_exists, wait_for, wait_for_pods_to_be_ready
from .feature import Check, Feature, FeatureBuilder, FeatureState, define
from .handler import FeatureResult, FeaturesHandler, FeaturesProvider, FeaturesRegistry
from .manifest import ManifestLocation, ManifestRenderer, TemplateManifest, TemplateRenderer
from .servicemesh import ensure_service_mesh_operator_installed, wait_for_service_mesh_member

__all__ = [
    'Check',
    'Feature',
    'FeatureBuilder',
    'FeatureState',
    'define',
    'FeatureResult',
    'FeaturesHandler',
    'FeaturesProvider',
    'FeaturesRegistry',
    'ManifestLocation',
    'ManifestRenderer',
    'TemplateManifest',
    'TemplateRenderer',
    'create_namespace_if_not_exists',
    'wait_for',
    'wait_for_pods_to_be_ready',
    'ensure_service_mesh_operator_installed',
    'wait_for_service_mesh_member',
]
