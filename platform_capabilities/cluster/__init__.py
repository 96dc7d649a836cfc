"""
Cluster Libraries

Cluster API access and object ownership.
"""

from .client import ClusterClient, DynamicClusterClient, merge_for_update
from .owner import (
    MetaOption,
    apply_meta_options,
    as_owner_ref,
    with_annotations,
    with_labels,
    with_owner_reference,
)

__all__ = [
    'ClusterClient',
    'DynamicClusterClient',
    'merge_for_update',
    'MetaOption',
    'apply_meta_options',
    'as_owner_ref',
    'with_annotations',
    'with_labels',
    'with_owner_reference',
]
