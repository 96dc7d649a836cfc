"""
Platform RBAC

Synthesizes the ClusterRole and ClusterRoleBinding that allow the platform
controller to watch the resources components registered with a capability.
The rule set always reflects the current references only, so stale rules from
earlier registrations are dropped on the next reconciliation.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..cluster.client import ClusterClient, merge_for_update
from ..cluster.owner import MetaOption, apply_meta_options
from ..core.constants import KubernetesConstants, PlatformConstants
from ..core.context import ReconcileContext
from ..core.exceptions import ClusterClientError, RBACSynthesisError, ReconciliationCancelledError
from ..data_models import ResourceReference

logger = logging.getLogger(__name__)


def build_rules(references: Sequence[ResourceReference]) -> List[Dict[str, List[str]]]:
    """
    Build read/watch rules for resource references.

    One rule per reference, in reference order; identical rules are collapsed
    keeping the first occurrence.

    Rules end up in a ClusterRole, so a reference's namespace is not part of
    its rule: a named reference grants access to objects of that name in every
    namespace.

    Args:
        references: Resources the platform needs to watch

    Returns:
        List of PolicyRule dicts
    """
    rules = []
    for reference in references:
        rule = reference.to_rule()
        if rule not in rules:
            rules.append(rule)
    return rules


def build_cluster_role(role_name: str, references: Sequence[ResourceReference]) -> Dict[str, Any]:
    return {
        'apiVersion': KubernetesConstants.RBAC_API_VERSION,
        'kind': 'ClusterRole',
        'metadata': {
            'name': role_name,
            'labels': {KubernetesConstants.MANAGED_BY_LABEL: KubernetesConstants.MANAGED_BY_VALUE},
        },
        'rules': build_rules(references),
    }


def build_cluster_role_binding(role_name: str, service_account: str, namespace: str) -> Dict[str, Any]:
    return {
        'apiVersion': KubernetesConstants.RBAC_API_VERSION,
        'kind': 'ClusterRoleBinding',
        'metadata': {
            'name': role_name,
            'labels': {KubernetesConstants.MANAGED_BY_LABEL: KubernetesConstants.MANAGED_BY_VALUE},
        },
        'roleRef': {
            'apiGroup': KubernetesConstants.RBAC_API_GROUP,
            'kind': 'ClusterRole',
            'name': role_name,
        },
        'subjects': [{
            'kind': 'ServiceAccount',
            'name': service_account,
            'namespace': namespace,
        }],
    }


def _upsert(ctx: ReconcileContext, cli: ClusterClient, desired: Dict[str, Any],
            replaced_fields: Sequence[str]) -> Dict[str, Any]:
    kind = desired['kind']
    name = desired['metadata']['name']
    try:
        existing = cli.get(ctx, desired['apiVersion'], kind, name)
        if existing is None:
            logger.info(f"Creating {kind} {name}")
            return cli.create(ctx, desired)

        updated = merge_for_update(existing, desired)
        # Carry over everything except the fields this function owns
        for key, value in existing.items():
            if key not in updated and key not in replaced_fields:
                updated[key] = value
        logger.debug(f"Updating {kind} {name}")
        return cli.update(ctx, updated)
    except ReconciliationCancelledError:
        raise
    except ClusterClientError as e:
        raise RBACSynthesisError(f"Failed to create or update {kind} {name}: {e}",
                                 object_kind=kind, object_name=name) from e


def create_or_update_platform_rbac(ctx: ReconcileContext, cli: ClusterClient, role_name: str,
                                   references: Sequence[ResourceReference], *meta_options: MetaOption,
                                   service_account: str = PlatformConstants.DEFAULT_SERVICE_ACCOUNT,
                                   service_account_namespace: Optional[str] = None) -> None:
    """
    Create or update the watcher ClusterRole and its ClusterRoleBinding.

    The role's rules are replaced wholesale to match ``references`` exactly.
    The role is written before the binding; if the binding fails the role
    stays updated and the next reconciliation converges.

    Args:
        ctx: Reconcile context
        cli: Cluster client
        role_name: Name of both the ClusterRole and the ClusterRoleBinding
        references: Resources to grant get/list/watch on
        meta_options: Owner reference and labels applied to both objects
        service_account: Platform controller service account bound to the role
        service_account_namespace: Namespace of that service account

    Raises:
        RBACSynthesisError: If creating or updating either object fails
    """
    namespace = service_account_namespace or PlatformConstants.DEFAULT_PLATFORM_NAMESPACE

    role = apply_meta_options(build_cluster_role(role_name, references), *meta_options)
    _upsert(ctx, cli, role, replaced_fields=('rules',))

    binding = apply_meta_options(build_cluster_role_binding(role_name, service_account, namespace), *meta_options)
    _upsert(ctx, cli, binding, replaced_fields=('subjects', 'roleRef'))

    logger.info(f"Platform RBAC '{role_name}' grants watch on {len(role['rules'])} resource rule(s)")
