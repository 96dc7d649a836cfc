"""
Cluster Client

Narrow get/create/update contract over the cluster API and its default
implementation on top of the OpenShift dynamic client, which can address any
typed object by apiVersion and kind.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.dynamic.exceptions import NotFoundError, ResourceNotFoundError
from openshift.dynamic import DynamicClient

from ..core.context import ReconcileContext
from ..core.exceptions import ClusterClientError
from ..core.utils import object_id

logger = logging.getLogger(__name__)

# Raised below the dynamic client when the API server cannot be reached
TRANSPORT_ERRORS = (ApiException, urllib3.exceptions.HTTPError)


class ClusterClient(Protocol):
    """Operations the platform capabilities need from the cluster API"""

    def get(self, ctx: ReconcileContext, api_version: str, kind: str, name: str,
            namespace: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Return the object or None when it does not exist"""
        ...

    def list(self, ctx: ReconcileContext, api_version: str, kind: str, namespace: Optional[str] = None,
             label_selector: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    def create(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def apply(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Create the object or replace the existing one (upsert)"""
        ...


def merge_for_update(existing: Dict[str, Any], desired: Dict[str, Any]) -> Dict[str, Any]:
    """
    Prepare a desired object for replacing an existing one.

    Carries over the server-assigned metadata (resourceVersion, uid) and keeps
    labels and annotations set by others, with desired values winning.

    Args:
        existing: Object as currently stored in the cluster
        desired: Object as rendered by the caller

    Returns:
        New dict suitable for an update call
    """
    merged = dict(desired)
    metadata = dict(desired.get('metadata', {}))
    existing_metadata = existing.get('metadata', {})

    for key in ('resourceVersion', 'uid'):
        if key in existing_metadata:
            metadata[key] = existing_metadata[key]

    for key in ('labels', 'annotations'):
        combined = dict(existing_metadata.get(key) or {})
        combined.update(metadata.get(key) or {})
        if combined:
            metadata[key] = combined

    merged['metadata'] = metadata
    return merged


class DynamicClusterClient:
    """ClusterClient backed by openshift.dynamic.DynamicClient"""

    def __init__(self, api_client: client.ApiClient, dynamic_client: Optional[DynamicClient] = None):
        """
        Initialize dynamic cluster client

        Args:
            api_client: Configured Kubernetes ApiClient
            dynamic_client: Pre-built DynamicClient (discovery runs when omitted)
        """
        self.api_client = api_client
        self.dynamic = dynamic_client or DynamicClient(api_client)

    def _resource(self, api_version: str, kind: str):
        try:
            return self.dynamic.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise ClusterClientError(f"Resource type {kind} ({api_version}) is not served by the cluster: {e}",
                                     status=404) from e
        except TRANSPORT_ERRORS as e:
            self._raise("discover", f"{kind} ({api_version})", e)

    @staticmethod
    def _raise(action: str, target: str, error: Exception) -> None:
        # Transport failures carry no HTTP status
        status = getattr(error, 'status', None) if isinstance(error, ApiException) else None
        raise ClusterClientError(f"Failed to {action} {target}: {error}", status=status) from error

    def get(self, ctx: ReconcileContext, api_version: str, kind: str, name: str,
            namespace: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ctx.check()
        resource = self._resource(api_version, kind)
        try:
            return resource.get(name=name, namespace=namespace).to_dict()
        except NotFoundError:
            return None
        except TRANSPORT_ERRORS as e:
            self._raise("get", f"{kind} {namespace or ''}/{name}", e)

    def list(self, ctx: ReconcileContext, api_version: str, kind: str, namespace: Optional[str] = None,
             label_selector: Optional[str] = None) -> List[Dict[str, Any]]:
        ctx.check()
        resource = self._resource(api_version, kind)
        try:
            result = resource.get(namespace=namespace, label_selector=label_selector)
        except NotFoundError:
            return []
        except TRANSPORT_ERRORS as e:
            self._raise("list", f"{kind} in {namespace or 'all namespaces'}", e)
        return result.to_dict().get('items', [])

    def create(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ctx.check()
        resource = self._resource(obj['apiVersion'], obj['kind'])
        namespace = obj.get('metadata', {}).get('namespace')
        try:
            created = resource.create(body=obj, namespace=namespace).to_dict()
        except TRANSPORT_ERRORS as e:
            self._raise("create", object_id(obj), e)
        logger.debug(f"Created {object_id(obj)}")
        return created

    def update(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        ctx.check()
        resource = self._resource(obj['apiVersion'], obj['kind'])
        namespace = obj.get('metadata', {}).get('namespace')
        try:
            updated = resource.replace(body=obj, namespace=namespace).to_dict()
        except TRANSPORT_ERRORS as e:
            self._raise("update", object_id(obj), e)
        logger.debug(f"Updated {object_id(obj)}")
        return updated

    def apply(self, ctx: ReconcileContext, obj: Dict[str, Any]) -> Dict[str, Any]:
        metadata = obj.get('metadata', {})
        existing = self.get(ctx, obj['apiVersion'], obj['kind'], metadata.get('name'), metadata.get('namespace'))
        if existing is None:
            return self.create(ctx, obj)
        return self.update(ctx, merge_for_update(existing, obj))
