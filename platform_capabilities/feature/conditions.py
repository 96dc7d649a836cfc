"""
Conditions

Generic preconditions and postconditions for features. Every check takes the
reconcile context and the feature, reaches the cluster through
``feature.client`` and returns whether the feature may proceed.
"""

import logging
from typing import Any, Callable, Dict, List

from ..core.constants import ErrorMessages, TimeoutConstants
from ..core.context import ReconcileContext
from ..core.exceptions import ClusterClientError, ReadinessTimeoutError
from .feature import Check, Feature

logger = logging.getLogger(__name__)


def named(name: str) -> Callable[[Check], Check]:
    """Attach a readable name to a check closure, reported in pipeline errors"""
    def decorate(check: Check) -> Check:
        check.check_name = name
        return check
    return decorate


def wait_for(ctx: ReconcileContext, probe: Callable[[], bool], timeout: float = TimeoutConstants.DEFAULT_TIMEOUT,
             interval: float = TimeoutConstants.DEFAULT_INTERVAL, description: str = "condition") -> bool:
    """
    Poll a probe until it succeeds or the timeout elapses.

    Transient cluster errors raised by the probe are logged and polling
    continues; cancellation of the context stops polling immediately.

    Args:
        ctx: Reconcile context
        probe: Callable returning True once the awaited state is reached
        timeout: Maximum seconds to wait
        interval: Seconds between probes
        description: What is awaited, for log messages

    Returns:
        bool: True if the probe succeeded, False on timeout

    Raises:
        ReconciliationCancelledError: If the context is cancelled while waiting
    """
    wait_ctx = ctx.child(timeout)
    attempt = 0
    while True:
        attempt += 1
        try:
            if probe():
                logger.debug(f"{description} reached after {attempt} attempt(s)")
                return True
        except ClusterClientError as e:
            logger.debug(f"Probe for {description} failed (attempt {attempt}): {e}")

        remaining = wait_ctx.remaining()
        if remaining <= 0:
            # The parent deadline may be the one that passed
            ctx.check()
            logger.warning(f"Timed out after {timeout}s waiting for {description}")
            return False
        ctx.sleep(min(interval, remaining))


def wait_until_ready(ctx: ReconcileContext, probe: Callable[[], bool], timeout: float, interval: float,
                     description: str) -> bool:
    """
    Like wait_for, but a timeout is an error naming what was awaited and for how long

    Raises:
        ReadinessTimeoutError: If the probe did not succeed within the timeout
    """
    if not wait_for(ctx, probe, timeout, interval, description):
        raise ReadinessTimeoutError(ErrorMessages.READINESS_TIMEOUT.format(timeout=timeout, description=description),
                                    timeout=timeout)
    return True


def create_namespace_if_not_exists(namespace: str) -> Check:
    """Precondition creating the namespace when it does not exist yet"""
    @named(f"create-namespace-if-not-exists({namespace})")
    def check(ctx: ReconcileContext, feature: Feature) -> bool:
        if feature.client.get(ctx, "v1", "Namespace", namespace) is not None:
            return True

        logger.info(f"Creating namespace {namespace}")
        try:
            feature.client.create(ctx, {
                'apiVersion': 'v1',
                'kind': 'Namespace',
                'metadata': {'name': namespace},
            })
        except ClusterClientError as e:
            # Created concurrently by someone else
            if e.status != 409:
                raise
        return True
    return check


def is_pod_ready(pod: Dict[str, Any]) -> bool:
    """A pod is ready when its Ready condition is True"""
    for condition in pod.get('status', {}).get('conditions', []) or []:
        if condition.get('type') == 'Ready':
            return condition.get('status') == 'True'
    return False


def wait_for_pods_to_be_ready(namespace: str, timeout: float = TimeoutConstants.DEFAULT_TIMEOUT,
                              interval: float = TimeoutConstants.DEFAULT_INTERVAL) -> Check:
    """
    Postcondition waiting until the namespace has pods and all of them are ready

    Raises:
        ReadinessTimeoutError: If the pods are not ready within the timeout
    """
    @named(f"wait-for-pods-to-be-ready({namespace})")
    def check(ctx: ReconcileContext, feature: Feature) -> bool:
        def probe() -> bool:
            pods: List[Dict[str, Any]] = feature.client.list(ctx, "v1", "Pod", namespace=namespace)
            # Completed pods never become ready again
            pods = [pod for pod in pods if pod.get('status', {}).get('phase') != 'Succeeded']
            if not pods:
                logger.debug(f"No pods in {namespace} yet")
                return False
            ready = sum(1 for pod in pods if is_pod_ready(pod))
            logger.debug(f"{ready}/{len(pods)} pod(s) ready in {namespace}")
            return ready == len(pods)

        return wait_until_ready(ctx, probe, timeout, interval, f"pods in {namespace} to be ready")
    return check
