"""
Tests for generic and service mesh feature conditions
"""

from unittest.mock import Mock

import pytest

from conftest import FakeClusterClient, ready_pod
from platform_capabilities.core.context import ReconcileContext
from platform_capabilities.core.exceptions import (
    CapabilityError,
    ClusterClientError,
    ReadinessTimeoutError,
    ReconciliationCancelledError,
)
from platform_capabilities.feature.conditions import (
    create_namespace_if_not_exists,
    is_pod_ready,
    wait_for,
    wait_for_pods_to_be_ready,
    wait_until_ready,
)
from platform_capabilities.feature.feature import Feature, check_name
from platform_capabilities.feature.servicemesh import (
    ensure_service_mesh_operator_installed,
    wait_for_service_mesh_member,
)


def feature_on(cli):
    return Feature(name="test-feature", client=cli)


def member(namespace, ready):
    return {
        'apiVersion': "maistra.io/v1",
        'kind': "ServiceMeshMember",
        'metadata': {'name': "default", 'namespace': namespace},
        'status': {'conditions': [{'type': "Ready", 'status': "True" if ready else "False"}]},
    }


class TestWaitFor:
    """Test the shared polling helper"""

    def test_immediate_success(self, ctx):
        """Test a satisfied probe is called once"""
        probe = Mock(return_value=True)

        assert wait_for(ctx, probe, timeout=1, interval=0) is True
        probe.assert_called_once()

    def test_eventual_success(self, ctx):
        """Test polling continues until the probe succeeds"""
        probe = Mock(side_effect=[False, False, True])

        assert wait_for(ctx, probe, timeout=5, interval=0) is True
        assert probe.call_count == 3

    def test_timeout(self, ctx):
        """Test an unsatisfied probe times out with False"""
        probe = Mock(return_value=False)

        assert wait_for(ctx, probe, timeout=0.05, interval=0.01) is False
        assert probe.call_count >= 1

    def test_cluster_errors_keep_polling(self, ctx):
        """Test transient API errors are retried"""
        probe = Mock(side_effect=[ClusterClientError("connection reset", status=503), True])

        assert wait_for(ctx, probe, timeout=5, interval=0) is True

    def test_other_errors_propagate(self, ctx):
        """Test unexpected probe errors are not swallowed"""
        probe = Mock(side_effect=KeyError("status"))

        with pytest.raises(KeyError):
            wait_for(ctx, probe, timeout=5, interval=0)

    def test_cancelled_context(self):
        """Test cancellation stops polling"""
        ctx = ReconcileContext()
        probe = Mock(side_effect=lambda: ctx.cancel() or False)

        with pytest.raises(ReconciliationCancelledError):
            wait_for(ctx, probe, timeout=30, interval=10)
        probe.assert_called_once()

    def test_parent_deadline_stops_polling(self):
        """Test the reconcile deadline wins over a longer wait timeout"""
        ctx = ReconcileContext(timeout=0.05)
        probe = Mock(return_value=False)

        with pytest.raises(ReconciliationCancelledError, match="deadline"):
            wait_for(ctx, probe, timeout=30, interval=0.01)

    def test_wait_until_ready_timeout(self, ctx):
        """Test a timeout names the awaited state and the timeout"""
        with pytest.raises(ReadinessTimeoutError, match=r"timed out after 0.05s waiting for gateway pods") as exc_info:
            wait_until_ready(ctx, Mock(return_value=False), 0.05, 0.01, "gateway pods")

        assert exc_info.value.timeout == 0.05


class TestCreateNamespace:
    """Test the namespace creating precondition"""

    def test_creates_missing_namespace(self, ctx, cluster):
        """Test an absent namespace is created"""
        check = create_namespace_if_not_exists("gateway")

        assert check(ctx, feature_on(cluster)) is True
        assert cluster.operations == [('create', "Namespace/gateway")]

    def test_existing_namespace(self, ctx, cluster):
        """Test an existing namespace is left alone"""
        cluster.seed({'apiVersion': "v1", 'kind': "Namespace", 'metadata': {'name': "gateway"}})

        assert create_namespace_if_not_exists("gateway")(ctx, feature_on(cluster)) is True
        assert cluster.operations == []

    def test_concurrent_creation_tolerated(self, ctx):
        """Test a conflict from a concurrent creator counts as success"""
        cli = Mock()
        cli.get.return_value = None
        cli.create.side_effect = ClusterClientError("already exists", status=409)

        assert create_namespace_if_not_exists("gateway")(ctx, feature_on(cli)) is True

    def test_other_errors_raise(self, ctx):
        """Test forbidden namespace creation fails the check"""
        cli = Mock()
        cli.get.return_value = None
        cli.create.side_effect = ClusterClientError("forbidden", status=403)

        with pytest.raises(ClusterClientError):
            create_namespace_if_not_exists("gateway")(ctx, feature_on(cli))

    def test_check_name(self):
        """Test the check reports its namespace"""
        assert check_name(create_namespace_if_not_exists("gateway")) == "create-namespace-if-not-exists(gateway)"


class TestPodsReady:
    """Test the pod readiness postcondition"""

    def test_is_pod_ready(self):
        """Test the Ready condition decides"""
        assert is_pod_ready(ready_pod("p", "ns")) is True
        assert is_pod_ready(ready_pod("p", "ns", ready=False)) is False
        assert is_pod_ready({'status': {}}) is False

    def test_no_pods_is_not_ready(self, ctx, cluster):
        """Test an empty namespace does not satisfy the check"""
        check = wait_for_pods_to_be_ready("gateway", timeout=0, interval=0)

        with pytest.raises(ReadinessTimeoutError, match="pods in gateway to be ready"):
            check(ctx, feature_on(cluster))

    def test_all_pods_ready(self, ctx, cluster):
        """Test every pod ready satisfies the check"""
        cluster.seed(ready_pod("a", "gateway"))
        cluster.seed(ready_pod("b", "gateway"))
        cluster.seed(ready_pod("other", "elsewhere", ready=False))

        assert wait_for_pods_to_be_ready("gateway", timeout=0, interval=0)(ctx, feature_on(cluster)) is True

    def test_one_pod_not_ready(self, ctx, cluster):
        """Test a single unready pod fails the check"""
        cluster.seed(ready_pod("a", "gateway"))
        cluster.seed(ready_pod("b", "gateway", ready=False))

        with pytest.raises(ReadinessTimeoutError):
            wait_for_pods_to_be_ready("gateway", timeout=0, interval=0)(ctx, feature_on(cluster))

    def test_succeeded_pods_ignored(self, ctx, cluster):
        """Test completed job pods do not block readiness"""
        completed = ready_pod("job", "gateway", ready=False)
        completed['status']['phase'] = "Succeeded"
        cluster.seed(completed)
        cluster.seed(ready_pod("a", "gateway"))

        assert wait_for_pods_to_be_ready("gateway", timeout=0, interval=0)(ctx, feature_on(cluster)) is True


class TestServiceMeshChecks:
    """Test service mesh specific conditions"""

    def test_operator_installed(self, ctx, cluster):
        """Test the control plane CRD satisfies the precondition"""
        assert ensure_service_mesh_operator_installed(ctx, feature_on(cluster)) is True

    def test_operator_missing(self, ctx):
        """Test a missing CRD raises with installation guidance"""
        cluster = FakeClusterClient(mesh_installed=False)

        with pytest.raises(CapabilityError, match="servicemeshcontrolplanes.maistra.io"):
            ensure_service_mesh_operator_installed(ctx, feature_on(cluster))

    def test_member_ready(self, ctx, cluster):
        """Test a Ready member satisfies the postcondition"""
        cluster.seed(member("gateway", ready=True))

        assert wait_for_service_mesh_member("gateway", timeout=0, interval=0)(ctx, feature_on(cluster)) is True

    def test_member_not_ready(self, ctx, cluster):
        """Test an unready member times out"""
        cluster.seed(member("gateway", ready=False))

        with pytest.raises(ReadinessTimeoutError, match="ServiceMeshMember in gateway"):
            wait_for_service_mesh_member("gateway", timeout=0, interval=0)(ctx, feature_on(cluster))

    def test_member_missing(self, ctx, cluster):
        """Test a missing member times out"""
        with pytest.raises(ReadinessTimeoutError, match="ServiceMeshMember in gateway"):
            wait_for_service_mesh_member("gateway", timeout=0, interval=0)(ctx, feature_on(cluster))

    def test_check_names(self):
        """Test names reported in pipeline errors"""
        assert check_name(ensure_service_mesh_operator_installed) == "ensure-service-mesh-operator-installed"
        assert check_name(wait_for_service_mesh_member("gateway")) == "wait-for-service-mesh-member(gateway)"
