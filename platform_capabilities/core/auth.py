"""
Authentication Module

Configures the Kubernetes client from an explicit URL and token, the local
kubeconfig or the in-cluster service account, and hands out cluster clients.
"""

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from ..cluster.client import DynamicClusterClient
from .exceptions import AuthenticationError
from .utils import disable_ssl_warnings, mask_sensitive_info

logger = logging.getLogger(__name__)


class ClusterAuth:
    """Handles cluster authentication and context discovery"""

    def __init__(self, skip_tls: bool = False):
        """
        Initialize cluster authentication handler

        Args:
            skip_tls: Whether to skip TLS verification for requests
        """
        self.skip_tls = skip_tls
        self.api_client: Optional[client.ApiClient] = None

    def configure_auth(self, cluster_url: Optional[str] = None, token: Optional[str] = None) -> client.ApiClient:
        """
        Configure authentication with provided URL and token, or discover it

        Discovery tries the kubeconfig first and falls back to in-cluster
        configuration, which is what the platform controller uses when it runs
        as a pod.

        Args:
            cluster_url: Cluster API URL (optional)
            token: Bearer token (optional)

        Returns:
            Configured ApiClient

        Raises:
            AuthenticationError: If no configuration could be established
        """
        if cluster_url and token:
            configuration = client.Configuration()
            configuration.host = cluster_url
            configuration.api_key = {"authorization": token}
            configuration.api_key_prefix = {"authorization": "Bearer"}
            logger.info(f"Using provided cluster URL {mask_sensitive_info(cluster_url, cluster_url)} and token")
        else:
            configuration = self._discover_configuration()

        if self.skip_tls:
            configuration.verify_ssl = False
            configuration.ssl_ca_cert = None
            disable_ssl_warnings()

        self.api_client = client.ApiClient(configuration)
        return self.api_client

    def _discover_configuration(self) -> client.Configuration:
        configuration = client.Configuration()
        try:
            config.load_kube_config(client_configuration=configuration)
            logger.info("Successfully loaded kubeconfig")
            return configuration
        except (ConfigException, FileNotFoundError) as kubeconfig_error:
            logger.debug(f"Failed to load kubeconfig: {kubeconfig_error}")

        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.info("Successfully loaded in-cluster config")
            return configuration
        except ConfigException as incluster_error:
            raise AuthenticationError(
                "Could not configure cluster access from kubeconfig or in-cluster service account. "
                f"Provide a cluster URL and token explicitly. Last error: {incluster_error}"
            )

    def is_authenticated(self) -> bool:
        return self.api_client is not None

    def test_connection(self) -> bool:
        """
        Test the connection to the cluster

        Raises:
            AuthenticationError: If not configured or the API rejects the call
        """
        if not self.is_authenticated():
            raise AuthenticationError("Not authenticated - no Kubernetes client available")

        try:
            client.CoreV1Api(self.api_client).get_api_resources()
        except ApiException as e:
            raise AuthenticationError(f"Failed to connect to cluster: {e.status} {e.reason}")
        logger.info("Successfully tested connection to cluster")
        return True

    def get_cluster_client(self) -> DynamicClusterClient:
        """
        Build a cluster client on the configured ApiClient

        Raises:
            AuthenticationError: If authentication has not been configured
        """
        if not self.is_authenticated():
            raise AuthenticationError("Not authenticated - call configure_auth() first")
        return DynamicClusterClient(self.api_client)
