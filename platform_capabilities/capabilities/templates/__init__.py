"""
Manifest templates shipped with the platform capabilities.
"""

from pathlib import Path


class Templates:
    """Template locations relative to this package"""

    LOCATION = Path(__file__).parent
    SERVICE_MESH_INGRESS_DIR = "servicemesh/ingress"
