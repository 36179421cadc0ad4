"""Management-plane client bundle.

Wraps the three Azure SDK clients the workflow talks to. Pipeline stages receive
AzureClients objects and never build clients themselves.
"""

import logging
from dataclasses import dataclass
from typing import Any

from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient

logger = logging.getLogger(__name__)


@dataclass
class AzureClients:
    """Compute, network and resource clients bound to one subscription."""

    subscription_id: str
    compute: Any
    network: Any
    resource: Any


class ClientFactory:
    """Create AzureClients per subscription, reusing them for repeat lookups."""

    def __init__(self, credential: Any):
        self.credential = credential
        self._cache: dict[str, AzureClients] = {}

    def for_subscription(self, subscription_id: str) -> AzureClients:
        """Return clients for a subscription, creating them on first use."""
        clients = self._cache.get(subscription_id)
        if clients is None:
            logger.debug(f"Creating management clients for subscription {subscription_id}")
            clients = AzureClients(
                subscription_id=subscription_id,
                compute=ComputeManagementClient(self.credential, subscription_id),
                network=NetworkManagementClient(self.credential, subscription_id),
                resource=ResourceManagementClient(self.credential, subscription_id),
            )
            self._cache[subscription_id] = clients
        return clients
