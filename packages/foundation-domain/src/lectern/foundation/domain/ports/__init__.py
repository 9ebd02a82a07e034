"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from lectern.foundation.domain.ports.authorization_policy import AuthorizationPolicyPort
from lectern.foundation.domain.ports.cascade_lock import CascadeLockPort
from lectern.foundation.domain.ports.record_store import RecordStorePort
from lectern.foundation.domain.ports.storage_gateway import StorageGatewayPort
from lectern.foundation.domain.ports.storage_namespace import StorageNamespacePort

__all__ = [
    "AuthorizationPolicyPort",
    "CascadeLockPort",
    "RecordStorePort",
    "StorageGatewayPort",
    "StorageNamespacePort",
]
