"""Service layer exported symbols."""

from .bridge_client import CommercialBridgeClient
from .costs import CostService
from .creation import AccountCreationService
from .govcloud import GovCloudAccountService
from .handshake import HandshakeResult, HandshakeService, HandshakeStatus
from .lifecycle import AccountLifecycleService
from .registration import RegistrationOutcome, RegistrationResult, RegistrationService
from .sts import BridgeCredentialSet, CredentialChain, TrustBridge

__all__ = [
    "AccountCreationService",
    "AccountLifecycleService",
    "BridgeCredentialSet",
    "CommercialBridgeClient",
    "CostService",
    "CredentialChain",
    "GovCloudAccountService",
    "HandshakeResult",
    "HandshakeService",
    "HandshakeStatus",
    "RegistrationOutcome",
    "RegistrationResult",
    "RegistrationService",
    "TrustBridge",
]
