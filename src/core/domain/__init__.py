"""
Domain models and value objects.

Contains token metadata, governance parameters, price state, events,
error taxonomy and the system snapshot.
"""

from src.core.domain.errors import (
    ContractionFailedError,
    ErrorCategory,
    ErrorCode,
    ExpansionFailedError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidParameterError,
    NotAuthorizedError,
    OperationError,
    OperationResult,
    OwnerOnlyError,
    RebalanceNotDueError,
    StableTokenError,
)
from src.core.domain.events import (
    BurnEvent,
    ClockAdvancedEvent,
    ContractionEvent,
    DelegateUpdatedEvent,
    EventLog,
    EventType,
    ExpansionEvent,
    GovernanceUpdatedEvent,
    MemoEvent,
    MintEvent,
    PriceUpdatedEvent,
    TransferEvent,
)
from src.core.domain.governance import GovernanceConfig
from src.core.domain.price_state import PriceState
from src.core.domain.snapshot import SystemSnapshot, TokenMetadata
from src.core.domain.token import (
    INITIAL_SUPPLY,
    TARGET_PRICE,
    TOKEN_DECIMALS,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    GenesisConfig,
)

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorCode",
    "OperationError",
    "OperationResult",
    "StableTokenError",
    "OwnerOnlyError",
    "NotAuthorizedError",
    "InvalidParameterError",
    "InsufficientBalanceError",
    "InsufficientReserveError",
    "RebalanceNotDueError",
    "ExpansionFailedError",
    "ContractionFailedError",
    # Events
    "EventLog",
    "EventType",
    "TransferEvent",
    "MemoEvent",
    "MintEvent",
    "BurnEvent",
    "ExpansionEvent",
    "ContractionEvent",
    "PriceUpdatedEvent",
    "GovernanceUpdatedEvent",
    "DelegateUpdatedEvent",
    "ClockAdvancedEvent",
    # Token
    "TOKEN_NAME",
    "TOKEN_SYMBOL",
    "TOKEN_DECIMALS",
    "TARGET_PRICE",
    "INITIAL_SUPPLY",
    "GenesisConfig",
    # State models
    "GovernanceConfig",
    "PriceState",
    "SystemSnapshot",
    "TokenMetadata",
]
