"""
JSON контракты stable token

Схемы состояния, событий и конфигурации плюс загрузка system config.
"""

from .validators import (
    ContractValidator,
    LedgerEventValidator,
    SchemaLoader,
    StableTokenStateValidator,
    SystemConfigValidator,
    load_system_config,
    validate_ledger_event,
    validate_stable_token_state,
    validate_system_config,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "StableTokenStateValidator",
    "LedgerEventValidator",
    "SystemConfigValidator",
    # Functions
    "validate_stable_token_state",
    "validate_ledger_event",
    "validate_system_config",
    "load_system_config",
]
