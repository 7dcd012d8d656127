"""
SystemSnapshot — логическая раскладка персистентного состояния

Immutable Pydantic модель:
- таблица балансов
- пять governance-скаляров
- текущая цена, supply, last_rebalance_height
- множество delegates
- logical height и метаданные токена

Полная совместимость с JSON Schema (contracts/schema/stable_token_state.json).
"""

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from src.core.domain.governance import GovernanceConfig
from src.core.math.integer_math import UINT128_MAX


Balance = Annotated[int, Field(ge=0, le=UINT128_MAX)]


class TokenMetadata(BaseModel):
    """Метаданные токена."""

    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    decimals: int = Field(..., ge=0)

    model_config = {"frozen": True}


class SystemSnapshot(BaseModel):
    """
    Снапшот состояния системы.

    Инвариант: sum(balances) == total_supply.
    """

    schema_version: str = Field("1", pattern="^1$", description="Версия схемы")
    administrator: str = Field(..., min_length=1, description="Администратор (reserve)")
    token: TokenMetadata

    balances: dict[str, Balance] = Field(default_factory=dict, description="Балансы аккаунтов")
    total_supply: int = Field(..., ge=0, le=UINT128_MAX)

    current_price: int = Field(..., ge=0, description="Цена (micro-units)")
    target_price: int = Field(..., gt=0, description="Целевая цена (micro-units)")
    governance: GovernanceConfig

    last_rebalance_height: int = Field(..., ge=0)
    block_height: int = Field(..., ge=0)
    approved_delegates: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_conservation(self) -> "SystemSnapshot":
        if sum(self.balances.values()) != self.total_supply:
            raise ValueError(
                f"sum(balances)={sum(self.balances.values())} != total_supply={self.total_supply}"
            )
        return self

    def to_contract(self) -> dict:
        """JSON-совместимое представление для валидации контракта."""
        return self.model_dump(mode="json")
