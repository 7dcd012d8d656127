"""
GovernanceConfig — параметры стабилизационного механизма

Пять беззнаковых параметров, каждый строго положительный:
- expansion_threshold: отклонение вверх (micro-units), после которого нужна экспансия
- contraction_threshold: отклонение вниз (micro-units), после которого нужна контракция
- max_expansion_rate: потолок экспансии за шаг (permille от supply)
- max_contraction_rate: потолок контракции за шаг (permille от supply)
- rebalance_cooldown: минимум logical-height между успешными rebalance

Верхняя граница не проверяется: администратор доверенный.
"""

from typing import Final

from pydantic import BaseModel, Field

from src.core.domain.errors import (
    STATUS_INVALID_CONTRACTION_THRESHOLD,
    STATUS_INVALID_COOLDOWN,
    STATUS_INVALID_EXPANSION_THRESHOLD,
    STATUS_INVALID_MAX_CONTRACTION_RATE,
    STATUS_INVALID_MAX_EXPANSION_RATE,
    InvalidParameterError,
)
from src.core.math.integer_math import UINT128_MAX, is_uint


# =============================================================================
# DEFAULTS
# =============================================================================

# 5% от target price (50_000 micro-units)
DEFAULT_EXPANSION_THRESHOLD: Final[int] = 50_000
DEFAULT_CONTRACTION_THRESHOLD: Final[int] = 50_000

# 10% от supply за один шаг
DEFAULT_MAX_EXPANSION_RATE: Final[int] = 100
DEFAULT_MAX_CONTRACTION_RATE: Final[int] = 100

# ~24 часа при блоке в 10 минут
DEFAULT_REBALANCE_COOLDOWN: Final[int] = 144


# Статус ошибки для каждого поля
FIELD_ERROR_STATUS: dict[str, int] = {
    "expansion_threshold": STATUS_INVALID_EXPANSION_THRESHOLD,
    "contraction_threshold": STATUS_INVALID_CONTRACTION_THRESHOLD,
    "rebalance_cooldown": STATUS_INVALID_COOLDOWN,
    "max_expansion_rate": STATUS_INVALID_MAX_EXPANSION_RATE,
    "max_contraction_rate": STATUS_INVALID_MAX_CONTRACTION_RATE,
}


# =============================================================================
# MODEL
# =============================================================================


class GovernanceConfig(BaseModel):
    """
    Mutable набор governance-параметров.

    Изменяется на месте только через update(), которая проверяет
    строгую положительность до присваивания. validate_assignment
    держит модель валидной и при прямом присваивании.
    """

    expansion_threshold: int = Field(
        DEFAULT_EXPANSION_THRESHOLD, gt=0, le=UINT128_MAX,
        description="Порог экспансии (micro-units над target)",
    )
    contraction_threshold: int = Field(
        DEFAULT_CONTRACTION_THRESHOLD, gt=0, le=UINT128_MAX,
        description="Порог контракции (micro-units под target)",
    )
    max_expansion_rate: int = Field(
        DEFAULT_MAX_EXPANSION_RATE, gt=0, le=UINT128_MAX,
        description="Максимальная экспансия за шаг (permille)",
    )
    max_contraction_rate: int = Field(
        DEFAULT_MAX_CONTRACTION_RATE, gt=0, le=UINT128_MAX,
        description="Максимальная контракция за шаг (permille)",
    )
    rebalance_cooldown: int = Field(
        DEFAULT_REBALANCE_COOLDOWN, gt=0, le=UINT128_MAX,
        description="Cooldown между rebalance (logical height)",
    )

    model_config = {"validate_assignment": True, "extra": "forbid", "strict": True}

    def update(self, field: str, value: int) -> int:
        """
        Изменение одного параметра.

        Args:
            field: Имя поля
            value: Новое значение (> 0)

        Returns:
            Предыдущее значение

        Raises:
            InvalidParameterError: Если value не uint или равно нулю
                (status уникален для каждого поля)
            KeyError: Если field не governance-параметр
        """
        status = FIELD_ERROR_STATUS[field]
        if not is_uint(value) or value == 0:
            raise InvalidParameterError(
                f"{field} must be a strictly positive unsigned integer, got {value!r}",
                field=field,
                status=status,
            )
        previous = getattr(self, field)
        setattr(self, field, value)
        return previous
