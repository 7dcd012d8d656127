"""
PriceState — последняя сообщённая цена и целевая цена

current_price принимается от oracle как есть (проверяется только тип).
Направление отклонения не хранится: оно восстанавливается сравнением
current_price с target_price в точке использования.
"""

from pydantic import BaseModel, Field

from src.core.domain.token import TARGET_PRICE
from src.core.math.integer_math import UINT128_MAX, abs_diff


class PriceState(BaseModel):
    """
    Ценовое состояние.

    target_price заморожена (frozen field), current_price изменяется
    через set_price().
    """

    current_price: int = Field(
        TARGET_PRICE, ge=0, le=UINT128_MAX, description="Последняя цена (micro-units)"
    )
    target_price: int = Field(
        TARGET_PRICE, gt=0, le=UINT128_MAX, frozen=True,
        description="Целевая цена (micro-units)",
    )

    model_config = {"validate_assignment": True, "strict": True}

    def set_price(self, new_price: int) -> int:
        """
        Замена текущей цены без проверки границ.

        Returns:
            Предыдущая цена
        """
        previous = self.current_price
        self.current_price = new_price
        return previous

    def deviation(self) -> int:
        """|current_price - target_price| как беззнаковая величина."""
        return abs_diff(self.current_price, self.target_price)

    def is_above_target(self) -> bool:
        return self.current_price > self.target_price

    def is_below_target(self) -> bool:
        return self.current_price < self.target_price
