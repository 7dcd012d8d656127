"""
Token — метаданные токена и параметры genesis

Constants:
- TARGET_PRICE: 1_000_000 micro-units ≙ $1.00
- INITIAL_SUPPLY: 1_000_000 токенов при 6 decimals

GenesisConfig задаёт начальное состояние системы. Весь initial supply
зачисляется администратору (reserve).
"""

from dataclasses import dataclass
from typing import Final

from src.core.math.integer_math import ensure_uint


TOKEN_NAME: Final[str] = "AlgoStable"
TOKEN_SYMBOL: Final[str] = "ASTB"
TOKEN_DECIMALS: Final[int] = 6

# Цена в micro-units: 1_000_000 = $1.00
TARGET_PRICE: Final[int] = 1_000_000

# 1_000_000 токенов × 10^6
INITIAL_SUPPLY: Final[int] = 1_000_000_000_000

DEFAULT_ADMINISTRATOR: Final[str] = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


@dataclass(frozen=True)
class GenesisConfig:
    """
    Конфигурация начального состояния.

    target_price неизменна после старта, initial_supply целиком
    зачисляется administrator.
    """

    administrator: str = DEFAULT_ADMINISTRATOR
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL
    decimals: int = TOKEN_DECIMALS
    initial_supply: int = INITIAL_SUPPLY
    target_price: int = TARGET_PRICE

    def __post_init__(self):
        if not self.administrator:
            raise ValueError("administrator must be a non-empty account id")
        ensure_uint(self.decimals, "decimals")
        ensure_uint(self.initial_supply, "initial_supply")
        ensure_uint(self.target_price, "target_price")
        if self.target_price == 0:
            raise ValueError("target_price must be positive")
