"""
Integer Math — детерминированная целочисленная арифметика

Модуль обеспечивает bit-exact воспроизводимость всех расчётов supply:
- Фиксированная ширина: все величины — беззнаковые 128-битные целые (uint128)
- Явные проверки переполнения (overflow → ArithmeticOverflowError)
- Только floor-деление, никакого float и округления кроме отсечения
- Saturating cap вместо ручного min() через ветвления

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Результат любой операции лежит в [0, UINT128_MAX], иначе exception
2. Float никогда не участвует в расчётах (bool тоже не принимается как int)
3. Все операции детерминированы и воспроизводимы

ФОРМУЛЫ:
    deviation_permille = floor(|current - target| * 1000 / target)
    amount = floor(supply * rate_permille / 1000)
"""

from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Максимальное значение беззнакового 128-битного целого
UINT128_MAX: Final[int] = 2**128 - 1

# Знаменатель для permille (parts-per-thousand)
PERMILLE_DENOMINATOR: Final[int] = 1000


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ArithmeticOverflowError(ArithmeticError):
    """
    Результат операции вышел за пределы uint128.

    Вызывающий код обязан отклонить операцию целиком, не применяя
    частичных изменений состояния.
    """

    def __init__(self, operation: str, left: int, right: int):
        self.operation = operation
        self.left = left
        self.right = right
        super().__init__(f"uint128 overflow in {operation}({left}, {right})")


# =============================================================================
# ВАЛИДАЦИЯ ТИПОВ
# =============================================================================


def is_uint(value: object) -> bool:
    """
    Проверка, является ли значение беззнаковым целым в пределах uint128.

    bool явно исключается (в Python bool — подкласс int).

    Examples:
        >>> is_uint(0)
        True
        >>> is_uint(-1)
        False
        >>> is_uint(1.0)
        False
        >>> is_uint(True)
        False
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value <= UINT128_MAX


def ensure_uint(value: object, name: str) -> int:
    """
    Валидация, что значение — uint128.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Returns:
        value без изменений

    Raises:
        TypeError: Если value не int (или bool)
        ValueError: Если value вне [0, UINT128_MAX]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an unsigned integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    if value > UINT128_MAX:
        raise ValueError(f"{name} exceeds uint128, got {value}")
    return value


# =============================================================================
# CHECKED ARITHMETIC
# =============================================================================


def checked_add(a: int, b: int) -> int:
    """
    Сложение с проверкой переполнения uint128.

    Raises:
        ArithmeticOverflowError: Если a + b > UINT128_MAX
    """
    result = a + b
    if result > UINT128_MAX:
        raise ArithmeticOverflowError("add", a, b)
    return result


def checked_sub(a: int, b: int) -> int:
    """
    Вычитание без ухода в отрицательную область.

    Raises:
        ArithmeticOverflowError: Если b > a (underflow)
    """
    if b > a:
        raise ArithmeticOverflowError("sub", a, b)
    return a - b


def checked_mul(a: int, b: int) -> int:
    """
    Умножение с проверкой переполнения uint128.

    Raises:
        ArithmeticOverflowError: Если a * b > UINT128_MAX
    """
    result = a * b
    if result > UINT128_MAX:
        raise ArithmeticOverflowError("mul", a, b)
    return result


def floor_div(numerator: int, denominator: int) -> int:
    """
    Целочисленное floor-деление беззнаковых чисел.

    Raises:
        ZeroDivisionError: Если denominator == 0
    """
    if denominator == 0:
        raise ZeroDivisionError("floor_div by zero")
    return numerator // denominator


def abs_diff(a: int, b: int) -> int:
    """Беззнаковая величина разности |a - b|."""
    return a - b if a >= b else b - a


def saturating_cap(value: int, cap: int) -> int:
    """
    Ограничение значения сверху (эквивалент min(value, cap)).

    Examples:
        >>> saturating_cap(50, 100)
        50
        >>> saturating_cap(150, 100)
        100
    """
    return cap if value > cap else value


# =============================================================================
# PERMILLE
# =============================================================================


def deviation_permille(price: int, reference: int) -> int:
    """
    Отклонение price от reference в permille (floor).

    deviation_permille = floor(|price - reference| * 1000 / reference)

    Args:
        price: Текущая цена (micro-units)
        reference: Опорная цена (micro-units, > 0)

    Returns:
        Отклонение в частях на тысячу (без знака)

    Examples:
        >>> deviation_permille(1_050_000, 1_000_000)
        50
        >>> deviation_permille(900_000, 1_000_000)
        100
        >>> deviation_permille(1_000_999, 1_000_000)
        0
    """
    return floor_div(
        checked_mul(abs_diff(price, reference), PERMILLE_DENOMINATOR),
        reference,
    )


def capped_deviation_permille(price: int, reference: int, cap: int) -> int:
    """
    min(deviation_permille(price, reference), cap) без переполнения.

    Если |price - reference| не меньше ceil(cap * reference / 1000),
    отклонение заведомо >= cap и произведение на 1000 не вычисляется.
    Результат всегда <= cap, поэтому цена вплоть до UINT128_MAX даёт
    cap, а не ArithmeticOverflowError.

    Examples:
        >>> capped_deviation_permille(1_150_000, 1_000_000, 100)
        100
        >>> capped_deviation_permille(2**127, 1_000_000, 100)
        100
    """
    if reference == 0:
        raise ZeroDivisionError("deviation against zero reference")
    diff = abs_diff(price, reference)
    saturation_point = -(-cap * reference // PERMILLE_DENOMINATOR)
    if diff >= saturation_point:
        return cap
    return saturating_cap(diff * PERMILLE_DENOMINATOR // reference, cap)


def apply_permille(amount: int, rate_permille: int) -> int:
    """
    Доля от amount в permille (floor).

    apply_permille = floor(amount * rate_permille / 1000)

    amount раскладывается как 1000 * whole + remainder, так что
    переполнение возможно только если переполняется сам результат.

    Raises:
        ArithmeticOverflowError: результат вне uint128

    Examples:
        >>> apply_permille(1_000_000_000_000, 50)
        50000000000
        >>> apply_permille(999, 1)
        0
    """
    whole, remainder = divmod(amount, PERMILLE_DENOMINATOR)
    return checked_add(
        checked_mul(whole, rate_permille),
        remainder * rate_permille // PERMILLE_DENOMINATOR,
    )
