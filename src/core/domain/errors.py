"""
Errors — таксономия ошибок и результат операции

Категории:
- AUTHORIZATION: у caller нет нужной привилегии (проверяется первой)
- VALIDATION: параметр не прошёл проверку (ноль в governance, тип, memo)
- LEDGER: нарушено арифметическое предусловие ledger
- ENGINE: предусловие state machine или отказ нижележащего ledger

Внутри ядра нарушения выбрасываются как подклассы StableTokenError.
На границе (StableTokenSystem) они конвертируются в OperationResult —
exceptions этой таксономии наружу не выходят.

Числовые статусы стабильны (100-115) и передаются вызывающему вместе с кодом.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


# =============================================================================
# ENUMS
# =============================================================================


class ErrorCategory(str, Enum):
    """Категория ошибки."""

    AUTHORIZATION = "AUTHORIZATION"
    VALIDATION = "VALIDATION"
    LEDGER = "LEDGER"
    ENGINE = "ENGINE"


class ErrorCode(str, Enum):
    """Тег ошибки, возвращаемый вызывающему."""

    OWNER_ONLY = "OwnerOnly"
    NOT_AUTHORIZED = "NotAuthorized"
    INVALID_PARAMETER = "InvalidParameter"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_RESERVE = "InsufficientReserve"
    REBALANCE_NOT_DUE = "RebalanceNotDue"
    EXPANSION_FAILED = "ExpansionFailed"
    CONTRACTION_FAILED = "ContractionFailed"


ERROR_CATEGORIES: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.OWNER_ONLY: ErrorCategory.AUTHORIZATION,
    ErrorCode.NOT_AUTHORIZED: ErrorCategory.AUTHORIZATION,
    ErrorCode.INVALID_PARAMETER: ErrorCategory.VALIDATION,
    ErrorCode.INSUFFICIENT_BALANCE: ErrorCategory.LEDGER,
    ErrorCode.INSUFFICIENT_RESERVE: ErrorCategory.LEDGER,
    ErrorCode.REBALANCE_NOT_DUE: ErrorCategory.ENGINE,
    ErrorCode.EXPANSION_FAILED: ErrorCategory.ENGINE,
    ErrorCode.CONTRACTION_FAILED: ErrorCategory.ENGINE,
}


# Числовые статусы
STATUS_OWNER_ONLY = 100
STATUS_NOT_AUTHORIZED = 101
STATUS_INSUFFICIENT_BALANCE = 102
STATUS_INSUFFICIENT_RESERVE = 103
STATUS_EXPANSION_FAILED = 104
STATUS_CONTRACTION_FAILED = 105
STATUS_REBALANCE_NOT_DUE = 106

# Отдельный статус на каждое governance-поле
STATUS_INVALID_EXPANSION_THRESHOLD = 110
STATUS_INVALID_CONTRACTION_THRESHOLD = 111
STATUS_INVALID_COOLDOWN = 112
STATUS_INVALID_MAX_EXPANSION_RATE = 113
STATUS_INVALID_MAX_CONTRACTION_RATE = 114
STATUS_INVALID_PARAMETER = 115


# =============================================================================
# EXCEPTIONS
# =============================================================================


class StableTokenError(Exception):
    """
    Базовое исключение ядра.

    Каждый подкласс фиксирует code и status. Состояние системы на момент
    выброса исключения не изменено.
    """

    code: ErrorCode = ErrorCode.INVALID_PARAMETER
    status: int = STATUS_INVALID_PARAMETER

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    @property
    def category(self) -> ErrorCategory:
        return ERROR_CATEGORIES[self.code]


class OwnerOnlyError(StableTokenError):
    """Операция доступна только администратору."""

    code = ErrorCode.OWNER_ONLY
    status = STATUS_OWNER_ONLY


class NotAuthorizedError(StableTokenError):
    """Caller не является отправителем и не одобренный delegate."""

    code = ErrorCode.NOT_AUTHORIZED
    status = STATUS_NOT_AUTHORIZED


class InvalidParameterError(StableTokenError):
    """Параметр не прошёл валидацию."""

    code = ErrorCode.INVALID_PARAMETER
    status = STATUS_INVALID_PARAMETER

    def __init__(self, message: str, field: str, status: Optional[int] = None):
        super().__init__(message, status)
        self.field = field


class InsufficientBalanceError(StableTokenError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    status = STATUS_INSUFFICIENT_BALANCE


class InsufficientReserveError(StableTokenError):
    code = ErrorCode.INSUFFICIENT_RESERVE
    status = STATUS_INSUFFICIENT_RESERVE


class RebalanceNotDueError(StableTokenError):
    code = ErrorCode.REBALANCE_NOT_DUE
    status = STATUS_REBALANCE_NOT_DUE


class ExpansionFailedError(StableTokenError):
    code = ErrorCode.EXPANSION_FAILED
    status = STATUS_EXPANSION_FAILED


class ContractionFailedError(StableTokenError):
    code = ErrorCode.CONTRACTION_FAILED
    status = STATUS_CONTRACTION_FAILED


# =============================================================================
# TAGGED RESULT
# =============================================================================


@dataclass(frozen=True)
class OperationError:
    """Описание отказа операции."""

    code: ErrorCode
    category: ErrorCategory
    status: int
    message: str

    @classmethod
    def from_exception(cls, exc: StableTokenError) -> "OperationError":
        return cls(
            code=exc.code,
            category=exc.category,
            status=exc.status,
            message=exc.message,
        )


@dataclass(frozen=True)
class OperationResult:
    """
    Результат публичной операции (tagged result).

    ok=True  → value содержит результат (или None для команд)
    ok=False → error содержит тег ошибки, состояние не изменено
    """

    ok: bool
    value: Any = None
    error: Optional[OperationError] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: StableTokenError) -> "OperationResult":
        return cls(ok=False, error=OperationError.from_exception(exc))

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error is not None else None
