"""
Events — наблюдаемые побочные эффекты операций

Каждая успешная мутация публикует событие в append-only EventLog:
- TransferEvent: перевод (amount, sender, recipient)
- MemoEvent: memo перевода (отдельное событие, только если memo передан)
- MintEvent / BurnEvent: изменение supply на уровне ledger
- ExpansionEvent / ContractionEvent: результат rebalance
- PriceUpdatedEvent, GovernanceUpdatedEvent, DelegateUpdatedEvent,
  ClockAdvancedEvent: административные изменения

Публикация отделена от мутации: события операции буферизуются внутри
EventLog.transaction() и попадают в лог только после того, как операция
целиком применена. При исключении буфер отбрасывается. Подписчики
вызываются синхронно в порядке подписки; исключение подписчика
логируется и не прерывает ни операцию, ни остальных подписчиков.

Совместимо с JSON Schema (contracts/schema/ledger_event.json).
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Literal, Optional, Union

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Тип события."""

    TRANSFER = "transfer"
    MEMO = "memo"
    MINT = "mint"
    BURN = "burn"
    EXPANSION = "expansion"
    CONTRACTION = "contraction"
    PRICE_UPDATED = "price_updated"
    GOVERNANCE_UPDATED = "governance_updated"
    DELEGATE_UPDATED = "delegate_updated"
    CLOCK_ADVANCED = "clock_advanced"


# =============================================================================
# EVENT MODELS
# =============================================================================


class BaseEvent(BaseModel):
    """Общие поля: порядковый номер в логе и logical height."""

    sequence: int = Field(0, ge=0, description="Порядковый номер в EventLog")
    height: int = Field(0, ge=0, description="Logical height на момент события")

    model_config = {"frozen": True}

    def to_contract(self) -> dict:
        """JSON-совместимое представление для валидации контракта."""
        return self.model_dump(mode="json")


class TransferEvent(BaseEvent):
    event_type: Literal[EventType.TRANSFER] = EventType.TRANSFER
    amount: int = Field(..., ge=0)
    sender: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)


class MemoEvent(BaseEvent):
    event_type: Literal[EventType.MEMO] = EventType.MEMO
    memo_hex: str = Field(..., pattern="^([0-9a-f]{2})*$", description="Memo (hex)")

    @property
    def memo(self) -> bytes:
        return bytes.fromhex(self.memo_hex)


class MintEvent(BaseEvent):
    event_type: Literal[EventType.MINT] = EventType.MINT
    account: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    total_supply: int = Field(..., ge=0)


class BurnEvent(BaseEvent):
    event_type: Literal[EventType.BURN] = EventType.BURN
    account: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    total_supply: int = Field(..., ge=0)


class ExpansionEvent(BaseEvent):
    event_type: Literal[EventType.EXPANSION] = EventType.EXPANSION
    amount: int = Field(..., ge=0)
    price: int = Field(..., ge=0)
    rate_permille: int = Field(..., ge=0)
    total_supply: int = Field(..., ge=0)


class ContractionEvent(BaseEvent):
    event_type: Literal[EventType.CONTRACTION] = EventType.CONTRACTION
    amount: int = Field(..., ge=0)
    price: int = Field(..., ge=0)
    rate_permille: int = Field(..., ge=0)
    total_supply: int = Field(..., ge=0)


class PriceUpdatedEvent(BaseEvent):
    event_type: Literal[EventType.PRICE_UPDATED] = EventType.PRICE_UPDATED
    previous_price: int = Field(..., ge=0)
    price: int = Field(..., ge=0)


class GovernanceUpdatedEvent(BaseEvent):
    event_type: Literal[EventType.GOVERNANCE_UPDATED] = EventType.GOVERNANCE_UPDATED
    parameter: str = Field(..., min_length=1)
    previous_value: int = Field(..., ge=0)
    value: int = Field(..., gt=0)


class DelegateUpdatedEvent(BaseEvent):
    event_type: Literal[EventType.DELEGATE_UPDATED] = EventType.DELEGATE_UPDATED
    delegate: str = Field(..., min_length=1)
    approved: bool


class ClockAdvancedEvent(BaseEvent):
    event_type: Literal[EventType.CLOCK_ADVANCED] = EventType.CLOCK_ADVANCED
    previous_height: int = Field(..., ge=0)


LedgerEvent = Union[
    TransferEvent,
    MemoEvent,
    MintEvent,
    BurnEvent,
    ExpansionEvent,
    ContractionEvent,
    PriceUpdatedEvent,
    GovernanceUpdatedEvent,
    DelegateUpdatedEvent,
    ClockAdvancedEvent,
]

Subscriber = Callable[[BaseEvent], None]


# =============================================================================
# EVENT LOG
# =============================================================================


class EventLog:
    """
    Append-only лог событий с подписчиками.

    height_source — callable, возвращающий текущий logical height;
    EventLog проставляет sequence и height при публикации.
    """

    def __init__(self, height_source: Optional[Callable[[], int]] = None):
        self._events: list[BaseEvent] = []
        self._pending: list[BaseEvent] = []
        self._depth = 0
        self._subscribers: list[Subscriber] = []
        self._height_source = height_source or (lambda: 0)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[BaseEvent]:
        return iter(list(self._events))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Подписка на события.

        Returns:
            Функция отписки
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Буферизация событий на время операции.

        Вложенные блоки допускаются: события фиксируются при выходе из
        внешнего блока. Исключение отбрасывает события, добавленные
        внутри блока, в котором оно возникло.
        """
        mark = len(self._pending)
        self._depth += 1
        try:
            yield
        except BaseException:
            del self._pending[mark:]
            raise
        finally:
            self._depth -= 1

        if self._depth == 0:
            self._commit()

    def emit(self, event: BaseEvent) -> BaseEvent:
        """Добавление события; вне transaction() фиксируется сразу."""
        with self.transaction():
            stamped = event.model_copy(
                update={
                    "sequence": len(self._events) + len(self._pending),
                    "height": self._height_source(),
                }
            )
            self._pending.append(stamped)
        return stamped

    def _commit(self) -> None:
        committed, self._pending = self._pending, []
        self._events.extend(committed)
        for event in committed:
            logger.debug("event #%d %s", event.sequence, event.event_type.value)
            self._notify(event)

    def _notify(self, event: BaseEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "subscriber %r failed on event #%d %s",
                    callback, event.sequence, event.event_type.value,
                )

    def events(self, event_type: Optional[EventType] = None) -> list[BaseEvent]:
        """Копия лога, опционально отфильтрованная по типу."""
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.event_type == event_type]

    def last(self) -> Optional[BaseEvent]:
        return self._events[-1] if self._events else None
