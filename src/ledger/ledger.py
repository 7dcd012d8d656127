"""Ledger — балансы аккаунтов и total supply.

Примитивы:
- transfer: перевод между аккаунтами (supply не меняется)
- mint: зачисление с увеличением supply (только RebalanceEngine при экспансии)
- burn: списание с уменьшением supply (только RebalanceEngine при контракции)
- balance_of: 0 для неизвестного аккаунта, никогда не падает

Инварианты (проверяются до мутации, мутация атомарна):
1. Баланс любого аккаунта >= 0
2. sum(balances) == total_supply до и после каждого вызова
3. Отказ не оставляет частичных изменений
"""

import logging
from typing import Iterator, Optional, Union

from src.core.domain.errors import (
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidParameterError,
    NotAuthorizedError,
)
from src.core.domain.events import (
    BurnEvent,
    EventLog,
    MemoEvent,
    MintEvent,
    TransferEvent,
)
from src.core.math.integer_math import checked_add, is_uint


logger = logging.getLogger(__name__)

# Максимальная длина memo (байт)
MAX_MEMO_BYTES = 34


def normalize_memo(memo: Union[bytes, str, None]) -> Optional[bytes]:
    """
    Приведение memo к bytes.

    Raises:
        InvalidParameterError: Если memo не bytes/str или длиннее MAX_MEMO_BYTES
    """
    if memo is None:
        return None
    if isinstance(memo, str):
        memo = memo.encode("utf-8")
    if not isinstance(memo, (bytes, bytearray)):
        raise InvalidParameterError(
            f"memo must be bytes or str, got {type(memo).__name__}", field="memo"
        )
    if len(memo) > MAX_MEMO_BYTES:
        raise InvalidParameterError(
            f"memo exceeds {MAX_MEMO_BYTES} bytes ({len(memo)})", field="memo"
        )
    return bytes(memo)


def _require_account(account: object, field: str) -> str:
    if not isinstance(account, str) or not account:
        raise InvalidParameterError(
            f"{field} must be a non-empty account id, got {account!r}", field=field
        )
    return account


def _require_amount(amount: object) -> int:
    if not is_uint(amount):
        raise InvalidParameterError(
            f"amount must be an unsigned integer, got {amount!r}", field="amount"
        )
    return amount


class Ledger:
    """Таблица балансов, total supply и множество одобренных delegates.

    Delegate одобряется глобально: он может переводить от имени любого
    аккаунта. Управление delegates — через StableTokenSystem (admin only).
    """

    def __init__(
        self,
        initial_holder: str,
        initial_supply: int,
        events: Optional[EventLog] = None,
    ):
        """
        Args:
            initial_holder: аккаунт, получающий весь initial supply (reserve)
            initial_supply: начальный supply
            events: лог событий (если None — создаётся собственный)
        """
        _require_account(initial_holder, "initial_holder")
        _require_amount(initial_supply)

        self.events = events if events is not None else EventLog()
        self._balances: dict[str, int] = {initial_holder: initial_supply}
        self._total_supply = initial_supply
        self._delegates: set[str] = set()

    # -------------------------------------------------------------------------
    # Чтение
    # -------------------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def accounts(self) -> Iterator[tuple[str, int]]:
        """Итератор по (account, balance), включая нулевые балансы."""
        return iter(sorted(self._balances.items()))

    def is_delegate(self, account: str) -> bool:
        return account in self._delegates

    def delegates(self) -> list[str]:
        return sorted(self._delegates)

    def is_authorized(self, sender: str, caller: str) -> bool:
        """Caller — сам отправитель или одобренный delegate."""
        return caller == sender or caller in self._delegates

    def verify_conservation(self) -> bool:
        """sum(balances) == total_supply и нет отрицательных балансов."""
        return (
            all(balance >= 0 for balance in self._balances.values())
            and sum(self._balances.values()) == self._total_supply
        )

    # -------------------------------------------------------------------------
    # Мутации
    # -------------------------------------------------------------------------

    def set_delegate(self, delegate: str, approved: bool) -> None:
        _require_account(delegate, "delegate")
        if approved:
            self._delegates.add(delegate)
        else:
            self._delegates.discard(delegate)
        logger.info("delegate %s approved=%s", delegate, approved)

    def transfer(
        self,
        amount: int,
        sender: str,
        recipient: str,
        caller: str,
        memo: Union[bytes, str, None] = None,
    ) -> TransferEvent:
        """Перевод amount от sender к recipient.

        Порядок проверок: авторизация → параметры → баланс.

        Raises:
            NotAuthorizedError: caller не sender и не delegate
            InvalidParameterError: неверный amount / аккаунт / memo
            InsufficientBalanceError: amount > balance(sender)
        """
        if not self.is_authorized(sender, caller):
            raise NotAuthorizedError(
                f"{caller} is not authorized to transfer from {sender}"
            )

        _require_amount(amount)
        _require_account(sender, "sender")
        _require_account(recipient, "recipient")
        memo_bytes = normalize_memo(memo)

        sender_balance = self.balance_of(sender)
        if amount > sender_balance:
            raise InsufficientBalanceError(
                f"balance of {sender} is {sender_balance}, requested {amount}"
            )

        # Debit перед credit: при sender == recipient баланс не меняется
        self._balances[sender] = sender_balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        # Transfer и Memo публикуются вместе
        with self.events.transaction():
            event = self.events.emit(
                TransferEvent(amount=amount, sender=sender, recipient=recipient)
            )
            if memo_bytes is not None:
                self.events.emit(MemoEvent(memo_hex=memo_bytes.hex()))

        logger.info("transfer %d %s -> %s", amount, sender, recipient)
        return event

    def mint(self, to: str, amount: int) -> int:
        """Зачисление amount на to с увеличением supply.

        Returns:
            Новый total supply

        Raises:
            ArithmeticOverflowError: supply вышел бы за uint128
        """
        _require_account(to, "to")
        _require_amount(amount)

        new_supply = checked_add(self._total_supply, amount)
        new_balance = self.balance_of(to) + amount

        self._total_supply = new_supply
        self._balances[to] = new_balance

        self.events.emit(MintEvent(account=to, amount=amount, total_supply=new_supply))
        logger.info("mint %d to %s, supply=%d", amount, to, new_supply)
        return new_supply

    def burn(self, from_account: str, amount: int) -> int:
        """Списание amount с from_account с уменьшением supply.

        Returns:
            Новый total supply

        Raises:
            InsufficientReserveError: balance(from_account) < amount
        """
        _require_account(from_account, "from_account")
        _require_amount(amount)

        balance = self.balance_of(from_account)
        if balance < amount:
            raise InsufficientReserveError(
                f"reserve of {from_account} is {balance}, burn requires {amount}"
            )

        self._balances[from_account] = balance - amount
        self._total_supply -= amount

        self.events.emit(
            BurnEvent(account=from_account, amount=amount, total_supply=self._total_supply)
        )
        logger.info("burn %d from %s, supply=%d", amount, from_account, self._total_supply)
        return self._total_supply

    @classmethod
    def restore(
        cls,
        balances: dict[str, int],
        total_supply: int,
        delegates: list[str],
        events: Optional[EventLog] = None,
    ) -> "Ledger":
        """Восстановление ledger из снапшота.

        Raises:
            ValueError: снапшот нарушает conservation или содержит
                отрицательные балансы
        """
        if any(not is_uint(v) for v in balances.values()):
            raise ValueError("snapshot contains a negative or non-integer balance")
        if sum(balances.values()) != total_supply:
            raise ValueError(
                f"snapshot breaks conservation: sum={sum(balances.values())}, "
                f"total_supply={total_supply}"
            )

        ledger = cls.__new__(cls)
        ledger.events = events if events is not None else EventLog()
        ledger._balances = dict(balances)
        ledger._total_supply = total_supply
        ledger._delegates = set(delegates)
        return ledger
