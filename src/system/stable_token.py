"""StableTokenSystem — контекст состояния и публичная поверхность операций.

Явный mutable context object: владеет ledger, price state, governance,
rebalance state, logical clock и event log и передаётся по ссылке.
Скрытой глобальной статики нет.

Граница ошибок:
- Команды (transfer, set_price, rebalance, governance setters, ...)
  возвращают OperationResult. Исключения StableTokenError перехватываются
  здесь и превращаются в tagged result; прочие исключения пробрасываются.
- Запросы (get_balance, needs_rebalance, ...) возвращают значения напрямую
  и не падают.

Модель исполнения: однопоточная, транзакция на вызов. Каждая команда
либо применяется полностью, либо отклоняется без изменений состояния.
"""

import logging
from typing import Any, Callable, Optional, Union

from src.core.domain.errors import (
    InvalidParameterError,
    OperationResult,
    StableTokenError,
)
from src.core.domain.events import (
    BaseEvent,
    ClockAdvancedEvent,
    DelegateUpdatedEvent,
    EventLog,
    GovernanceUpdatedEvent,
    PriceUpdatedEvent,
)
from src.core.domain.governance import GovernanceConfig
from src.core.domain.price_state import PriceState
from src.core.domain.snapshot import SystemSnapshot, TokenMetadata
from src.core.domain.token import GenesisConfig
from src.core.math.integer_math import is_uint
from src.governance.authority import (
    AdministratorPolicy,
    SingleAdministrator,
    require_administrator,
)
from src.governance.clock import LogicalClock
from src.ledger.ledger import Ledger
from src.stability.rebalance_engine import (
    RebalanceDecision,
    RebalanceEngine,
    RebalanceState,
)


logger = logging.getLogger(__name__)


def _require_uint_param(value: object, field: str) -> int:
    if not is_uint(value):
        raise InvalidParameterError(
            f"{field} must be an unsigned integer, got {value!r}", field=field
        )
    return value


class StableTokenSystem:
    """Elastic-supply stable token: ledger + rebalance engine."""

    def __init__(
        self,
        genesis: Optional[GenesisConfig] = None,
        governance: Optional[GovernanceConfig] = None,
        policy: Optional[AdministratorPolicy] = None,
        clock: Optional[LogicalClock] = None,
    ):
        """
        Args:
            genesis: начальное состояние (по умолчанию GenesisConfig())
            governance: governance-параметры (по умолчанию значения по умолчанию)
            policy: политика администратора (по умолчанию SingleAdministrator
                для genesis.administrator)
            clock: logical clock (по умолчанию height=0)
        """
        self.genesis = genesis or GenesisConfig()
        self.policy = policy or SingleAdministrator(self.genesis.administrator)
        self.clock = clock or LogicalClock()
        self.events = EventLog(height_source=lambda: self.clock.height)

        self.ledger = Ledger(
            self.policy.reserve_account, self.genesis.initial_supply, events=self.events
        )
        self.governance = governance if governance is not None else GovernanceConfig()
        self.price_state = PriceState(
            current_price=self.genesis.target_price,
            target_price=self.genesis.target_price,
        )
        self.rebalance_state = RebalanceState()
        self.engine = self._build_engine()

        logger.info(
            "stable token %s initialised: supply=%d, reserve=%s",
            self.genesis.symbol, self.genesis.initial_supply, self.policy.reserve_account,
        )

    def _build_engine(self) -> RebalanceEngine:
        return RebalanceEngine(
            ledger=self.ledger,
            price_state=self.price_state,
            config=self.governance,
            clock=self.clock,
            policy=self.policy,
            state=self.rebalance_state,
            events=self.events,
        )

    def _execute(self, operation: str, action: Callable[[], Any]) -> OperationResult:
        """Выполнение команды с конвертацией StableTokenError в tagged result.

        События команды публикуются только после её успешного завершения.
        """
        try:
            with self.events.transaction():
                value = action()
        except StableTokenError as e:
            logger.warning("%s rejected: %s (%s)", operation, e.code.value, e.message)
            return OperationResult.failure(e)
        return OperationResult.success(value)

    # =========================================================================
    # Метаданные и запросы
    # =========================================================================

    def get_name(self) -> str:
        return self.genesis.name

    def get_symbol(self) -> str:
        return self.genesis.symbol

    def get_decimals(self) -> int:
        return self.genesis.decimals

    def get_total_supply(self) -> int:
        return self.ledger.total_supply

    def get_balance(self, account: str) -> int:
        return self.ledger.balance_of(account)

    def get_current_price(self) -> int:
        return self.price_state.current_price

    def get_target_price(self) -> int:
        return self.price_state.target_price

    def price_deviation(self) -> int:
        return self.price_state.deviation()

    def needs_rebalance(self) -> bool:
        return self.engine.needs_rebalance()

    def evaluate_rebalance(self) -> RebalanceDecision:
        return self.engine.evaluate()

    def calculate_expansion_amount(self) -> int:
        return self.engine.calculate_expansion_amount()

    def calculate_contraction_amount(self) -> int:
        return self.engine.calculate_contraction_amount()

    def get_governance_config(self) -> GovernanceConfig:
        """Копия параметров (изменения — только через setters)."""
        return self.governance.model_copy()

    def get_last_rebalance_height(self) -> int:
        return self.rebalance_state.last_rebalance_height

    def get_block_height(self) -> int:
        return self.clock.height

    def is_approved_delegate(self, account: str) -> bool:
        return self.ledger.is_delegate(account)

    def is_administrator(self, caller: str) -> bool:
        return self.policy.is_administrator(caller)

    def subscribe(self, callback: Callable[[BaseEvent], None]) -> Callable[[], None]:
        """Подписка на события; возвращает функцию отписки."""
        return self.events.subscribe(callback)

    # =========================================================================
    # Ledger
    # =========================================================================

    def transfer(
        self,
        caller: str,
        amount: int,
        sender: str,
        recipient: str,
        memo: Union[bytes, str, None] = None,
    ) -> OperationResult:
        """Перевод от sender к recipient (caller — sender или delegate)."""

        def action() -> bool:
            self.ledger.transfer(amount, sender, recipient, caller=caller, memo=memo)
            return True

        return self._execute("transfer", action)

    def set_approved_delegate(self, caller: str, delegate: str, approved: bool) -> OperationResult:
        def action() -> bool:
            require_administrator(self.policy, caller, "set_approved_delegate")
            if not isinstance(approved, bool):
                raise InvalidParameterError(
                    f"approved must be bool, got {approved!r}", field="approved"
                )
            self.ledger.set_delegate(delegate, approved)
            self.events.emit(DelegateUpdatedEvent(delegate=delegate, approved=approved))
            return True

        return self._execute("set_approved_delegate", action)

    # =========================================================================
    # Oracle и clock (внешние коллабораторы)
    # =========================================================================

    def set_price(self, caller: str, price: int) -> OperationResult:
        """Замена текущей цены (admin only, без проверки границ)."""

        def action() -> bool:
            require_administrator(self.policy, caller, "set_price")
            _require_uint_param(price, "price")
            previous = self.price_state.set_price(price)
            self.events.emit(PriceUpdatedEvent(previous_price=previous, price=price))
            logger.info("price %d -> %d", previous, price)
            return True

        return self._execute("set_price", action)

    def advance_clock(self, caller: str, height: int) -> OperationResult:
        def action() -> bool:
            require_administrator(self.policy, caller, "advance_clock")
            _require_uint_param(height, "height")
            previous = self.clock.advance(height)
            self.events.emit(ClockAdvancedEvent(previous_height=previous))
            return True

        return self._execute("advance_clock", action)

    # =========================================================================
    # Rebalance
    # =========================================================================

    def rebalance(self, caller: Optional[str] = None) -> OperationResult:
        """Rebalance может вызвать любой актор.

        Returns:
            OperationResult с RebalanceResult (action, amount) или ошибкой
            RebalanceNotDue / ExpansionFailed / ContractionFailed
        """
        logger.debug("rebalance requested by %s", caller)
        return self._execute("rebalance", self.engine.rebalance)

    # =========================================================================
    # Governance
    # =========================================================================

    def _update_governance(self, caller: str, field: str, value: int) -> OperationResult:
        def action() -> bool:
            require_administrator(self.policy, caller, f"set {field}")
            previous = self.governance.update(field, value)
            self.events.emit(
                GovernanceUpdatedEvent(parameter=field, previous_value=previous, value=value)
            )
            logger.info("governance %s: %d -> %d", field, previous, value)
            return True

        return self._execute(f"set {field}", action)

    def set_expansion_threshold(self, caller: str, value: int) -> OperationResult:
        return self._update_governance(caller, "expansion_threshold", value)

    def set_contraction_threshold(self, caller: str, value: int) -> OperationResult:
        return self._update_governance(caller, "contraction_threshold", value)

    def set_cooldown(self, caller: str, value: int) -> OperationResult:
        return self._update_governance(caller, "rebalance_cooldown", value)

    def set_max_expansion_rate(self, caller: str, value: int) -> OperationResult:
        return self._update_governance(caller, "max_expansion_rate", value)

    def set_max_contraction_rate(self, caller: str, value: int) -> OperationResult:
        return self._update_governance(caller, "max_contraction_rate", value)

    # =========================================================================
    # Снапшот
    # =========================================================================

    def snapshot(self) -> SystemSnapshot:
        return SystemSnapshot(
            administrator=self.policy.reserve_account,
            token=TokenMetadata(
                name=self.genesis.name,
                symbol=self.genesis.symbol,
                decimals=self.genesis.decimals,
            ),
            balances=dict(self.ledger.accounts()),
            total_supply=self.ledger.total_supply,
            current_price=self.price_state.current_price,
            target_price=self.price_state.target_price,
            governance=self.governance.model_copy(),
            last_rebalance_height=self.rebalance_state.last_rebalance_height,
            block_height=self.clock.height,
            approved_delegates=self.ledger.delegates(),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SystemSnapshot,
        policy: Optional[AdministratorPolicy] = None,
    ) -> "StableTokenSystem":
        """Восстановление системы из снапшота (event log начинается пустым)."""
        system = cls.__new__(cls)
        system.genesis = GenesisConfig(
            administrator=snapshot.administrator,
            name=snapshot.token.name,
            symbol=snapshot.token.symbol,
            decimals=snapshot.token.decimals,
            initial_supply=snapshot.total_supply,
            target_price=snapshot.target_price,
        )
        system.policy = policy or SingleAdministrator(snapshot.administrator)
        system.clock = LogicalClock(snapshot.block_height)
        system.events = EventLog(height_source=lambda: system.clock.height)
        system.ledger = Ledger.restore(
            balances=snapshot.balances,
            total_supply=snapshot.total_supply,
            delegates=snapshot.approved_delegates,
            events=system.events,
        )
        system.governance = snapshot.governance.model_copy()
        system.price_state = PriceState(
            current_price=snapshot.current_price,
            target_price=snapshot.target_price,
        )
        system.rebalance_state = RebalanceState(
            last_rebalance_height=snapshot.last_rebalance_height
        )
        system.engine = system._build_engine()

        logger.info(
            "stable token %s restored: supply=%d, height=%d",
            system.genesis.symbol, snapshot.total_supply, snapshot.block_height,
        )
        return system
