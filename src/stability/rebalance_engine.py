"""Rebalance Engine — state machine управления supply.

Состояния не хранятся, а выводятся из данных при каждой оценке:
- IDLE: действие не требуется (cooldown не прошёл или цена в коридоре)
- EXPANSION_DUE: цена >= target + expansion_threshold, cooldown прошёл
- CONTRACTION_DUE: цена <= target - contraction_threshold, cooldown прошёл

Переход (rebalance):
- EXPANSION_DUE → mint(reserve, amount), запись last_rebalance_height
- CONTRACTION_DUE → burn(reserve, amount); при нехватке reserve отказ
  целиком (без частичного burn), cooldown НЕ продвигается
- IDLE → RebalanceNotDue

Расчёт amount (только целые числа, floor):
    deviation_permille = floor(|price - target| * 1000 / target)
    rate = min(deviation_permille, max_rate)
    amount = floor(total_supply * rate / 1000)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.core.domain.errors import (
    ContractionFailedError,
    ExpansionFailedError,
    InsufficientReserveError,
    RebalanceNotDueError,
)
from src.core.domain.events import ContractionEvent, EventLog, ExpansionEvent
from src.core.domain.governance import GovernanceConfig
from src.core.domain.price_state import PriceState
from src.core.math.integer_math import (
    ArithmeticOverflowError,
    apply_permille,
    capped_deviation_permille,
    checked_add,
)
from src.governance.authority import AdministratorPolicy
from src.governance.clock import LogicalClock
from src.ledger.ledger import Ledger


logger = logging.getLogger(__name__)


class RebalancePhase(str, Enum):
    """Производное состояние движка."""

    IDLE = "IDLE"
    EXPANSION_DUE = "EXPANSION_DUE"
    CONTRACTION_DUE = "CONTRACTION_DUE"


class RebalanceAction(str, Enum):
    """Действие успешного rebalance."""

    EXPANSION = "expansion"
    CONTRACTION = "contraction"


@dataclass
class RebalanceState:
    """Изменяется только как побочный эффект успешного rebalance."""

    last_rebalance_height: int = 0


@dataclass(frozen=True)
class RebalanceDecision:
    """Результат оценки (без побочных эффектов)."""

    phase: RebalancePhase
    needs_rebalance: bool
    cooldown_passed: bool
    price_high: bool
    price_low: bool

    height: int
    last_rebalance_height: int
    blocks_until_eligible: int

    # Диагностика
    reason: str
    details: str


@dataclass(frozen=True)
class RebalanceResult:
    """Результат успешного rebalance."""

    action: RebalanceAction
    amount: int
    rate_permille: int
    price: int

    previous_rebalance_height: int
    rebalance_height: int
    total_supply_before: int
    total_supply_after: int

    details: str


class RebalanceEngine:
    """Rebalance state machine поверх Ledger.

    Движок читает PriceState, GovernanceConfig и LogicalClock по ссылке,
    поэтому изменения параметров видны при следующей оценке без
    пересоздания движка.
    """

    def __init__(
        self,
        ledger: Ledger,
        price_state: PriceState,
        config: GovernanceConfig,
        clock: LogicalClock,
        policy: AdministratorPolicy,
        state: Optional[RebalanceState] = None,
        events: Optional[EventLog] = None,
    ):
        """
        Args:
            ledger: ledger для mint/burn
            price_state: текущая и целевая цена
            config: governance-параметры
            clock: источник logical height
            policy: политика администратора (reserve account)
            state: состояние rebalance (по умолчанию last_rebalance_height=0)
            events: лог событий (по умолчанию лог ledger)
        """
        self.ledger = ledger
        self.price_state = price_state
        self.config = config
        self.clock = clock
        self.policy = policy
        self.state = state or RebalanceState()
        self.events = events if events is not None else ledger.events

    # -------------------------------------------------------------------------
    # Условия перехода
    # -------------------------------------------------------------------------

    def _cooldown_passed(self, height: int) -> bool:
        """height - last >= cooldown; height ниже last → cooldown не прошёл."""
        last = self.state.last_rebalance_height
        if height < last:
            return False
        return height - last >= self.config.rebalance_cooldown

    def _price_high(self) -> bool:
        """current >= target + expansion_threshold (граница вне uint128 → False)."""
        try:
            upper = checked_add(self.price_state.target_price, self.config.expansion_threshold)
        except ArithmeticOverflowError:
            return False
        return self.price_state.current_price >= upper

    def _price_low(self) -> bool:
        """current <= target - contraction_threshold (threshold > target → False)."""
        target = self.price_state.target_price
        threshold = self.config.contraction_threshold
        if threshold > target:
            return False
        return self.price_state.current_price <= target - threshold

    def evaluate(self) -> RebalanceDecision:
        """Оценка производного состояния без побочных эффектов."""
        height = self.clock.height
        last = self.state.last_rebalance_height
        cooldown = self.config.rebalance_cooldown

        cooldown_passed = self._cooldown_passed(height)
        price_high = self._price_high()
        price_low = self._price_low()

        if height < last:
            blocks_until_eligible = last + cooldown - height
        else:
            blocks_until_eligible = max(0, cooldown - (height - last))

        if not cooldown_passed:
            phase = RebalancePhase.IDLE
            reason = "cooldown_active"
        elif price_high:
            # Экспансия приоритетнее, если оба условия истинны
            phase = RebalancePhase.EXPANSION_DUE
            reason = "price_above_expansion_threshold"
        elif price_low:
            phase = RebalancePhase.CONTRACTION_DUE
            reason = "price_below_contraction_threshold"
        else:
            phase = RebalancePhase.IDLE
            reason = "price_within_band"

        decision = RebalanceDecision(
            phase=phase,
            needs_rebalance=phase != RebalancePhase.IDLE,
            cooldown_passed=cooldown_passed,
            price_high=price_high,
            price_low=price_low,
            height=height,
            last_rebalance_height=last,
            blocks_until_eligible=blocks_until_eligible,
            reason=reason,
            details=(
                f"price={self.price_state.current_price}, target={self.price_state.target_price}, "
                f"height={height}, last={last}, cooldown={cooldown}"
            ),
        )
        logger.debug("rebalance evaluation: %s (%s)", phase.value, decision.details)
        return decision

    def needs_rebalance(self) -> bool:
        return self.evaluate().needs_rebalance

    # -------------------------------------------------------------------------
    # Расчёт amount
    # -------------------------------------------------------------------------

    def expansion_rate(self) -> int:
        """min(deviation_permille, max_expansion_rate); 0 если цена не выше target."""
        if not self.price_state.is_above_target():
            return 0
        return capped_deviation_permille(
            self.price_state.current_price,
            self.price_state.target_price,
            self.config.max_expansion_rate,
        )

    def contraction_rate(self) -> int:
        """min(deviation_permille, max_contraction_rate); 0 если цена не ниже target."""
        if not self.price_state.is_below_target():
            return 0
        return capped_deviation_permille(
            self.price_state.current_price,
            self.price_state.target_price,
            self.config.max_contraction_rate,
        )

    def calculate_expansion_amount(self) -> int:
        return apply_permille(self.ledger.total_supply, self.expansion_rate())

    def calculate_contraction_amount(self) -> int:
        return apply_permille(self.ledger.total_supply, self.contraction_rate())

    # -------------------------------------------------------------------------
    # Переход
    # -------------------------------------------------------------------------

    def rebalance(self) -> RebalanceResult:
        """Выполнение перехода.

        Raises:
            RebalanceNotDueError: состояние IDLE
            ExpansionFailedError: mint отклонён (переполнение uint128)
            ContractionFailedError: reserve меньше amount контракции
        """
        decision = self.evaluate()
        if not decision.needs_rebalance:
            logger.warning("rebalance rejected: %s (%s)", decision.reason, decision.details)
            raise RebalanceNotDueError(
                f"rebalance not due: {decision.reason}, "
                f"blocks_until_eligible={decision.blocks_until_eligible}"
            )

        # Mint/Burn и Expansion/Contraction публикуются после записи
        # last_rebalance_height
        with self.events.transaction():
            if decision.price_high:
                return self._expand(decision)
            return self._contract(decision)

    def _expand(self, decision: RebalanceDecision) -> RebalanceResult:
        reserve = self.policy.reserve_account
        supply_before = self.ledger.total_supply
        price = self.price_state.current_price

        try:
            rate = self.expansion_rate()
            amount = apply_permille(supply_before, rate)
            supply_after = self.ledger.mint(reserve, amount)
        except ArithmeticOverflowError as e:
            logger.error("expansion failed: %s", e)
            raise ExpansionFailedError(f"expansion mint failed: {e}") from e

        self.state.last_rebalance_height = decision.height
        self.events.emit(
            ExpansionEvent(amount=amount, price=price, rate_permille=rate, total_supply=supply_after)
        )
        logger.info(
            "expansion: +%d (rate=%d‰), supply %d -> %d at height %d",
            amount, rate, supply_before, supply_after, decision.height,
        )

        return RebalanceResult(
            action=RebalanceAction.EXPANSION,
            amount=amount,
            rate_permille=rate,
            price=price,
            previous_rebalance_height=decision.last_rebalance_height,
            rebalance_height=decision.height,
            total_supply_before=supply_before,
            total_supply_after=supply_after,
            details=f"Expansion by {rate} permille, minted to {reserve}",
        )

    def _contract(self, decision: RebalanceDecision) -> RebalanceResult:
        reserve = self.policy.reserve_account
        supply_before = self.ledger.total_supply
        price = self.price_state.current_price

        try:
            rate = self.contraction_rate()
            amount = apply_permille(supply_before, rate)
            supply_after = self.ledger.burn(reserve, amount)
        except (InsufficientReserveError, ArithmeticOverflowError) as e:
            # Cooldown не продвигается: повтор на следующем вызове
            logger.warning("contraction failed: %s", e)
            raise ContractionFailedError(f"contraction burn failed: {e}") from e

        self.state.last_rebalance_height = decision.height
        self.events.emit(
            ContractionEvent(amount=amount, price=price, rate_permille=rate, total_supply=supply_after)
        )
        logger.info(
            "contraction: -%d (rate=%d‰), supply %d -> %d at height %d",
            amount, rate, supply_before, supply_after, decision.height,
        )

        return RebalanceResult(
            action=RebalanceAction.CONTRACTION,
            amount=amount,
            rate_permille=rate,
            price=price,
            previous_rebalance_height=decision.last_rebalance_height,
            rebalance_height=decision.height,
            total_supply_before=supply_before,
            total_supply_after=supply_after,
            details=f"Contraction by {rate} permille, burned from {reserve}",
        )
