"""
Tests для StableTokenSystem (публичная поверхность)

Проверяет:
1. Метаданные и начальное состояние
2. Transfer через OperationResult
3. Governance setters: OwnerOnly раньше InvalidParameter, статусы полей
4. Delegates, set_price, advance_clock
5. Полный сценарий экспансии с cooldown
6. Снапшот и восстановление
7. Подписчики и логирование
"""

import logging

import pytest

from src.core.domain import EventType, GenesisConfig, GovernanceConfig
from src.core.domain.errors import ErrorCategory, ErrorCode
from src.core.logging_config import LOG_LEVEL_ENV, configure_logging
from src.stability import RebalanceAction, RebalancePhase
from src.system import StableTokenSystem


ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
ALICE = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
BOB = "ST3MCFZCA4GKYBYKK790X3T1VEWRSBT7ZYYRNSHV3"
DELEGATE = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"

INITIAL_SUPPLY = 1_000_000_000_000
TARGET_PRICE = 1_000_000


@pytest.fixture
def system():
    return StableTokenSystem()


# =============================================================================
# МЕТАДАННЫЕ
# =============================================================================


class TestMetadata:
    """Метаданные и начальное состояние"""

    def test_token_metadata(self, system):
        assert system.get_name() == "AlgoStable"
        assert system.get_symbol() == "ASTB"
        assert system.get_decimals() == 6

    def test_initial_state(self, system):
        assert system.get_total_supply() == INITIAL_SUPPLY
        assert system.get_balance(ADMIN) == INITIAL_SUPPLY
        assert system.get_current_price() == TARGET_PRICE
        assert system.get_target_price() == TARGET_PRICE
        assert system.price_deviation() == 0
        assert system.get_last_rebalance_height() == 0
        assert system.get_block_height() == 0
        assert system.is_administrator(ADMIN)
        assert not system.is_administrator(ALICE)

    def test_not_due_at_genesis(self, system):
        assert not system.needs_rebalance()

    def test_custom_genesis(self):
        genesis = GenesisConfig(administrator=ALICE, initial_supply=500)
        system = StableTokenSystem(genesis=genesis)

        assert system.get_balance(ALICE) == 500
        assert system.get_balance(ADMIN) == 0
        assert system.is_administrator(ALICE)

    def test_governance_config_is_copy(self, system):
        config = system.get_governance_config()
        config.rebalance_cooldown = 1

        assert system.get_governance_config().rebalance_cooldown == 144


# =============================================================================
# TRANSFER
# =============================================================================


class TestTransfer:
    """Transfer через публичную поверхность"""

    def test_transfer_success(self, system):
        result = system.transfer(ADMIN, 5_000_000_000, ADMIN, ALICE)

        assert result.ok
        assert result.value is True
        assert system.get_balance(ALICE) == 5_000_000_000
        assert system.get_balance(ADMIN) == INITIAL_SUPPLY - 5_000_000_000

    def test_insufficient_balance_result(self, system):
        result = system.transfer(ALICE, 1, ALICE, BOB)

        assert not result.ok
        assert result.error_code == ErrorCode.INSUFFICIENT_BALANCE
        assert result.error.category == ErrorCategory.LEDGER
        assert result.error.status == 102

    def test_not_authorized_result(self, system):
        result = system.transfer(BOB, 1, ADMIN, ALICE)

        assert result.error_code == ErrorCode.NOT_AUTHORIZED
        assert system.get_balance(ADMIN) == INITIAL_SUPPLY

    def test_invalid_memo_result(self, system):
        result = system.transfer(ADMIN, 1, ADMIN, ALICE, memo="x" * 35)

        assert result.error_code == ErrorCode.INVALID_PARAMETER
        assert system.get_balance(ALICE) == 0

    def test_transfer_with_str_memo(self, system):
        result = system.transfer(ADMIN, 1, ADMIN, ALICE, memo="order #1")

        assert result.ok
        memo_event = system.events.last()
        assert memo_event.event_type == EventType.MEMO
        assert memo_event.memo == b"order #1"


# =============================================================================
# GOVERNANCE
# =============================================================================


class TestGovernance:
    """Governance setters"""

    @pytest.mark.parametrize(
        "setter,field,value",
        [
            ("set_expansion_threshold", "expansion_threshold", 75_000),
            ("set_contraction_threshold", "contraction_threshold", 25_000),
            ("set_cooldown", "rebalance_cooldown", 10),
            ("set_max_expansion_rate", "max_expansion_rate", 50),
            ("set_max_contraction_rate", "max_contraction_rate", 60),
        ],
    )
    def test_admin_updates(self, system, setter, field, value):
        result = getattr(system, setter)(ADMIN, value)

        assert result.ok
        assert getattr(system.get_governance_config(), field) == value
        event = system.events.last()
        assert event.event_type == EventType.GOVERNANCE_UPDATED
        assert event.parameter == field
        assert event.value == value

    @pytest.mark.parametrize(
        "setter,status",
        [
            ("set_expansion_threshold", 110),
            ("set_contraction_threshold", 111),
            ("set_cooldown", 112),
            ("set_max_expansion_rate", 113),
            ("set_max_contraction_rate", 114),
        ],
    )
    def test_zero_rejected_with_field_status(self, system, setter, status):
        before = system.get_governance_config()

        result = getattr(system, setter)(ADMIN, 0)

        assert result.error_code == ErrorCode.INVALID_PARAMETER
        assert result.error.status == status
        assert system.get_governance_config() == before
        assert len(system.events) == 0

    def test_owner_only_checked_before_validation(self, system):
        """Не-админ с невалидным значением получает OwnerOnly."""
        result = system.set_cooldown(ALICE, 0)

        assert result.error_code == ErrorCode.OWNER_ONLY
        assert result.error.status == 100
        assert result.error.category == ErrorCategory.AUTHORIZATION

    def test_non_admin_rejected(self, system):
        result = system.set_expansion_threshold(ALICE, 75_000)

        assert result.error_code == ErrorCode.OWNER_ONLY
        assert system.get_governance_config().expansion_threshold == 50_000

    def test_cooldown_change_applies_immediately(self, system):
        system.set_price(ADMIN, 1_100_000)
        system.advance_clock(ADMIN, 10)
        assert not system.needs_rebalance()

        system.set_cooldown(ADMIN, 10)

        assert system.needs_rebalance()


# =============================================================================
# DELEGATES / PRICE / CLOCK
# =============================================================================


class TestAdministrativeOperations:
    """Delegates, oracle и clock"""

    def test_delegate_approval(self, system):
        result = system.set_approved_delegate(ADMIN, DELEGATE, True)

        assert result.ok
        assert system.is_approved_delegate(DELEGATE)
        assert system.transfer(DELEGATE, 10, ADMIN, ALICE).ok

    def test_delegate_revocation(self, system):
        system.set_approved_delegate(ADMIN, DELEGATE, True)
        system.set_approved_delegate(ADMIN, DELEGATE, False)

        assert not system.is_approved_delegate(DELEGATE)
        assert system.transfer(DELEGATE, 10, ADMIN, ALICE).error_code == ErrorCode.NOT_AUTHORIZED

    def test_delegate_owner_only(self, system):
        result = system.set_approved_delegate(ALICE, DELEGATE, True)

        assert result.error_code == ErrorCode.OWNER_ONLY
        assert not system.is_approved_delegate(DELEGATE)

    def test_delegate_flag_must_be_bool(self, system):
        result = system.set_approved_delegate(ADMIN, DELEGATE, 1)
        assert result.error_code == ErrorCode.INVALID_PARAMETER

    def test_set_price(self, system):
        result = system.set_price(ADMIN, 1_080_000)

        assert result.ok
        assert system.get_current_price() == 1_080_000
        event = system.events.last()
        assert (event.previous_price, event.price) == (TARGET_PRICE, 1_080_000)

    def test_set_price_zero_allowed(self, system):
        assert system.set_price(ADMIN, 0).ok
        assert system.price_deviation() == TARGET_PRICE

    def test_set_price_owner_only(self, system):
        result = system.set_price(ALICE, 2_000_000)

        assert result.error_code == ErrorCode.OWNER_ONLY
        assert system.get_current_price() == TARGET_PRICE

    @pytest.mark.parametrize("price", [-1, 1.5, "1000000", None])
    def test_set_price_type_checked(self, system, price):
        result = system.set_price(ADMIN, price)

        assert result.error_code == ErrorCode.INVALID_PARAMETER
        assert system.get_current_price() == TARGET_PRICE

    def test_advance_clock(self, system):
        result = system.advance_clock(ADMIN, 500)

        assert result.ok
        assert system.get_block_height() == 500
        event = system.events.last()
        assert event.event_type == EventType.CLOCK_ADVANCED
        assert (event.previous_height, event.height) == (0, 500)

    def test_advance_clock_owner_only(self, system):
        assert system.advance_clock(ALICE, 500).error_code == ErrorCode.OWNER_ONLY
        assert system.get_block_height() == 0

    def test_clock_backwards_logged(self, system, caplog):
        system.advance_clock(ADMIN, 500)

        with caplog.at_level(logging.WARNING, logger="src.governance.clock"):
            result = system.advance_clock(ADMIN, 100)

        assert result.ok
        assert system.get_block_height() == 100
        assert "backwards" in caplog.text


# =============================================================================
# REBALANCE SCENARIO
# =============================================================================


class TestRebalanceScenario:
    """Полный сценарий: рост цены → экспансия → cooldown → повтор"""

    def test_expansion_cycle(self, system):
        system.advance_clock(ADMIN, 1000)
        system.set_price(ADMIN, 1_100_000)

        assert system.needs_rebalance()
        assert system.calculate_expansion_amount() == 100_000_000_000

        result = system.rebalance(ALICE)

        assert result.ok
        assert result.value.action == RebalanceAction.EXPANSION
        assert result.value.amount == 100_000_000_000
        assert system.get_total_supply() == 1_100_000_000_000
        assert system.get_balance(ADMIN) == 1_100_000_000_000
        assert system.get_last_rebalance_height() == 1000

        # Повтор в той же высоте — cooldown
        retry = system.rebalance()
        assert retry.error_code == ErrorCode.REBALANCE_NOT_DUE
        assert retry.error.status == 106
        assert system.get_total_supply() == 1_100_000_000_000

        # Ровно H + C — снова допускается
        system.advance_clock(ADMIN, 1144)
        assert system.evaluate_rebalance().phase == RebalancePhase.EXPANSION_DUE

        system.advance_clock(ADMIN, 1145)
        second = system.rebalance()
        assert second.ok
        assert second.value.amount == 110_000_000_000
        assert system.get_total_supply() == 1_210_000_000_000
        assert system.get_last_rebalance_height() == 1145

    def test_contraction_cycle(self, system):
        system.advance_clock(ADMIN, 200)
        system.set_price(ADMIN, 920_000)

        result = system.rebalance()

        assert result.ok
        assert result.value.action == RebalanceAction.CONTRACTION
        assert result.value.amount == 80_000_000_000
        assert system.get_total_supply() == 920_000_000_000

    def test_contraction_failed_keeps_state(self, system):
        system.transfer(ADMIN, INITIAL_SUPPLY - 10_000_000_000, ADMIN, ALICE)
        system.advance_clock(ADMIN, 200)
        system.set_price(ADMIN, 900_000)
        before = system.snapshot()
        events_before = len(system.events)

        result = system.rebalance()

        assert result.error_code == ErrorCode.CONTRACTION_FAILED
        assert result.error.category == ErrorCategory.ENGINE
        assert system.snapshot() == before
        assert len(system.events) == events_before
        assert system.get_last_rebalance_height() == 0

    def test_expansion_overflow_result(self):
        genesis = GenesisConfig(initial_supply=2**128 - 1)
        system = StableTokenSystem(genesis=genesis)
        system.advance_clock(ADMIN, 200)
        system.set_price(ADMIN, 1_100_000)

        result = system.rebalance()

        assert result.error_code == ErrorCode.EXPANSION_FAILED
        assert system.get_total_supply() == 2**128 - 1

    def test_rebalance_events(self, system):
        system.advance_clock(ADMIN, 200)
        system.set_price(ADMIN, 1_050_000)
        system.rebalance()

        types = [e.event_type for e in system.events]
        assert types == [
            EventType.CLOCK_ADVANCED,
            EventType.PRICE_UPDATED,
            EventType.MINT,
            EventType.EXPANSION,
        ]
        assert all(e.height == 200 for e in system.events.events()[1:])


# =============================================================================
# SNAPSHOT
# =============================================================================


class TestSnapshot:
    """Снапшот и восстановление"""

    def test_snapshot_reflects_state(self, system):
        system.transfer(ADMIN, 30, ADMIN, ALICE)
        system.set_approved_delegate(ADMIN, DELEGATE, True)

        snapshot = system.snapshot()

        assert snapshot.balances == {ADMIN: INITIAL_SUPPLY - 30, ALICE: 30}
        assert snapshot.total_supply == INITIAL_SUPPLY
        assert snapshot.approved_delegates == [DELEGATE]
        assert snapshot.governance == GovernanceConfig()

    def test_restore_round_trip(self, system):
        system.transfer(ADMIN, 30, ADMIN, ALICE)
        system.advance_clock(ADMIN, 1000)
        system.set_price(ADMIN, 1_100_000)
        system.rebalance()
        system.set_cooldown(ADMIN, 10)

        restored = StableTokenSystem.from_snapshot(system.snapshot())

        assert restored.snapshot() == system.snapshot()
        assert len(restored.events) == 0
        assert not restored.needs_rebalance()
        restored.advance_clock(ADMIN, 1010)
        assert restored.needs_rebalance()

    def test_restored_system_independent(self, system):
        restored = StableTokenSystem.from_snapshot(system.snapshot())

        restored.transfer(ADMIN, 5, ADMIN, ALICE)

        assert system.get_balance(ALICE) == 0
        assert restored.get_balance(ALICE) == 5


# =============================================================================
# SUBSCRIBERS / LOGGING
# =============================================================================


class TestObservability:
    """Подписчики и логирование"""

    def test_subscriber_receives_events(self, system):
        received = []
        unsubscribe = system.subscribe(received.append)

        system.transfer(ADMIN, 1, ADMIN, ALICE)
        unsubscribe()
        system.transfer(ADMIN, 1, ADMIN, ALICE)

        assert len(received) == 1
        assert received[0].event_type == EventType.TRANSFER

    def test_rejected_operation_not_published(self, system):
        received = []
        system.subscribe(received.append)

        system.set_price(ALICE, 5)

        assert received == []

    def test_failing_subscriber_on_rebalance(self, system, caplog):
        """Падающий подписчик не даёт второй экспансии в том же окне cooldown."""
        def fail_on_mint(event):
            if event.event_type == EventType.MINT:
                raise RuntimeError("listener down")

        unsubscribe = system.subscribe(fail_on_mint)
        system.advance_clock(ADMIN, 1000)
        system.set_price(ADMIN, 1_100_000)

        with caplog.at_level(logging.ERROR, logger="src.core.domain.events"):
            first = system.rebalance()

        assert first.ok
        assert system.get_total_supply() == 1_100_000_000_000
        assert system.get_last_rebalance_height() == 1000
        assert "listener down" in caplog.text

        unsubscribe()
        retry = system.rebalance()

        assert retry.error_code == ErrorCode.REBALANCE_NOT_DUE
        assert system.get_total_supply() == 1_100_000_000_000

    def test_failing_subscriber_on_memo_transfer(self, system):
        """Transfer и Memo публикуются вместе, даже если подписчик падает."""
        received = []

        def fail_on_transfer(event):
            if event.event_type == EventType.TRANSFER:
                raise RuntimeError("listener down")

        system.subscribe(fail_on_transfer)
        system.subscribe(received.append)

        result = system.transfer(ADMIN, 10, ADMIN, ALICE, memo=b"inv-1")

        assert result.ok
        assert system.get_balance(ALICE) == 10
        assert [e.event_type for e in system.events] == [EventType.TRANSFER, EventType.MEMO]
        assert [e.event_type for e in received] == [EventType.TRANSFER, EventType.MEMO]
        assert received[1].memo == b"inv-1"

    def test_rejected_transfer_publishes_nothing(self, system):
        received = []
        system.subscribe(received.append)

        system.transfer(ADMIN, 1, ADMIN, ALICE, memo=b"x" * 35)

        assert received == []
        assert len(system.events) == 0

    def test_huge_price_query_returns_capped_amount(self, system):
        system.set_price(ADMIN, 2**127)

        assert system.calculate_expansion_amount() == 100_000_000_000
        assert system.calculate_contraction_amount() == 0

    def test_rejection_logged(self, system, caplog):
        with caplog.at_level(logging.WARNING, logger="src.system.stable_token"):
            system.set_price(ALICE, 5)

        assert "OwnerOnly" in caplog.text

    def test_expansion_logged(self, system, caplog):
        system.advance_clock(ADMIN, 200)
        system.set_price(ADMIN, 1_100_000)

        with caplog.at_level(logging.INFO, logger="src.stability.rebalance_engine"):
            system.rebalance()

        assert "expansion" in caplog.text

    def test_configure_logging_from_env(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "debug")

        package_logger = configure_logging()

        assert package_logger.name == "src"
        assert package_logger.level == logging.DEBUG

    def test_configure_logging_idempotent(self):
        package_logger = configure_logging(logging.WARNING)
        handlers = len(package_logger.handlers)

        configure_logging(logging.INFO)

        assert len(package_logger.handlers) == handlers
        assert package_logger.level == logging.INFO
