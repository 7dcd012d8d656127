"""
Валидаторы JSON контрактов stable token

Контракты описывают то, что пересекает границу ядра:
- stable_token_state — снапшот персистентного состояния
- ledger_event — запись EventLog
- system_config — файл конфигурации genesis/governance

Схемы (Draft 2020-12) поставляются внутри пакета, в schema/.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import jsonschema
from jsonschema import Draft202012Validator

from src.core.domain.governance import GovernanceConfig
from src.core.domain.token import GenesisConfig


logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Чтение схем контрактов с диска.

    Каждая схема проходит meta-validation при первом чтении и затем
    отдаётся из кэша.
    """

    def __init__(self, schema_dir: Optional[Path] = None):
        self.schema_dir = Path(schema_dir) if schema_dir is not None else SCHEMA_DIR
        if not self.schema_dir.is_dir():
            raise RuntimeError(f"Contract schema directory is missing: {self.schema_dir}")
        self._cache: Dict[str, Dict[str, Any]] = {}

    def available(self) -> list[str]:
        """Имена схем в каталоге (без .json)."""
        return sorted(path.stem for path in self.schema_dir.glob("*.json"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundError: файла {schema_name}.json нет
            ValueError: схема не проходит meta-validation
        """
        cached = self._cache.get(schema_name)
        if cached is not None:
            return cached

        path = self.schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"No contract schema {schema_name!r} in {self.schema_dir}")

        schema = json.loads(path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Contract schema {schema_name!r} is not valid Draft 2020-12: {e.message}") from e

        self._cache[schema_name] = schema
        logger.debug("loaded contract schema %s", schema_name)
        return schema


_DEFAULT_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Проверка payload против одной схемы; подклассы задают schema_name."""

    schema_name: str = ""

    def __init__(self, loader: Optional[SchemaLoader] = None):
        self.schema = (loader or _DEFAULT_LOADER).load_schema(self.schema_name)
        self._validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: payload нарушает контракт
        """
        self._validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self._validator.iter_errors(data)


class StableTokenStateValidator(ContractValidator):
    schema_name = "stable_token_state"


class LedgerEventValidator(ContractValidator):
    schema_name = "ledger_event"


class SystemConfigValidator(ContractValidator):
    schema_name = "system_config"


# =============================================================================
# SHORTCUTS
# =============================================================================


def validate_stable_token_state(data: Dict[str, Any]) -> None:
    StableTokenStateValidator().validate(data)


def validate_ledger_event(data: Dict[str, Any]) -> None:
    LedgerEventValidator().validate(data)


def validate_system_config(data: Dict[str, Any]) -> None:
    SystemConfigValidator().validate(data)


def load_system_config(
    source: Union[str, Path, Dict[str, Any]],
) -> tuple[GenesisConfig, GovernanceConfig]:
    """
    Конфигурация системы из JSON файла или уже разобранного dict.

    Поля, которых нет в конфигурации, получают значения по умолчанию.

    Returns:
        (GenesisConfig, GovernanceConfig)

    Raises:
        ValidationError: конфигурация нарушает контракт system_config
    """
    if isinstance(source, dict):
        data = source
    else:
        data = json.loads(Path(source).read_text(encoding="utf-8"))

    validate_system_config(data)

    genesis = GenesisConfig(**data["genesis"])
    governance = GovernanceConfig.model_validate(data.get("governance", {}))
    logger.info(
        "loaded system config: administrator=%s, initial_supply=%d",
        genesis.administrator, genesis.initial_supply,
    )
    return genesis, governance
