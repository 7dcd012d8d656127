"""Authority — capability-проверка администратора.

Движок и ledger не сравнивают identity напрямую: они спрашивают
AdministratorPolicy.is_administrator(caller). Это позволяет заменить
single-key модель на multi-key или policy-based без изменения логики.
"""

from typing import Protocol, runtime_checkable

from src.core.domain.errors import OwnerOnlyError


@runtime_checkable
class AdministratorPolicy(Protocol):
    """Политика авторизации административных операций."""

    @property
    def reserve_account(self) -> str:
        """Аккаунт reserve (источник burn, получатель mint)."""
        ...

    def is_administrator(self, caller: str) -> bool:
        ...


class SingleAdministrator:
    """Один доверенный администратор; его аккаунт служит reserve."""

    def __init__(self, administrator: str):
        if not administrator:
            raise ValueError("administrator must be a non-empty account id")
        self._administrator = administrator

    @property
    def reserve_account(self) -> str:
        return self._administrator

    def is_administrator(self, caller: str) -> bool:
        return caller == self._administrator

    def __repr__(self) -> str:
        return f"SingleAdministrator({self._administrator!r})"


def require_administrator(policy: AdministratorPolicy, caller: str, operation: str) -> None:
    """
    Raises:
        OwnerOnlyError: caller не администратор
    """
    if not policy.is_administrator(caller):
        raise OwnerOnlyError(f"{operation} is restricted to the administrator, caller={caller}")
