"""Governance — авторизация администратора и logical clock."""

from .authority import AdministratorPolicy, SingleAdministrator, require_administrator
from .clock import LogicalClock

__all__ = [
    "AdministratorPolicy",
    "SingleAdministrator",
    "require_administrator",
    "LogicalClock",
]
