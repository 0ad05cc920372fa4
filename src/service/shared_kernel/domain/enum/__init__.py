"""Shared Kernel Enums"""

from src.service.shared_kernel.domain.enum.job_kind import JobKind, LedgerKind, LedgerStatus

__all__ = ['JobKind', 'LedgerKind', 'LedgerStatus']
