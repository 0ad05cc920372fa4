"""Shared Kernel Domain Layer"""

from src.service.shared_kernel.domain.enum import JobKind, LedgerKind, LedgerStatus
from src.service.shared_kernel.domain.value_object import Job, ReceivedJob

__all__ = ['Job', 'JobKind', 'LedgerKind', 'LedgerStatus', 'ReceivedJob']
