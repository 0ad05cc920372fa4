"""Shared Kernel Value Objects"""

from src.service.shared_kernel.domain.value_object.job import Job, ReceivedJob

__all__ = ['Job', 'ReceivedJob']
