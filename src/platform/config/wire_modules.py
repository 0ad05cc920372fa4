"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.signup.app.command import cancel_signup_use_case, reserve_slot_use_case
from src.service.signup.app.query import get_signup_detail_use_case, list_day_slots_use_case
from src.service.signup.driving_adapter.http_controller import rate_limit, signup_controller


WIRE_MODULES: list[ModuleType] = [
    reserve_slot_use_case,
    cancel_signup_use_case,
    get_signup_detail_use_case,
    list_day_slots_use_case,
    signup_controller,
    rate_limit,
]
