"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.signup.driven_adapter.model.day_model import DayModel
from src.service.signup.driven_adapter.model.event_model import EventModel
from src.service.signup.driven_adapter.model.seva_type_model import SevaTypeModel
from src.service.signup.driven_adapter.model.signup_model import SignupModel
from src.service.signup.driven_adapter.model.slot_model import SlotModel

__all__ = [
    'DayModel',
    'EventModel',
    'SevaTypeModel',
    'SignupModel',
    'SlotModel',
]
