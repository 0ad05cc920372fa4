from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class SignupCreateRequest(BaseModel):
    # Contact data is validated by the use case so errors share one format
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None

    model_config = {
        'json_schema_extra': {
            'examples': [
                {
                    'name': 'Asha Patel',
                    'email': 'asha@example.org',
                    'phone': '+1 555 0100',
                    'notes': 'Arriving 10 minutes late',
                },
                {'name': 'Ravi Kumar', 'email': 'ravi@example.org'},
            ]
        },
    }


class SignupSlotInfo(BaseModel):
    event_name: str
    date: date
    seva_name: str
    label: str


class SignupResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'slot_id': 12,
                'status': 'CONFIRMED',
                'cancel_token': 'kC9h0Zt2...',
                'created_at': '2025-01-10T10:30:00Z',
            }
        },
    }

    id: UUID
    slot_id: int
    status: str
    cancel_token: str
    created_at: Optional[datetime] = None
    slot: Optional[SignupSlotInfo] = None


class CancelResponse(BaseModel):
    id: UUID
    status: str
    cancelled_at: Optional[datetime] = None


class SlotViewResponse(BaseModel):
    slot_id: int
    seva_name: str
    label: str
    capacity: int
    filled_count: int
    remaining: int
    status: str


class DaySlotsResponse(BaseModel):
    event_public_id: str
    date: date
    slots: List[SlotViewResponse]
