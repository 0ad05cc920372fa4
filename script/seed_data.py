#!/usr/bin/env python3
"""
Database Seed Script
Populate an example event for local development

Features:
1. Create Event - one public event with two seva types
2. Create Days - SEED_DAYS consecutive days starting SEED_START_DATE
3. Create Slots - three shifts per seva per day, SEED_CAPACITY places each

Notes:
- Run `python script/reset_database.py` first for a clean schema
"""

import asyncio
from datetime import date, timedelta
import os

from sqlalchemy import func, select

from src.platform.database.orm_db_setting import Database, create_db_and_tables
from src.service.signup.driven_adapter.model import (
    DayModel,
    EventModel,
    SevaTypeModel,
    SignupModel,
    SlotModel,
)


EVENT_PUBLIC_ID = 'diwali-2025'
SEVA_TYPES = [
    ('Kitchen', 'Cooking and serving prasad'),
    ('Parking', 'Guiding cars and shuttles'),
]
SHIFTS = ['9:00-12:00', '12:00-15:00', '15:00-18:00']


def _seed_config() -> tuple[date, int, int]:
    start = date.fromisoformat(os.getenv('SEED_START_DATE', '2025-10-20'))
    days = int(os.getenv('SEED_DAYS', '2'))
    capacity = int(os.getenv('SEED_CAPACITY', '5'))
    return start, days, capacity


async def seed(database: Database) -> None:
    start, day_count, capacity = _seed_config()
    print(f'📊 {day_count} day(s) from {start}, {capacity} places per slot')

    async with database.session() as session:
        try:
            event = EventModel(
                public_id=EVENT_PUBLIC_ID,
                name='Diwali Mela',
                timezone='America/Chicago',
                shift_label='Morning',
            )
            session.add(event)
            await session.flush()
            print(f'   ✅ Created event: ID={event.id}, public_id={event.public_id}')

            seva_types = [
                SevaTypeModel(event_id=event.id, name=name, description=description)
                for name, description in SEVA_TYPES
            ]
            session.add_all(seva_types)
            await session.flush()

            for offset in range(day_count):
                day = DayModel(event_id=event.id, date=start + timedelta(days=offset))
                session.add(day)
                await session.flush()
                session.add_all(
                    SlotModel(
                        day_id=day.id,
                        seva_type_id=seva.id,
                        label=shift,
                        capacity=capacity,
                    )
                    for seva in seva_types
                    for shift in SHIFTS
                )
                print(f'   ✅ Created day {day.date} with {len(seva_types) * len(SHIFTS)} slots')

            await session.commit()
            print('✅ All data committed successfully!')

        except Exception as e:
            await session.rollback()
            print(f'❌ Rolling back: {e}')
            raise


async def verify_data(database: Database) -> None:
    print('🔍 Verifying seeded data...')
    async with database.session() as session:
        for model in (EventModel, SevaTypeModel, DayModel, SlotModel, SignupModel):
            count = await session.scalar(select(func.count()).select_from(model))
            print(f'   {model.__tablename__} count: {count}')


async def main() -> None:
    print('🌱 Starting data seeding...')
    print('=' * 50)

    database = Database()
    try:
        await create_db_and_tables(database)
        await seed(database)
        await verify_data(database)

        print()
        print('=' * 50)
        print('🌱 Data seeding completed!')
        print(f'📋 Slots: GET /api/public/events/{EVENT_PUBLIC_ID}/days/<date>/slots')

    except Exception as e:
        print(f'❌ Seeding failed: {e}')
        exit(1)

    finally:
        await database.dispose()


if __name__ == '__main__':
    asyncio.run(main())
