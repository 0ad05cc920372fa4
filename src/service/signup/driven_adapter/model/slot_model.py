from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class SlotModel(Base):
    __tablename__ = 'slot'
    __table_args__ = (
        CheckConstraint('capacity > 0', name='ck_slot_capacity_positive'),
        CheckConstraint(
            'filled_count >= 0 AND filled_count <= capacity', name='ck_slot_filled_within_capacity'
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    day_id: Mapped[int] = mapped_column(Integer, ForeignKey('day.id'), nullable=False, index=True)
    seva_type_id: Mapped[int] = mapped_column(Integer, ForeignKey('seva_type.id'), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False, default='')
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    filled_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='ACTIVE')
