from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.jury.models import Base


class Options(Base):
    __tablename__ = "options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Sequential table counter (next number handed out when grouping is off).
    curr_table_num: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    num_groups: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    # One entry per group except the last, which is open-ended.
    group_sizes: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    # Next table number per group.
    group_table_nums: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    multi_group: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    manual_switches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
