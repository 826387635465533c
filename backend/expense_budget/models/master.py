from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
import uuid
from expense_budget.database import Base

def new_id() -> str:
    return str(uuid.uuid4())

class Event(Base):
    """Reporting event (quarter close, forecast round...)"""
    __tablename__ = "mst_event"

    event_id = Column(String(36), primary_key=True, default=new_id)
    event_code = Column(String(50), nullable=False, index=True)  # Unique among active rows
    event_name = Column(String(100), nullable=False)
    event_order = Column(Integer, nullable=False, default=0)
    del_flg = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class ExpenseCategory(Base):
    __tablename__ = "mst_expense_category"

    expense_category_id = Column(String(36), primary_key=True, default=new_id)
    expense_category_code = Column(String(50), nullable=False, index=True)
    expense_category_name = Column(String(100), nullable=False)
    del_flg = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
