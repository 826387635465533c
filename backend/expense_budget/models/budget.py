from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from expense_budget.database import Base
from expense_budget.models.master import new_id

class BudgetItem(Base):
    """Budget line for one fiscal year, attached to an event and an expense category"""
    __tablename__ = "trn_budget_item"

    budget_item_id = Column(String(36), primary_key=True, default=new_id)
    fiscal_year = Column(Integer, nullable=False, index=True)
    budget_item_code = Column(String(50), nullable=False, index=True)
    budget_item_name = Column(String(100), nullable=False)
    event_id = Column(String(36), ForeignKey("mst_event.event_id"), nullable=False, index=True)
    expense_category_id = Column(String(36), ForeignKey("mst_expense_category.expense_category_id"), nullable=False, index=True)
    actual_finalized_flg = Column(Boolean, nullable=False, default=False)
    actual_finalized_at = Column(DateTime, nullable=True)  # Set on finalize, cleared on unfinalize
    del_flg = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event")
    expense_category = relationship("ExpenseCategory")
    budget_monthlies = relationship("BudgetMonthly", back_populates="budget_item", order_by="BudgetMonthly.fiscal_month")
    actual_monthlies = relationship("ActualMonthly", back_populates="budget_item", order_by="ActualMonthly.fiscal_month")

class BudgetMonthly(Base):
    __tablename__ = "trn_budget_monthly"

    budget_monthly_id = Column(String(36), primary_key=True, default=new_id)
    budget_item_id = Column(String(36), ForeignKey("trn_budget_item.budget_item_id"), nullable=False)
    fiscal_month = Column(Integer, nullable=False)  # 1..12
    budget_amount = Column(Integer, nullable=False, default=0)
    del_flg = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    budget_item = relationship("BudgetItem", back_populates="budget_monthlies")

    __table_args__ = (UniqueConstraint("budget_item_id", "fiscal_month", name="_budget_item_month_uc"),)

class ActualMonthly(Base):
    __tablename__ = "trn_actual_monthly"

    actual_monthly_id = Column(String(36), primary_key=True, default=new_id)
    budget_item_id = Column(String(36), ForeignKey("trn_budget_item.budget_item_id"), nullable=False)
    fiscal_month = Column(Integer, nullable=False)  # 1..12
    actual_amount = Column(Integer, nullable=False, default=0)
    del_flg = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    budget_item = relationship("BudgetItem", back_populates="actual_monthlies")

    __table_args__ = (UniqueConstraint("budget_item_id", "fiscal_month", name="_actual_item_month_uc"),)
