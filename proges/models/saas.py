# proges/models/saas.py

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from proges.database import Base


class SaasPlan(Base):
    __tablename__ = "saas_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    price_monthly = Column(Numeric(12, 2), nullable=False, default=0)
    price_yearly = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="FCFA")

    features = Column(JSON, nullable=False, default=list)

    # Payment gateway endpoint used to initiate a purchase of this plan
    api_url = Column(String, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'trial', 'expired', 'cancelled')",
            name="ck_subscription_status_valid",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    plan_id = Column(Integer, ForeignKey("saas_plans.id"), nullable=True)

    status = Column(String, nullable=False, default="trial")

    current_period_start = Column(DateTime(timezone=True), nullable=True)
    # NULL for lifetime plans
    current_period_end = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    plan = relationship("SaasPlan")


class PaymentIntent(Base):
    """
    A plan purchase started by a user, keyed by the orderId sent to the gateway.

    The callback activates what was recorded here, never what the query
    string asks for. A confirmed gateway token completes one intent only.
    """
    __tablename__ = "payment_intents"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_payment_intent_status_valid",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    order_id = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("saas_plans.id"), nullable=False)

    billing_cycle = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    status = Column(String, nullable=False, default="pending")
    # Gateway token that confirmed this intent
    token = Column(String, nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
