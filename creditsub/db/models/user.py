from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from creditsub.db.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    credits = Column(Integer, nullable=False, default=0, server_default="0")

    stripe_customer_id = Column(String, nullable=True, index=True)
    # Single default instrument; replaces a per-row is_default flag
    default_payment_method_id = Column(
        Integer,
        ForeignKey("payment_methods.id", use_alter=True, name="fk_users_default_payment_method_id"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
    )
