from sqlalchemy import Column, Date, Integer, Numeric, DateTime, ForeignKey, String, JSON, UniqueConstraint, Uuid
import uuid
from vend_analytics.core.db import Base
from sqlalchemy.sql import func

class SalesRecord(Base):
    """
    One normalized row of a sales-rollup export. Append-only: rows are never
    updated, and a re-imported row is rejected by its fingerprint.
    Fields:
        - period_start / period_end: reporting window of the upload
        - payment_method: raw "Trans Type Name" text
        - payment_category: one of PAYMENT_CATEGORIES
        - amount: net revenue
        - two_tier_pricing, loyalty_discount, purchase_discount,
          free_product_discount: adjustment columns
        - fingerprint: dedup key, unique per account
        - raw_data: the CSV row exactly as uploaded
    """
    __tablename__ = "sales_records"
    __table_args__ = (
        UniqueConstraint("account_id", "fingerprint", name="uq_sales_account_fingerprint"),
    )
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    upload_id = Column(Uuid, ForeignKey("upload_jobs.id"), nullable=True)
    region_id = Column(Uuid, ForeignKey("regions.id"), nullable=True)
    location_id = Column(Uuid, ForeignKey("locations.id"), nullable=True)
    machine_id = Column(Uuid, ForeignKey("machines.id"), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    product_type = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    payment_category = Column(String, nullable=False, default="other")
    tran_count = Column(Integer, nullable=False, default=0)
    vend_count = Column(Integer, nullable=False, default=0)
    amount = Column(Numeric(14, 2), nullable=False, default=0)
    two_tier_pricing = Column(Numeric(14, 2), nullable=False, default=0)
    loyalty_discount = Column(Numeric(14, 2), nullable=False, default=0)
    campaign_name = Column(String, nullable=True)
    purchase_discount = Column(Numeric(14, 2), nullable=False, default=0)
    free_product_discount = Column(Numeric(14, 2), nullable=False, default=0)
    fingerprint = Column(String, nullable=False)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
