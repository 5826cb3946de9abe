"""SQLAlchemy models for cooperatives, farmers, lots, auctions, payments and SMS."""
from sqlalchemy import (
    Boolean, Column, String, Integer, DateTime, Text, Numeric, Uuid,
    ForeignKey, CheckConstraint, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from .database import Base

USER_ROLES = ('farmer', 'mill', 'cooperative', 'exporter', 'roaster', 'retailer')
LOT_STATUSES = (
    'harvested', 'wet_processing', 'dry_processing', 'quality_testing',
    'ready_for_auction', 'sold', 'exported', 'roasted', 'retail',
)
LOT_GRADES = ('AA', 'AB', 'C', 'PB', 'E')
PROCESSING_METHODS = ('wet', 'dry', 'honey')
FACILITY_TYPES = ('wet_mill', 'dry_mill', 'cooperative')
AUCTION_STATUSES = ('active', 'closed', 'cancelled')
PAYMENT_STATUSES = ('pending', 'processing', 'completed', 'failed')
PAYMENT_METHODS = ('m-pesa', 'bank', 'cash')
SMS_STATUSES = ('pending', 'sent', 'failed')


class Cooperative(Base):
    """Cooperative society that farmers and users belong to."""
    __tablename__ = "cooperatives"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    members = relationship("User", back_populates="cooperative")
    farmers = relationship("Farmer", back_populates="cooperative")


class User(Base):
    """Supply-chain actor (farmer, mill, exporter, ...)."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, index=True)
    cooperative_id = Column(Uuid, ForeignKey("cooperatives.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(role.in_(USER_ROLES), name='chk_user_role'),
    )

    # Relationships
    cooperative = relationship("Cooperative", back_populates="members")


class Farmer(Base):
    """Farmer profile; one per user."""
    __tablename__ = "farmers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    farm_id = Column(String(100), unique=True, nullable=False)
    farm_size = Column(Numeric(10, 2), nullable=True)
    location = Column(String(255), nullable=True)
    cooperative_id = Column(Uuid, ForeignKey("cooperatives.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    cooperative = relationship("Cooperative", back_populates="farmers")


class CoffeeLot(Base):
    """Harvested batch of coffee tracked from farm to retail."""
    __tablename__ = "coffee_lots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lot_id = Column(String(64), unique=True, nullable=False, index=True)
    farmer_id = Column(Uuid, nullable=False, index=True)
    quantity = Column(Numeric(10, 2), nullable=False)
    grade = Column(String(4), nullable=True)
    processing_method = Column(String(20), nullable=False)
    status = Column(String(30), nullable=False, default='harvested', index=True)
    qr_code = Column(Text, nullable=True)
    harvest_date = Column(DateTime(timezone=True), server_default=func.now())
    current_location = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(quantity > 0, name='chk_lot_quantity_positive'),
        CheckConstraint(status.in_(LOT_STATUSES), name='chk_lot_status'),
        CheckConstraint(processing_method.in_(PROCESSING_METHODS), name='chk_lot_processing_method'),
        CheckConstraint('grade IS NULL OR grade IN (\'AA\', \'AB\', \'C\', \'PB\', \'E\')', name='chk_lot_grade'),
    )

    # Relationships
    inventory = relationship("InventoryRecord", back_populates="lot")
    auctions = relationship("Auction", back_populates="lot")


class InventoryRecord(Base):
    """Quantity of a lot held at one facility."""
    __tablename__ = "inventory"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lot_id = Column(Uuid, ForeignKey("coffee_lots.id"), nullable=False, index=True)
    facility_type = Column(String(50), nullable=False)
    facility_id = Column(String(100), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(quantity >= 0, name='chk_inventory_quantity_non_negative'),
        CheckConstraint(facility_type.in_(FACILITY_TYPES), name='chk_inventory_facility_type'),
        UniqueConstraint('lot_id', 'facility_id', name='uq_inventory_lot_facility'),
        Index('idx_inventory_facility', 'facility_type', 'facility_id'),
    )

    # Relationships
    lot = relationship("CoffeeLot", back_populates="inventory")


class Auction(Base):
    """Single-lot auction."""
    __tablename__ = "auctions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lot_id = Column(Uuid, ForeignKey("coffee_lots.id"), nullable=False, index=True)
    starting_price = Column(Numeric(10, 2), nullable=False)
    current_price = Column(Numeric(10, 2), nullable=True)
    # Non-authoritative: highest bidder so far. winner_id is only set on close.
    leading_bidder_id = Column(Uuid, nullable=True)
    seller_id = Column(Uuid, nullable=False, index=True)
    winner_id = Column(Uuid, nullable=True)
    status = Column(String(20), nullable=False, default='active', index=True)
    start_time = Column(DateTime(timezone=True), server_default=func.now())
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(starting_price > 0, name='chk_auction_starting_price_positive'),
        CheckConstraint(status.in_(AUCTION_STATUSES), name='chk_auction_status'),
    )

    # Relationships
    lot = relationship("CoffeeLot", back_populates="auctions")
    bids = relationship("Bid", back_populates="auction")


class Bid(Base):
    """Append-only bid record."""
    __tablename__ = "bids"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    auction_id = Column(Uuid, ForeignKey("auctions.id"), nullable=False, index=True)
    bidder_id = Column(Uuid, nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    bid_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(amount > 0, name='chk_bid_amount_positive'),
    )

    # Relationships
    auction = relationship("Auction", back_populates="bids")


class Payment(Base):
    """Monetary transfer between two users, optionally for a lot."""
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id = Column(String(64), unique=True, nullable=False, index=True)
    lot_id = Column(Uuid, ForeignKey("coffee_lots.id"), nullable=True, index=True)
    payer_id = Column(Uuid, nullable=False, index=True)
    payee_id = Column(Uuid, nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default='pending', index=True)
    payment_method = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(amount > 0, name='chk_payment_amount_positive'),
        CheckConstraint(status.in_(PAYMENT_STATUSES), name='chk_payment_status'),
        CheckConstraint(payment_method.in_(PAYMENT_METHODS), name='chk_payment_method'),
    )


class SmsNotification(Base):
    """Outbound SMS with delivery status."""
    __tablename__ = "sms_notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id = Column(Uuid, nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default='pending', index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    provider_message_id = Column(String(64), nullable=True)
    # Pending rows are left to the retry sweep only once this has passed.
    next_attempt_at = Column(DateTime(timezone=True), nullable=True, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(status.in_(SMS_STATUSES), name='chk_sms_status'),
    )
