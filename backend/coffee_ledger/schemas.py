"""Pydantic schemas for API."""
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

UserRole = Literal["farmer", "mill", "cooperative", "exporter", "roaster", "retailer"]
ProcessingMethod = Literal["wet", "dry", "honey"]
Grade = Literal["AA", "AB", "C", "PB", "E"]
FacilityType = Literal["wet_mill", "dry_mill", "cooperative"]
PaymentMethod = Literal["m-pesa", "bank", "cash"]


class ApiModel(BaseModel):
    """camelCase on the wire (as the web client sends it), snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# User schemas
class UserCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    role: UserRole
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    cooperative_id: Optional[UUID] = None


class UserResponse(ApiModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    cooperative_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None


# Cooperative schemas
class CooperativeCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=20)


class CooperativeResponse(ApiModel):
    id: UUID
    name: str
    location: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: Optional[datetime] = None


# Farmer schemas
class FarmerCreate(ApiModel):
    user_id: UUID
    farm_id: str = Field(min_length=1, max_length=100)
    farm_size: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    location: Optional[str] = Field(default=None, max_length=255)
    cooperative_id: Optional[UUID] = None


class FarmerResponse(ApiModel):
    id: UUID
    user_id: UUID
    farm_id: str
    farm_size: Optional[Decimal] = None
    location: Optional[str] = None
    cooperative_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


# Coffee lot schemas
class LotCreate(ApiModel):
    farmer_id: UUID
    quantity: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    processing_method: ProcessingMethod
    grade: Optional[Grade] = None
    current_location: Optional[str] = Field(default=None, max_length=255)


class LotStatusUpdate(ApiModel):
    # Checked against the lot status enum in the use-case so unknown values get a stable code.
    status: str


class LotGradeUpdate(ApiModel):
    grade: Grade


class LotTraceRequest(ApiModel):
    payload: str = Field(min_length=1)


class LotResponse(ApiModel):
    id: UUID
    lot_id: str
    farmer_id: UUID
    quantity: Decimal
    grade: Optional[str] = None
    processing_method: str
    status: str
    qr_code: Optional[str] = None
    harvest_date: Optional[datetime] = None
    current_location: Optional[str] = None
    created_at: Optional[datetime] = None


# Inventory schemas
class InventoryCreate(ApiModel):
    lot_id: UUID
    facility_type: FacilityType
    facility_id: str = Field(min_length=1, max_length=100)
    quantity: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class InventoryQuantityUpdate(ApiModel):
    quantity: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class InventoryResponse(ApiModel):
    id: UUID
    lot_id: UUID
    facility_type: str
    facility_id: str
    quantity: Decimal
    updated_at: Optional[datetime] = None


# Auction schemas
class AuctionCreate(ApiModel):
    lot_id: UUID
    starting_price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    seller_id: UUID


class AuctionCancel(ApiModel):
    seller_id: UUID


class AuctionResponse(ApiModel):
    id: UUID
    lot_id: UUID
    starting_price: Decimal
    current_price: Optional[Decimal] = None
    leading_bidder_id: Optional[UUID] = None
    seller_id: UUID
    winner_id: Optional[UUID] = None
    status: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BidCreate(ApiModel):
    auction_id: UUID
    bidder_id: UUID
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class BidResponse(ApiModel):
    id: UUID
    auction_id: UUID
    bidder_id: UUID
    amount: Decimal
    bid_time: Optional[datetime] = None


# Payment schemas
class PaymentCreate(ApiModel):
    payer_id: UUID
    payee_id: UUID
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    lot_id: Optional[UUID] = None


class PaymentStatusUpdate(ApiModel):
    status: str


class PaymentResponse(ApiModel):
    id: UUID
    transaction_id: str
    lot_id: Optional[UUID] = None
    payer_id: UUID
    payee_id: UUID
    amount: Decimal
    status: str
    payment_method: str
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


# SMS schemas
class SmsSend(ApiModel):
    recipient_id: UUID
    phone: str = Field(min_length=1, max_length=20)
    message: str = Field(min_length=1, max_length=160)


class SmsResponse(ApiModel):
    id: UUID
    recipient_id: UUID
    phone: str
    message: str
    status: str
    attempts: int = 0
    last_error: Optional[str] = None
    provider_message_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# Dashboard
class DashboardStats(ApiModel):
    active_farmers: int
    coffee_lots: int
    total_inventory: Decimal
    active_auctions: int
