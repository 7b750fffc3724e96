"""
Pydantic schemas for request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from buildcost.models import CategoryName, SyncFrequency


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Categories ---

class CategoryCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: CategoryName
    description: str = Field(..., min_length=1)


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[CategoryName] = None
    description: Optional[str] = Field(None, min_length=1)
    active: Optional[bool] = None


class CategoryOut(ORMModel):
    id: int
    name: str
    description: str
    active: bool


# --- Components ---

class ComponentCreate(BaseModel):
    """Input schema for adding a component to the catalog."""

    category_id: int
    brand: str = Field(..., min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    specifications: Dict[str, str] = Field(..., description="Attribute name to value")
    image_url: str = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "category_id": 1,
                "brand": "Intel",
                "model": "i9-12900K",
                "title": "Intel Core i9-12900K",
                "description": "High-end desktop processor",
                "specifications": {"cores": "16", "threads": "24", "baseFrequency": "3.2 GHz"},
                "image_url": "https://example.com/i9-12900k.jpg",
            }
        }
    )


class ComponentUpdate(BaseModel):
    category_id: Optional[int] = None
    brand: Optional[str] = Field(None, min_length=1, max_length=255)
    model: Optional[str] = Field(None, min_length=1, max_length=255)
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None
    image_url: Optional[str] = None
    active: Optional[bool] = None


class ComponentOut(ORMModel):
    id: int
    category_id: int
    brand: str
    model: str
    title: str
    description: str
    specifications: Dict[str, str]
    image_url: str
    active: bool


class MerchantPriceOut(BaseModel):
    """A merchant offer shown on a component page."""

    price_id: int
    merchant_id: int
    merchant_name: str
    unit_price: float
    product_url: str
    in_stock: bool
    last_updated: datetime


class ComponentDetailOut(ComponentOut):
    category: CategoryOut
    prices: List[MerchantPriceOut] = Field(default_factory=list)


# --- Merchants ---

class MerchantCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=500)
    api_key: str = Field(..., min_length=1, description="Write-only, never returned")
    commission_rate: Decimal = Field(..., ge=0, le=100)
    active: bool = True
    sync_frequency: SyncFrequency = SyncFrequency.DAILY


class MerchantUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, min_length=1, max_length=500)
    api_key: Optional[str] = Field(None, min_length=1)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    active: Optional[bool] = None
    sync_frequency: Optional[SyncFrequency] = None
    last_sync: Optional[datetime] = None


class MerchantOut(ORMModel):
    id: int
    name: str
    url: str
    commission_rate: float
    active: bool
    sync_frequency: str
    last_sync: Optional[datetime] = None


# --- Prices ---

class PriceCreate(BaseModel):
    component_id: int
    merchant_id: int
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    product_url: str = Field(..., min_length=1)
    in_stock: bool = True


class PriceUpdate(BaseModel):
    unit_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    product_url: Optional[str] = Field(None, min_length=1)
    in_stock: Optional[bool] = None


class PriceOut(ORMModel):
    id: int
    component_id: int
    merchant_id: int
    unit_price: float
    product_url: str
    in_stock: bool
    last_updated: datetime


# --- Configurations ---

class LineItemRequest(BaseModel):
    """
    One requested build line.

    `price` is the client's value; it is replaced by the merchant's listed
    price whenever `selected_merchant_id` has one.
    """

    component_id: int
    selected_merchant_id: Optional[int] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)


class ConfigurationCreate(BaseModel):
    """Input schema for saving a build."""

    name: str = Field(..., min_length=2, max_length=100)
    line_items: List[LineItemRequest]
    is_public: bool = False
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Gaming PC",
                "line_items": [
                    {"component_id": 1, "selected_merchant_id": 2, "price": 599.99}
                ],
                "is_public": False,
                "notes": "Quiet build",
            }
        }
    )


class ConfigurationUpdate(BaseModel):
    """Partial update. Omitted fields are left as stored."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    line_items: Optional[List[LineItemRequest]] = None
    is_public: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=1000)


class PriceCalculationRequest(BaseModel):
    line_items: List[LineItemRequest]


class LineItemOut(BaseModel):
    component_id: int
    component_title: str
    category_name: str
    selected_merchant_id: Optional[int] = None
    merchant_name: Optional[str] = None
    unit_price: float


class PriceCalculationOut(BaseModel):
    line_items: List[LineItemOut]
    total_price: float


class ConfigurationOut(BaseModel):
    id: int
    owner_id: int
    name: str
    line_items: List[LineItemOut]
    total_price: float
    is_public: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    """Error response schema."""

    status: str = Field(..., description="'fail' for expected errors, 'error' otherwise")
    message: str = Field(..., description="Error message")
