from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MessageOut(BaseModel):
    success: bool = True
    message: str


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class HealthOut(BaseModel):
    status: str
    database: str
    timestamp: datetime


# Admin

class AdminLoginIn(BaseModel):
    username: str = Field(max_length=100)
    password: str = Field(max_length=200)


class AdminLoginOut(BaseModel):
    admin_key: str
    access_token: Optional[str] = None
    token_type: Optional[str] = None


# Products

class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    old_price: Optional[float] = None
    rating: float = 4.0
    reviews: int = 0
    discount: float = 0
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    in_stock: bool
    stock: int = 0
    popular: bool = False
    featured: bool = False
    category: Optional[str] = None
    weight: str = ""
    brand: str = "BigandBest"
    shipping_amount: float = 0
    delivery_type: str = "nationwide"
    created_at: Optional[datetime] = None


class ProductDetailOut(ProductOut):
    video: Optional[str] = None
    specifications: Optional[Any] = None
    allowed_zone_ids: List[int] = Field(default_factory=list)


class ProductCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=300)
    price: float = Field(ge=0)
    category_id: int
    description: Optional[str] = None
    old_price: Optional[float] = Field(default=None, ge=0)
    discount: float = Field(default=0, ge=0, le=100)
    category: Optional[str] = None
    subcategory_id: Optional[int] = None
    group_id: Optional[int] = None
    brand_name: Optional[str] = None
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    uom: Optional[str] = None
    uom_value: Optional[float] = None
    uom_unit: Optional[str] = None
    shipping_amount: float = Field(default=0, ge=0)
    specifications: Optional[Dict[str, Any]] = None
    delivery_type: str = "nationwide"
    allowed_zone_ids: List[int] = Field(default_factory=list)
    warehouse_mapping_type: str = "nationwide"
    assigned_warehouse_ids: List[int] = Field(default_factory=list)
    fallback_warehouses: List[int] = Field(default_factory=list)
    enable_fallback: bool = True
    warehouse_notes: Optional[str] = None
    initial_stock: int = Field(default=0, ge=0)
    zone_distribution_quantity: int = Field(default=0, ge=0)
    auto_distribute_to_zones: bool = False
    minimum_threshold: int = Field(default=10, ge=0)
    cost_per_unit: Optional[float] = Field(default=None, ge=0)


class WarehouseAllocationOut(BaseModel):
    warehouse_id: int
    warehouse_name: str
    warehouse_type: str
    stock_quantity: int


class ProductCreateOut(BaseModel):
    success: bool = True
    message: str
    product: ProductDetailOut
    warehouse_assignments: List[WarehouseAllocationOut]
    total_warehouses: int


class WarehouseStockOut(BaseModel):
    warehouse_id: int
    warehouse_name: str
    warehouse_type: str
    stock_quantity: int
    reserved_quantity: int
    available_quantity: int
    minimum_threshold: int
    is_low_stock: bool
    is_active: bool
    last_restocked_at: Optional[datetime] = None


class StockSummaryOut(BaseModel):
    success: bool = True
    product_id: int
    product_name: str
    delivery_type: str
    total_stock: int
    total_reserved: int
    total_available: int
    warehouse_count: int
    low_stock_warehouses: int
    central: List[WarehouseStockOut]
    zonal: List[WarehouseStockOut]


class DistributeIn(BaseModel):
    quantity_per_zone: int = Field(default=50, ge=1)
    specific_zones: Optional[List[int]] = None
    force_distribution: bool = False


class DistributionResultOut(BaseModel):
    warehouse_id: int
    warehouse_name: str
    action: str
    quantity: int


class DistributeOut(BaseModel):
    success: bool = True
    message: str
    product_id: int
    results: List[DistributionResultOut]
    summary: Dict[str, int]


# Warehouses

class WarehouseIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: str
    location: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = Field(default=None, max_length=30)
    contact_email: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True


class WarehouseOut(BaseModel):
    id: int
    name: str
    type: str
    location: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    zone_ids: List[int] = Field(default_factory=list)


class WarehouseZoneIn(BaseModel):
    zone_id: int
    priority: int = Field(default=1, ge=1)
    is_active: bool = True


class ProductWarehouseMapIn(BaseModel):
    product_id: int
    warehouse_id: int


class WarehouseForProductOut(BaseModel):
    id: int
    name: str
    type: str
    location: Optional[str] = None
    pincode: Optional[str] = None
    is_active: bool


class ProductForWarehouseOut(BaseModel):
    id: int
    name: str
    price: float
    active: bool


class BulkMapIn(BaseModel):
    warehouse_name: str = Field(min_length=1)
    product_names: List[str] = Field(min_length=1)


class BulkMapOut(BaseModel):
    success: bool = True
    message: str
    mapped_count: int
    not_found: List[str] = Field(default_factory=list)


# Variants

class VariantIn(BaseModel):
    variant_name: str = Field(min_length=1, max_length=100)
    variant_value: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0)
    mrp: Optional[float] = Field(default=None, ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    sku: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    is_active: bool = True


class VariantUpdateIn(BaseModel):
    variant_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    variant_value: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, ge=0)
    mrp: Optional[float] = Field(default=None, ge=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    sku: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    is_active: Optional[bool] = None


class VariantOut(BaseModel):
    id: int
    product_id: int
    variant_name: str
    variant_value: str
    price: float
    mrp: Optional[float] = None
    stock_quantity: int = 0
    sku: Optional[str] = None
    weight: Optional[float] = None
    dimensions: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductWithVariantsOut(BaseModel):
    id: int
    name: str
    price: float
    image: Optional[str] = None
    variants: List[VariantOut] = Field(default_factory=list)


# Bulk product settings and wholesale tiers

class BulkSettingsIn(BaseModel):
    variant_id: Optional[int] = None
    min_quantity: int = Field(default=50, ge=1)
    max_quantity: Optional[int] = Field(default=None, ge=1)
    bulk_price: float = Field(ge=0)
    discount_percentage: float = Field(default=0, ge=0, le=100)
    is_bulk_enabled: bool = True
    tier_name: Optional[str] = Field(default=None, max_length=100)


class BulkSettingsOut(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    min_quantity: int
    max_quantity: Optional[int] = None
    bulk_price: float
    discount_percentage: float = 0
    is_bulk_enabled: bool
    is_variant_bulk: bool
    tier_name: Optional[str] = None


class BulkProductOut(BaseModel):
    id: int
    name: str
    price: float
    image: Optional[str] = None
    bulk_settings: List[BulkSettingsOut] = Field(default_factory=list)
    variants: List[VariantOut] = Field(default_factory=list)


class VariantBulkOut(BaseModel):
    success: bool = True
    variant_id: int
    has_bulk_pricing: bool
    settings: List[BulkSettingsOut]


class TierIn(BaseModel):
    tier_name: Optional[str] = Field(default=None, max_length=100)
    min_quantity: int = Field(ge=1)
    max_quantity: Optional[int] = Field(default=None, ge=1)
    bulk_price: float = Field(ge=0)
    discount_percentage: float = Field(default=0, ge=0, le=100)
    is_bulk_enabled: bool = True


class TiersSaveIn(BaseModel):
    product_id: int
    tiers: List[TierIn] = Field(default_factory=list)


class TierOut(BaseModel):
    id: Optional[int] = None
    product_id: int
    tier_name: str
    min_quantity: int
    max_quantity: Optional[int] = None
    bulk_price: float
    discount_percentage: float = 0
    sort_order: int
    is_bulk_enabled: bool = True


class TiersOut(BaseModel):
    success: bool = True
    product_id: int
    has_bulk_pricing: bool
    total_tiers: int
    tiers: List[TierOut]
    message: Optional[str] = None


class ProductTiersOut(BaseModel):
    id: int
    name: str
    price: float
    image: Optional[str] = None
    tiers: List[TierOut] = Field(default_factory=list)


class QuoteOut(BaseModel):
    success: bool = True
    product_id: int
    quantity: int
    unit_price: float
    total_price: float
    is_bulk_price: bool
    tier: Optional[TierOut] = None


# Orders

class EnquiryIn(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    contact_person: str = Field(min_length=1, max_length=200)
    email: str = Field(max_length=254)
    phone: str = Field(min_length=1, max_length=30)
    product_name: str = Field(min_length=1, max_length=300)
    quantity: int = Field(ge=1)
    description: Optional[str] = None
    expected_price: Optional[float] = Field(default=None, ge=0)
    delivery_timeline: Optional[str] = None
    gst_number: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    variant_id: Optional[int] = None
    variant_details: Optional[Dict[str, Any]] = None


class EnquiryUpdateIn(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


class EnquiryOut(BaseModel):
    id: int
    company_name: str
    contact_person: str
    email: str
    phone: str
    product_name: str
    quantity: int
    description: Optional[str] = None
    expected_price: Optional[float] = None
    delivery_timeline: Optional[str] = None
    gst_number: Optional[str] = None
    address: Optional[str] = None
    variant_id: Optional[int] = None
    variant_details: Optional[Dict[str, Any]] = None
    status: str
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class EnquiryListOut(BaseModel):
    success: bool = True
    enquiries: List[EnquiryOut]
    pagination: PaginationOut


class PartyAddressIn(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_address: Optional[str] = None
    apartment: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = None


class WholesaleItemIn(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    product_name: Optional[str] = None
    variant_name: Optional[str] = None


class WholesaleItemOut(WholesaleItemIn):
    id: int


class WholesaleOrderIn(BaseModel):
    user_id: Optional[str] = None
    total_price: float = Field(ge=0)
    email: str = Field(max_length=254)
    contact: str = Field(min_length=1, max_length=30)
    company_name: Optional[str] = None
    gst_number: Optional[str] = Field(default=None, max_length=20)
    notes: Optional[str] = None
    shipping_address: Optional[PartyAddressIn] = None
    billing_address: Optional[PartyAddressIn] = None
    items: List[WholesaleItemIn] = Field(min_length=1)


class WholesaleOrderUpdateIn(BaseModel):
    order_status: Optional[str] = None
    payment_status: Optional[str] = None


class WholesaleOrderOut(BaseModel):
    id: int
    user_id: Optional[str] = None
    total_price: float
    email: str
    contact: str
    company_name: Optional[str] = None
    gst_number: Optional[str] = None
    notes: Optional[str] = None
    payment_status: str
    order_status: str
    shipping_address: Dict[str, Optional[str]] = Field(default_factory=dict)
    billing_address: Dict[str, Optional[str]] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[WholesaleItemOut] = Field(default_factory=list)


class WholesaleOrderListOut(BaseModel):
    success: bool = True
    orders: List[WholesaleOrderOut]
    pagination: PaginationOut


class OrderItemIn(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    is_bulk_order: bool = False
    bulk_range: Optional[str] = None


class GpsLocationIn(BaseModel):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    formatted_address: Optional[str] = None


class DetailedAddressIn(BaseModel):
    house_number: Optional[str] = None
    street_address: Optional[str] = None
    suite_unit_floor: Optional[str] = None
    locality: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, max_length=20)
    country: str = "India"
    landmark: Optional[str] = None


class OrderCreateIn(BaseModel):
    user_id: str = Field(min_length=1)
    items: List[OrderItemIn] = Field(min_length=1)
    subtotal: float = Field(ge=0)
    shipping: float = Field(default=0, ge=0)
    total: float = Field(ge=0)
    address: Optional[str] = None
    detailed_address: Optional[DetailedAddressIn] = None
    gps_location: Optional[GpsLocationIn] = None
    payment_method: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    gst_number: Optional[str] = Field(default=None, max_length=20)
    company_name: Optional[str] = None
    delivery_pincode: Optional[str] = None
    strict_delivery: bool = False


class CodOrderIn(BaseModel):
    user_id: str = Field(min_length=1)
    product_id: int
    user_name: str = Field(min_length=1, max_length=200)
    product_name: str = Field(min_length=1, max_length=300)
    product_total_price: float = Field(gt=0)
    user_address: str = Field(min_length=1)
    user_location: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class CodOrderOut(BaseModel):
    id: int
    user_id: str
    product_id: int
    user_name: str
    product_name: str
    product_total_price: float
    user_address: str
    user_location: Optional[str] = None
    quantity: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CodOrderListOut(BaseModel):
    success: bool = True
    orders: List[CodOrderOut]
    pagination: PaginationOut


class CodStatusIn(BaseModel):
    status: str


class CodStatsOut(BaseModel):
    success: bool = True
    total_orders: int
    pending: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    total_amount: float


# Delivery and stock resolution

class WarehouseRef(BaseModel):
    id: int
    name: str
    type: str


class ProductInfo(BaseModel):
    id: int
    name: str
    delivery_type: str


class DeliveryInfo(BaseModel):
    zone_id: int
    zone_name: str
    pincode: str


class DeliveryCheckIn(BaseModel):
    product_id: int
    pincode: str
    quantity: int = Field(default=1, ge=1)


class DeliveryCheckOut(BaseModel):
    success: bool
    deliverable: bool
    product_id: int
    requested_quantity: int = 1
    message: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    source_warehouse: Optional[WarehouseRef] = None
    available_quantity: int = 0
    fallback_used: bool = False
    fallback_reason: Optional[str] = None
    product_info: Optional[ProductInfo] = None
    delivery_info: Optional[DeliveryInfo] = None


class DeliveryItemIn(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


class MultiDeliveryCheckIn(BaseModel):
    pincode: str
    items: List[DeliveryItemIn] = Field(min_length=1)


class MultiDeliveryCheckOut(BaseModel):
    success: bool = True
    all_deliverable: bool
    products: List[DeliveryCheckOut]
    unavailable_products: List[DeliveryCheckOut]
    summary: Dict[str, int]


class StockReservationIn(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int = Field(ge=1)
    order_id: str = Field(min_length=1, max_length=100)


class StockMovementOut(BaseModel):
    movement_id: int
    movement_type: str
    quantity: int
    stock_quantity: int
    reserved_quantity: int


class StockOperationOut(BaseModel):
    success: bool = True
    message: str
    product_id: int
    warehouse_id: int
    order_id: str
    movements: List[StockMovementOut]


class CartItemIn(BaseModel):
    product_id: Optional[int] = None
    id: Optional[int] = None
    name: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class CartValidationIn(BaseModel):
    delivery_pincode: str
    cart_items: List[CartItemIn] = Field(min_length=1)
    strict_delivery: bool = False


class CartItemResult(BaseModel):
    product_id: Optional[int] = None
    name: Optional[str] = None
    quantity: int = 1
    delivery_type: Optional[str] = None
    deliverable: bool
    reason: Optional[str] = None


class CartValidationOut(BaseModel):
    success: bool = True
    delivery_pincode: str
    available_items: List[CartItemResult]
    unavailable_items: List[CartItemResult]
    delivery_summary: Dict[str, Any]


class PincodeZoneOut(BaseModel):
    zone_id: int
    zone_name: str
    display_name: str
    is_nationwide: bool = False
    city: Optional[str] = None
    state: Optional[str] = None


class ProductDeliveryOut(BaseModel):
    success: bool = True
    product_id: int
    pincode: str
    can_deliver: bool
    delivery_type: str
    available_zones: List[PincodeZoneOut]


class OrderCreateOut(BaseModel):
    success: bool = True
    message: str
    order_id: int
    is_bulk_order: bool
    status: str
    delivery_validation: Optional[CartValidationOut] = None


# Zones

class ZoneIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    display_name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    is_nationwide: bool = False
    is_active: bool = True


class ZoneUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_nationwide: Optional[bool] = None
    is_active: Optional[bool] = None


class ZoneOut(BaseModel):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    is_nationwide: bool
    is_active: bool
    created_at: Optional[datetime] = None
    pincode_count: int = 0
    states: List[str] = Field(default_factory=list)
    state: Optional[str] = None


class ZonePincodeOut(BaseModel):
    id: int
    pincode: str
    city: Optional[str] = None
    state: Optional[str] = None
    is_active: bool


class ZoneListOut(BaseModel):
    success: bool = True
    zones: List[ZoneOut]
    pagination: PaginationOut


class ZoneDetailOut(BaseModel):
    success: bool = True
    zone: ZoneOut
    pincodes: List[ZonePincodeOut] = Field(default_factory=list)


class ZoneUploadOut(BaseModel):
    success: bool = True
    message: str
    results: Dict[str, Any]
    parse_summary: Dict[str, int]


class PincodeValidateIn(BaseModel):
    pincode: str
    product_ids: List[int] = Field(default_factory=list)


class PincodeValidateOut(BaseModel):
    success: bool = True
    pincode: str
    zones: List[PincodeZoneOut]
    product_availability: List[Dict[str, Any]]
    can_deliver: bool


class ZoneStatsOut(BaseModel):
    success: bool = True
    total_zones: int
    active_zones: int
    total_pincodes: int
    zonal_products: int
    nationwide_products: int
    top_zones: List[Dict[str, Any]]


# Legacy product stock counters

class ProductStockOut(BaseModel):
    success: bool = True
    product_id: int
    name: str
    stock_quantity: int
    in_stock: bool


class StockUpdateIn(BaseModel):
    stock_quantity: int = Field(ge=0)
    in_stock: Optional[bool] = None


class BulkStockItemIn(BaseModel):
    product_id: int
    stock_quantity: int


class BulkStockIn(BaseModel):
    updates: List[BulkStockItemIn] = Field(min_length=1)


class BulkStockOut(BaseModel):
    success: bool
    results: List[Dict[str, Any]]
    errors: List[Dict[str, Any]]
    summary: Dict[str, int]


class StockReduceIn(BaseModel):
    quantity: int = Field(gt=0)
    order_id: Optional[str] = None


class StockReduceOut(BaseModel):
    success: bool = True
    product_id: int
    order_id: Optional[str] = None
    reduction: Dict[str, Any]


# Warehouse inventory

class PincodeProductOut(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    name: str
    price: float
    image: Optional[str] = None
    variant_name: Optional[str] = None
    variant_price: Optional[float] = None
    total_stock: int
    delivery_time: str
    warehouse_ids: List[int]


class PincodeProductsOut(BaseModel):
    success: bool = True
    pincode: str
    total: int
    products: List[PincodeProductOut]


class AvailabilityOut(BaseModel):
    success: bool = True
    pincode: str
    product_id: int
    is_available: bool
    available_quantity: int
    delivery_time: Optional[str] = None
    source_warehouse: Optional[WarehouseRef] = None
    message: Optional[str] = None


class InventoryUpsertIn(BaseModel):
    warehouse_id: int
    product_id: int
    variant_id: Optional[int] = None
    stock_quantity: int = Field(ge=0)
    reserved_quantity: int = Field(default=0, ge=0)


class InventoryRowOut(BaseModel):
    id: int
    warehouse_id: int
    product_id: int
    variant_id: Optional[int] = None
    product_name: Optional[str] = None
    stock_quantity: int
    reserved_quantity: int
    available_quantity: int
    last_updated: Optional[datetime] = None


# Promo banners

class BannerIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None
    button_text: str = "SHOP NOW"
    bg_color: str = "bg-gradient-to-r from-blue-500 to-purple-600"
    accent_color: str = "bg-blue-500"
    icon: str = "gift"
    display_order: int = 0
    active: bool = True


class BannerUpdateIn(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None
    button_text: Optional[str] = None
    bg_color: Optional[str] = None
    accent_color: Optional[str] = None
    icon: Optional[str] = None
    display_order: Optional[int] = None
    active: Optional[bool] = None


class BannerOut(BannerIn):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Location

class PincodeDetailsOut(BaseModel):
    success: bool = True
    pincode: str
    city: Optional[str] = None
    state: Optional[str] = None
    zone_name: Optional[str] = None
    delivery_time: str = "2-3 business days"
    cod_available: bool = True
    serviceable: bool = True


class ShippingIn(BaseModel):
    pincode: str
    weight: float = Field(default=0, ge=0)
    order_value: float = Field(default=0, ge=0)


class ShippingOut(BaseModel):
    success: bool = True
    pincode: str
    weight: float
    order_value: float
    shipping_charge: float
    free_shipping: bool
    free_shipping_threshold: Optional[float] = None


class TaxIn(BaseModel):
    state: str = Field(min_length=1)
    amount: float = Field(ge=0)


class TaxOut(BaseModel):
    success: bool = True
    state: str
    amount: float
    gst_rate: float
    cgst_rate: float
    sgst_rate: float
    igst_rate: float
    tax_amount: float
    total_amount: float
