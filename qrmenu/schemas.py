"""
Pydantic Schemas for Request/Response Validation

Every record travels over the wire in camelCase (``generalName``,
``isActive``) while Python code uses snake_case attributes. Requests
accept either spelling.

Version: 1.0.0
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Language code -> text
I18nText = Dict[str, str]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        validate_default=True,
    )


class PartialUpdate(CamelModel):
    """
    Base for PATCH payloads.

    Omitted fields stay untouched. An explicit null is accepted only for
    fields listed in ``nullable_fields``; the rest map to NOT NULL columns.
    """

    nullable_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for name, info in cls.model_fields.items():
            if name in cls.nullable_fields:
                continue
            for key in {name, info.alias}:
                if key in data and data[key] is None:
                    raise ValueError(f"{info.alias or name} cannot be null")
        return data


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CHEF = "chef"
    ACCOUNTANT = "accountant"


class ItemStatus(str, Enum):
    """Kitchen status of a single order line."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"


class OrderStatus(str, Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"


class WaiterRequestStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    COMPLETED = "completed"


class TextDirection(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


# =============================================================================
# USERS & AUTH
# =============================================================================

class UserBase(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, examples=["chef.mario"])
    name: str = Field(default="", max_length=100)
    email: str = Field(default="", max_length=255)
    role: UserRole = UserRole.CHEF
    avatar: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    branch_id: Optional[str] = None
    language: str = Field(default="en", max_length=10)
    is_active: bool = True


class UserCreate(UserBase):
    """Request schema for creating a back-office user."""
    password: str = Field(..., min_length=6, max_length=72)


class UserRecord(UserBase):
    """Stored user, including the password hash."""
    id: str
    password_hash: str
    created_at: Optional[UtcDatetime] = None


class UserResponse(UserBase):
    """User as returned by the API (no credentials)."""
    id: str
    created_at: Optional[UtcDatetime] = None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(**record.model_dump(exclude={"password_hash"}))


class UserUpdate(PartialUpdate):
    """Admin-side user edit. ``branchId: "all"`` clears the branch."""
    nullable_fields = frozenset({"branch_id"})

    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    role: Optional[UserRole] = None
    branch_id: Optional[str] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)


class ProfileUpdate(PartialUpdate):
    """Self-service profile edit."""
    nullable_fields = frozenset({"avatar", "phone"})

    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    avatar: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)


class LanguagePreference(CamelModel):
    language: str


class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RoleInfo(CamelModel):
    role: UserRole
    label: str
    permissions: List[str]


# =============================================================================
# BRANCHES & TABLES
# =============================================================================

class BranchBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Downtown Branch"])
    address: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=30)
    owner: Optional[str] = Field(None, max_length=100)
    owner_phone: Optional[str] = Field(None, max_length=30)
    is_active: bool = True


class BranchCreate(BranchBase):
    pass


class Branch(BranchBase):
    id: str


class BranchUpdate(PartialUpdate):
    nullable_fields = frozenset({"owner", "owner_phone"})

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    owner: Optional[str] = Field(None, max_length=100)
    owner_phone: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None


class DiningTableBase(CamelModel):
    table_number: str = Field(..., min_length=1, max_length=20, examples=["T12"])
    branch_id: str
    capacity: int = Field(default=4, ge=1, le=100)
    location: Optional[str] = Field(None, max_length=100)
    status: str = Field(default="available", max_length=20)
    is_active: bool = True


class DiningTableCreate(DiningTableBase):
    pass


class DiningTable(DiningTableBase):
    id: str


class DiningTableUpdate(PartialUpdate):
    nullable_fields = frozenset({"location"})

    table_number: Optional[str] = Field(None, min_length=1, max_length=20)
    branch_id: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1, le=100)
    location: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


# =============================================================================
# MENU TAXONOMY
# =============================================================================

class CategoryBase(CamelModel):
    general_name: str = Field(default="", max_length=100)
    name: I18nText = Field(default_factory=dict, examples=[{"en": "Pizza", "tr": "Pizza"}])
    image: Optional[str] = None
    order: int = Field(default=1, ge=0)
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class Category(CategoryBase):
    id: str


class CategoryUpdate(PartialUpdate):
    nullable_fields = frozenset({"image"})

    general_name: Optional[str] = Field(None, max_length=100)
    name: Optional[I18nText] = None
    image: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class MenuItemBase(CamelModel):
    category_id: str
    general_name: str = Field(default="", max_length=100)
    name: I18nText = Field(default_factory=dict)
    short_description: I18nText = Field(default_factory=dict)
    long_description: I18nText = Field(default_factory=dict)
    price: float = Field(default=0.0, ge=0, examples=[14.99])
    discounted_price: Optional[float] = Field(None, ge=0)
    max_select: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None
    available: bool = True
    suggested: bool = False
    is_new: bool = False
    materials: List[str] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)

    @property
    def unit_price(self) -> float:
        """Price a customer pays for one unit."""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.price


class MenuItemCreate(MenuItemBase):
    pass


class MenuItem(MenuItemBase):
    id: str


class MenuItemUpdate(PartialUpdate):
    nullable_fields = frozenset({"discounted_price", "max_select", "image"})

    category_id: Optional[str] = None
    general_name: Optional[str] = Field(None, max_length=100)
    name: Optional[I18nText] = None
    short_description: Optional[I18nText] = None
    long_description: Optional[I18nText] = None
    price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    max_select: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None
    available: Optional[bool] = None
    suggested: Optional[bool] = None
    is_new: Optional[bool] = None
    materials: Optional[List[str]] = None
    types: Optional[List[str]] = None


class LanguageBase(CamelModel):
    code: str = Field(..., min_length=2, max_length=10, examples=["tr"])
    name: str = Field(..., min_length=1, max_length=50, examples=["Turkish"])
    native_name: Optional[str] = Field(None, max_length=50, examples=["Türkçe"])
    direction: TextDirection = TextDirection.LTR
    flag_image: Optional[str] = None
    is_active: bool = True
    is_default: bool = False
    order: int = Field(default=1, ge=0)
    text_overrides: Dict[str, str] = Field(default_factory=dict)


class LanguageCreate(LanguageBase):
    pass


class Language(LanguageBase):
    id: str


class LanguageUpdate(PartialUpdate):
    nullable_fields = frozenset({"native_name", "flag_image"})

    code: Optional[str] = Field(None, min_length=2, max_length=10)
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    native_name: Optional[str] = Field(None, max_length=50)
    direction: Optional[TextDirection] = None
    flag_image: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)
    text_overrides: Optional[Dict[str, str]] = None


class FoodTypeBase(CamelModel):
    general_name: str = Field(default="", max_length=100)
    name: I18nText = Field(default_factory=dict)
    description: I18nText = Field(default_factory=dict)
    icon: str = Field(default="leaf", max_length=50)
    color: str = Field(default="#4CAF50", max_length=20)
    is_active: bool = True
    order: int = Field(default=1, ge=0)


class FoodTypeCreate(FoodTypeBase):
    pass


class FoodType(FoodTypeBase):
    id: str


class FoodTypeUpdate(PartialUpdate):
    general_name: Optional[str] = Field(None, max_length=100)
    name: Optional[I18nText] = None
    description: Optional[I18nText] = None
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)


class MaterialBase(CamelModel):
    general_name: str = Field(default="", max_length=100)
    name: I18nText = Field(default_factory=dict)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    is_active: bool = True
    order: int = Field(default=1, ge=0)


class MaterialCreate(MaterialBase):
    pass


class Material(MaterialBase):
    id: str


class MaterialUpdate(PartialUpdate):
    nullable_fields = frozenset({"icon", "color"})

    general_name: Optional[str] = Field(None, max_length=100)
    name: Optional[I18nText] = None
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(CamelModel):
    """Single line of a placed order, with its kitchen status."""
    id: str
    menu_item_id: str
    menu_item_name: I18nText = Field(default_factory=dict)
    quantity: int = Field(..., ge=1)
    price: float
    notes: Optional[str] = None
    status: ItemStatus = ItemStatus.PENDING

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.price, 2)


class Order(CamelModel):
    id: str
    order_number: str
    branch_id: str
    table_id: Optional[str] = None
    table_number: Optional[str] = None
    items: List[OrderItem]
    status: OrderStatus = OrderStatus.PENDING
    total_amount: float
    notes: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class OrderLineCreate(CamelModel):
    """One cart entry."""
    menu_item_id: str
    quantity: int = Field(default=1, ge=1, le=99, examples=[2])
    notes: Optional[str] = Field(None, max_length=200)


class OrderCreate(CamelModel):
    """Request schema for placing an order from the public menu."""
    branch_id: str
    table_id: Optional[str] = None
    items: List[OrderLineCreate] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)


class OrderUpdate(PartialUpdate):
    nullable_fields = frozenset({"notes"})

    status: Optional[OrderStatus] = None
    notes: Optional[str] = Field(None, max_length=500)


class OrderItemStatusUpdate(CamelModel):
    status: ItemStatus


class OrderEvent(CamelModel):
    """Message pushed to Kitchen Display / Order Status Screen sockets."""
    type: str
    order: Order


# =============================================================================
# PUBLIC MENU SUPPORT
# =============================================================================

class WaiterRequestCreate(CamelModel):
    table_id: Optional[str] = None
    branch_id: Optional[str] = None


class WaiterRequest(CamelModel):
    id: str
    table_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: WaiterRequestStatus = WaiterRequestStatus.PENDING
    timestamp: UtcDatetime


class WaiterRequestUpdate(CamelModel):
    status: WaiterRequestStatus


class MenuVisitCreate(CamelModel):
    page_path: str = Field(default="/menu", max_length=255)
    referrer: Optional[str] = Field(None, max_length=500)
    user_agent: Optional[str] = Field(None, max_length=500)
    language: Optional[str] = Field(None, max_length=10)
    session_id: Optional[str] = Field(None, max_length=100)


class MenuVisit(MenuVisitCreate):
    id: str
    created_at: UtcDatetime


# =============================================================================
# SETTINGS
# =============================================================================

class AppSettings(CamelModel):
    """
    Flat restaurant settings record.

    No field carries a default: the record is always built from
    ``qrmenu.defaults.DEFAULT_SETTINGS`` merged with stored changes.
    """

    model_config = ConfigDict(extra="forbid")

    # General
    primary_color: str
    timezone: str
    favicon: Optional[str]
    default_language: str

    # Restaurant
    restaurant_logo: Optional[str]
    restaurant_name: Optional[str]
    restaurant_description: Optional[str]
    restaurant_address: Optional[str]
    restaurant_phone: Optional[str]
    restaurant_email: Optional[str]
    restaurant_hours: Optional[Any]
    restaurant_background_image: Optional[str]
    restaurant_map_lat: Optional[float]
    restaurant_map_lng: Optional[float]
    restaurant_instagram: Optional[str]
    restaurant_whatsapp: Optional[str]
    restaurant_telegram: Optional[str]
    restaurant_google_maps_url: Optional[str]

    # Login Page
    login_background_image: Optional[str]
    show_login_title: bool
    login_title: Optional[str]
    show_login_reset_password: bool

    # QR Page Content
    qr_media_url: Optional[str]
    qr_media_type: Optional[str]
    qr_show_logo: bool
    qr_show_title: bool
    qr_show_description: bool
    qr_show_animated_text: bool
    qr_animated_texts: List[str]
    qr_show_call_waiter: bool
    qr_show_address_phone: bool
    qr_page_title: Optional[str]
    qr_page_description: Optional[str]
    qr_text_color: str

    # QR Design
    qr_eye_border_color: str
    qr_eye_dot_color: str
    qr_eye_border_shape: str
    qr_eye_dot_shape: str
    qr_dots_style: str
    qr_foreground_color: str
    qr_background_color: str
    qr_center_type: str
    qr_center_text: Optional[str]
    qr_logo: Optional[str]

    # Menu Page
    menu_default_theme: str
    menu_background_type: str
    menu_background_color: Optional[str]
    menu_gradient_start: Optional[str]
    menu_gradient_end: Optional[str]
    menu_background_image: Optional[str]
    show_menu_instagram: bool
    show_menu_whatsapp: bool
    show_menu_telegram: bool
    show_menu_language_selector: bool
    show_menu_theme_switcher: bool
    menu_show_restaurant_logo: bool
    menu_show_restaurant_name: bool
    menu_show_restaurant_description: bool
    menu_show_operation_hours: bool
    menu_show_menu: bool
    menu_show_all_menu_items: bool
    menu_show_recommended_menu_items: bool
    menu_show_food_type: bool
    menu_show_search_bar: bool
    menu_show_view_switcher: bool
    menu_show_prices: bool
    menu_show_images: bool
    menu_show_ingredients: bool
    menu_show_food_types: bool
    menu_show_buy_button: bool
    menu_show_more_information_popup: bool

    # Kitchen Display
    kd_show_table_number: bool
    kd_show_order_time: bool
    kd_show_clock: bool
    kd_show_notes: bool
    kd_has_pending_status: bool
    kd_show_recently_completed: bool
    kd_pending_color: str
    kd_preparing_color: str
    kd_ready_color: str

    # Order Status Screen
    oss_pending_color: str
    oss_preparing_color: str
    oss_ready_color: str
    oss_background_type: str
    oss_background_color: str
    oss_background_image: Optional[str]
    oss_card_text_color: str
    oss_card_border_color: str
    oss_card_box_style: str
    oss_header_text: str
    oss_number_label: str
    oss_table_label: str
    oss_show_table_information: bool
    oss_show_status_icon: bool
    oss_limit_to_3_orders: bool

    # Payment
    payment_method: Optional[str]

    # Currency
    currency_name: str
    currency_symbol: str
    currency_position: str

    # License
    license_key: Optional[str]
    license_expiry_date: Optional[str]
    license_owner: Optional[str]

    @classmethod
    def normalize_keys(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Map camelCase or snake_case keys onto field names.

        Raises:
            ValueError: if a key names no settings field
        """
        by_alias = {field.alias: name for name, field in cls.model_fields.items()}
        normalized: Dict[str, Any] = {}
        unknown = []
        for key, value in changes.items():
            if key in cls.model_fields:
                normalized[key] = value
            elif key in by_alias:
                normalized[by_alias[key]] = value
            else:
                unknown.append(key)
        if unknown:
            raise ValueError(f"Unknown settings: {sorted(unknown)}")
        return normalized

    def merged(self, changes: Dict[str, Any]) -> "AppSettings":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(self.normalize_keys(changes))
        return type(self).model_validate(data)


# =============================================================================
# DASHBOARD
# =============================================================================

class BestSeller(CamelModel):
    item_id: str
    name: str
    count: int


class SalesPoint(CamelModel):
    date: str
    amount: float


class ViewsPoint(CamelModel):
    date: str
    views: int


class DashboardMetrics(CamelModel):
    total_items: int
    total_categories: int
    available_items: int
    qr_scans: int
    sales_day: float
    sales_week: float
    sales_month: float
    customers_day: int
    customers_week: int
    customers_month: int
    menu_views_day: int
    menu_views_week: int
    menu_views_month: int
    best_sellers: List[BestSeller]
    sales_chart: List[SalesPoint]
    views_chart: List[ViewsPoint]


class MenuCategory(Category):
    """Category with the items a customer may order from it."""
    items: List[MenuItem] = Field(default_factory=list)


class PublicMenu(CamelModel):
    categories: List[MenuCategory]
    suggested: List[MenuItem]
    food_types: List[FoodType]
    materials: List[Material]
    languages: List[Language]
    settings: AppSettings


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    url: str
    filename: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    redis: str
    timestamp: datetime
