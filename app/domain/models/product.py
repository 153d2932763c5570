from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class Rating(BaseModel):
    user_id: str
    product_id: str
    rating: float = Field(ge=1, le=5)
    created_at: Optional[datetime] = None

    model_config = {"frozen": True}

class StoreSummary(BaseModel):
    store_id: str
    name: str

    model_config = {"frozen": True}

class Product(BaseModel):
    product_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    sizes: List[str] = []
    price: float
    mrp: Optional[float] = None
    images: List[str] = []
    in_stock: bool = True
    created_at: datetime
    store_id: str
    store: Optional[StoreSummary] = None
    ratings: List[Rating] = []

    model_config = {"frozen": True}  # immuable = safe

    @property
    def avg_rating(self) -> float:
        if not self.ratings:
            return 0.0
        return sum(r.rating for r in self.ratings) / len(self.ratings)

class OrderItem(BaseModel):
    product_id: str
    quantity: int = 1
    price: Optional[float] = None

    model_config = {"frozen": True}

class Order(BaseModel):
    order_id: str
    user_id: str
    store_id: str
    created_at: datetime
    items: List[OrderItem] = []

    model_config = {"frozen": True}

class Store(BaseModel):
    store_id: str
    name: str
    products: List[Product] = []

    model_config = {"frozen": True}

class VendorMetrics(BaseModel):
    avg_rating: float = 0.0
    total_products: int = 0
    total_orders: int = 0

    model_config = {"frozen": True}

# Scoring fields only live on ranked results; they are stripped before a response leaves the API.
INTERNAL_FIELDS = frozenset({
    "score",
    "content_score",
    "vendor_multiplier",
    "recent_orders",
    "vendor_score",
    "avg_product_rating",
})

class ScoredProduct(Product):
    score: float = Field(ge=0)
    content_score: Optional[float] = None
    vendor_multiplier: Optional[float] = None
    recent_orders: Optional[int] = None
    vendor_score: Optional[float] = None
    avg_product_rating: Optional[float] = None

    @classmethod
    def from_product(cls, product: Product, **scores) -> "ScoredProduct":
        return cls.model_validate({**product.model_dump(), **scores})

    def public_view(self) -> dict:
        """JSON-ready product record without scoring fields."""
        return self.model_dump(mode="json", exclude=set(INTERNAL_FIELDS))
