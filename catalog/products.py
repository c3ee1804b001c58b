import logging
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog.blobs import BlobStore, extension_of
from catalog.config import PRODUCTS_FILE, UPLOADS_DIR, UPLOADS_URL
from catalog.errors import NotFoundError, ValidationError
from catalog.storage import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_RATING = 5
DEFAULT_CATEGORY = "Other"

_LEADING_INT = re.compile(r"\s*[-+]?\d+")
_LEADING_FLOAT = re.compile(r"\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


class Product(BaseModel):
    """One catalog entry, serialized with the camelCase keys clients expect."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    rating: int = DEFAULT_RATING
    category: str = DEFAULT_CATEGORY
    price: float = Field(default=0, allow_inf_nan=False)
    store: str = ""
    country: str = ""
    image: str
    is_favorite: bool = Field(default=False, alias="isFavorite")
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z"),
        alias="createdAt",
    )


def _products():
    return RecordStore(PRODUCTS_FILE, default=dict)


def _blobs():
    return BlobStore(UPLOADS_DIR, UPLOADS_URL)


def parse_rating(raw) -> int:
    """Leading integer of ``raw``; missing, unparsable or zero means the default."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw or DEFAULT_RATING
    m = _LEADING_INT.match(str(raw)) if raw is not None else None
    if not m:
        return DEFAULT_RATING
    try:
        return int(m.group()) or DEFAULT_RATING
    except ValueError:
        # more digits than int() will convert
        return DEFAULT_RATING


def parse_price(raw) -> float:
    """Leading decimal number of ``raw``; missing, unparsable or non-finite means 0."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = raw
    else:
        m = _LEADING_FLOAT.match(str(raw)) if raw is not None else None
        value = float(m.group()) if m else 0
    # inf/nan have no JSON representation
    return value if math.isfinite(value) else 0


def _optional_fields(description, rating, category, price, store, country):
    """Normalise the optional product fields; ``None`` means "not supplied"."""
    fields = {}
    if description is not None:
        fields["description"] = description
    if rating is not None:
        fields["rating"] = parse_rating(rating)
    if category is not None:
        fields["category"] = category or DEFAULT_CATEGORY
    if price is not None:
        fields["price"] = parse_price(price)
    if store is not None:
        fields["store"] = store
    if country is not None:
        fields["country"] = country
    return fields


def _find(products, product_id):
    for product in products:
        if product.get("id") == product_id:
            return product
    raise NotFoundError("Product not found")


def list_products(username: str):
    if not username:
        raise ValidationError("Username required")
    return _products().get(username)


def add_product(
    username: str,
    name: str,
    image_data: Optional[bytes],
    image_filename: Optional[str] = None,
    description: Optional[str] = None,
    rating=None,
    category: Optional[str] = None,
    price=None,
    store: Optional[str] = None,
    country: Optional[str] = None,
):
    if not username or not name or not image_data:
        raise ValidationError("Username, product name, and image are required")

    image = _blobs().put(image_data, extension_of(image_filename))
    fields = _optional_fields(description, rating, category, price, store, country)
    product = Product(name=name, image=image, **fields).model_dump(by_alias=True)

    _products().mutate(username, lambda products: products.append(product))
    logger.info("Added product %s for %s", product["id"], username)
    return product


def delete_product(username: str, product_id: str):
    if not username or not product_id:
        raise ValidationError("Missing required fields")

    def remove(products):
        product = _find(products, product_id)
        products.remove(product)

    _products().mutate(username, remove, create=False)
    logger.info("Deleted product %s for %s", product_id, username)


def update_product(
    username: str,
    product_id: str,
    name: str,
    image_data: Optional[bytes] = None,
    image_filename: Optional[str] = None,
    description: Optional[str] = None,
    rating=None,
    category: Optional[str] = None,
    price=None,
    store: Optional[str] = None,
    country: Optional[str] = None,
):
    """
    Change the supplied fields of one product and return it.

    Optional fields left as ``None`` keep their stored value. A new image
    replaces the reference; the previous blob stays on disk.
    """
    if not username or not product_id or not name:
        raise ValidationError("Username, product ID, and name are required")

    fields = _optional_fields(description, rating, category, price, store, country)

    def apply(products):
        product = _find(products, product_id)
        product["name"] = name
        product.update(fields)
        # Stored only once the product is known to exist
        if image_data:
            product["image"] = _blobs().put(image_data, extension_of(image_filename))
        return dict(product)

    product = _products().mutate(username, apply, create=False)
    logger.info("Updated product %s for %s", product_id, username)
    return product


def toggle_favorite(username: str, product_id: str) -> bool:
    if not username or not product_id:
        raise ValidationError("Missing required fields")

    def flip(products):
        product = _find(products, product_id)
        product["isFavorite"] = not product.get("isFavorite", False)
        return product["isFavorite"]

    return _products().mutate(username, flip, create=False)
