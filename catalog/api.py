import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# ── Core operations ────────────────────────────────────────────────────────────
from catalog.auth import register_user, login_user
from catalog.products import (
    list_products,       # read-only listing for one user
    add_product,         # store the image, then append a new product
    delete_product,      # remove one product by id
    update_product,      # patch supplied fields, optionally swap the image
    toggle_favorite,     # flip isFavorite and return the new value
)
from catalog.errors import (
    AuthenticationError,
    CatalogError,
    DuplicateUserError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# ── Application instance ───────────────────────────────────────────────────────
app = FastAPI(title="Product Catalog")


# ══════════════════════════════════════════════════════════════════════════════
# Request body models
# ══════════════════════════════════════════════════════════════════════════════
# Every field is optional at the model level so a missing field reaches the
# core and comes back as a 400 with a readable message instead of a 422.

class CredentialsReq(BaseModel):
    """Body for POST /api/register and POST /api/login."""
    username: Optional[str] = None
    password: Optional[str] = None

class ProductRefReq(BaseModel):
    """Body for DELETE /api/products and POST /api/products/favorite."""
    username: Optional[str] = None
    product_id: Optional[str] = Field(default=None, alias="productId")


# ══════════════════════════════════════════════════════════════════════════════
# Error mapping
# ══════════════════════════════════════════════════════════════════════════════

@app.exception_handler(RequestValidationError)
async def bad_request_body(request: Request, exc: RequestValidationError):
    """Unparsable or wrongly-typed request bodies are client errors (400)."""
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


def _http_error(e: CatalogError, failure: str) -> HTTPException:
    """
    Translate a core error into the HTTP status the clients expect.

    ``failure`` is the generic message used for server-side errors; the
    underlying cause is logged, never returned.
    """
    if isinstance(e, ValidationError):
        return HTTPException(400, str(e))
    if isinstance(e, DuplicateUserError):
        return HTTPException(409, str(e))
    if isinstance(e, AuthenticationError):
        return HTTPException(401, "Invalid username or password")
    if isinstance(e, NotFoundError):
        return HTTPException(404, str(e))
    # CorruptStoreError, StorageWriteFailed
    logger.exception("%s: %s", failure, e)
    return HTTPException(500, failure)


def _read_upload(image: Optional[UploadFile]):
    """Return (bytes, filename) for a submitted file; an empty upload counts as none."""
    if image is None:
        return None, None
    data = image.file.read()
    if not data:
        return None, None
    return data, image.filename


# ══════════════════════════════════════════════════════════════════════════════
# Authentication endpoints
# ══════════════════════════════════════════════════════════════════════════════

@app.post("/api/register")
def register(req: CredentialsReq):
    """
    Create a credential.

    Usernames need at least 3 characters, passwords at least 6; a taken
    username is rejected with 409.
    """
    try:
        register_user(req.username, req.password)
    except CatalogError as e:
        raise _http_error(e, "Registration failed")
    return {"message": "Registration successful"}


@app.post("/api/login")
def login(req: CredentialsReq):
    """
    Check a username/password pair against the credential file.

    Always a generic 401 on failure (never reveals which part was wrong).
    """
    try:
        username = login_user(req.username, req.password)
    except CatalogError as e:
        raise _http_error(e, "Unable to read user data")
    return {"message": "Login successful", "username": username}


# ══════════════════════════════════════════════════════════════════════════════
# Product endpoints
# ══════════════════════════════════════════════════════════════════════════════

@app.get("/api/products")
def get_products(username: Optional[str] = None):
    """Return the user's products in insertion order (possibly empty)."""
    try:
        products = list_products(username)
    except CatalogError as e:
        raise _http_error(e, "Failed to load products")
    return {"products": products}


@app.post("/api/products")
def create_product(
    username: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    store: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
):
    """
    Add a product from a multipart form.

    username, name and a non-empty image file are required; the rest fall
    back to defaults (rating 5, category "Other", price 0).
    """
    image_data, image_filename = _read_upload(image)
    try:
        product = add_product(
            username,
            name,
            image_data,
            image_filename,
            description=description,
            rating=rating,
            category=category,
            price=price,
            store=store,
            country=country,
        )
    except CatalogError as e:
        raise _http_error(e, "Failed to add product")
    return {"message": "Product added successfully", "product": product}


@app.delete("/api/products")
def remove_product(req: ProductRefReq):
    """Delete one product; unknown user or product id gives 404."""
    try:
        delete_product(req.username, req.product_id)
    except CatalogError as e:
        raise _http_error(e, "Failed to delete product")
    return {"message": "Product deleted successfully"}


@app.post("/api/products/update")
def edit_product(
    username: Optional[str] = Form(None),
    product_id: Optional[str] = Form(None, alias="productId"),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    store: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
):
    """
    Update a product from a multipart form.

    Only the fields present in the form change. Without a new image the
    existing reference is kept; with one, the old file stays on disk.
    """
    image_data, image_filename = _read_upload(image)
    try:
        product = update_product(
            username,
            product_id,
            name,
            image_data,
            image_filename,
            description=description,
            rating=rating,
            category=category,
            price=price,
            store=store,
            country=country,
        )
    except CatalogError as e:
        raise _http_error(e, "Failed to update product")
    return {"message": "Product updated successfully", "product": product}


@app.post("/api/products/favorite")
def favorite_product(req: ProductRefReq):
    """Flip a product's favorite flag and return the new state."""
    try:
        is_favorite = toggle_favorite(req.username, req.product_id)
    except CatalogError as e:
        raise _http_error(e, "Failed to toggle favorite")
    return {"message": "Favorite toggled successfully", "isFavorite": is_favorite}


@app.get("/health")
def health():
    return {"status": "ok"}
