# app/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    UploadFile,
    status,
)
from sqlmodel import Session

from app.core.auth import get_current_user, require_admin
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    BestSeller,
    ProductCreate,
    ProductImageRead,
    ProductRead,
    ProductSizeOptionCreate,
    ProductSizeOptionRead,
    ProductSizeOptionsReplace,
    ProductUpdate,
    StockUpdate,
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Public endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
    skip: int = 0,
    limit: int = 50,
    category_id: uuid.UUID | None = None,
    only_offers: bool = False,
    search: str | None = None,
    include_inactive: bool = False,
):
    """
    List products.

    - Public endpoint.
    - Inactive products are only listed for admins asking for them.
    - `search` matches the name case-insensitively.
    """
    only_active = not (
        include_inactive and current_user is not None and current_user.role == "admin"
    )
    return service.list_products(
        session,
        skip=skip,
        limit=limit,
        only_active=only_active,
        category_id=category_id,
        only_offers=only_offers,
        search=search,
    )


@router.get("/best-sellers", response_model=list[BestSeller])
def best_sellers(
    session: Session = Depends(get_session),
    limit: int = 5,
):
    return service.best_sellers(session, limit)


@router.get("/slug/{slug}", response_model=ProductRead)
def get_product_by_slug(
    slug: str,
    session: Session = Depends(get_session),
):
    return service.get_product_by_slug(session, slug)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_product(session, product_id)


@router.get("/{product_id}/related", response_model=list[ProductRead])
def related_products(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    limit: int = 4,
):
    """Other active products of the same category."""
    return service.related_products(session, product_id, limit)


@router.get(
    "/{product_id}/images",
    response_model=list[ProductImageRead],
)
def list_product_images(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    List gallery images for a product (public).
    """
    return service.list_images(session, product_id)


@router.get("/{product_id}/sizes", response_model=list[ProductSizeOptionRead])
def list_product_sizes(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Sizes this product can be ordered or reserved in, default first."""
    return service.list_product_sizes(session, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only). The slug is derived from the
    name when omitted.
    """
    return service.create_product(session, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    return service.update_product(session, product_id, payload)


@router.patch(
    "/{product_id}/stock",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_stock(
    product_id: uuid.UUID,
    payload: StockUpdate,
    session: Session = Depends(get_session),
):
    return service.update_stock(session, product_id, payload.stock)


@router.post(
    "/{product_id}/deactivate",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def deactivate_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Soft delete: hide the product from the storefront (admin only).
    """
    return service.deactivate_product(session, product_id)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a product, its gallery and cart rows (admin only).

    Products already ordered or reserved must be deactivated instead.
    """
    service.delete_product(session, product_id)
    return None


@router.post(
    "/{product_id}/hero-image",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
    summary="Upload or replace hero image for a product",
)
def upload_hero_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces any previous hero image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Falta el content-type del archivo",
        )

    return service.set_hero_image(
        session=session,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file.file.read(),
    )


@router.post(
    "/{product_id}/gallery",
    response_model=list[ProductImageRead],
    dependencies=[Depends(require_admin)],
    summary="Upload one or more gallery images for a product",
)
def upload_gallery_images(
    product_id: uuid.UUID,
    files: list[UploadFile] = File(...),
    session: Session = Depends(get_session),
):
    """
    New images are appended at the end of the gallery (sort_order).
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se subieron archivos",
        )

    payload: list[tuple[str, bytes]] = []
    for f in files:
        if not f.content_type:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Falta el content-type de uno de los archivos",
            )
        payload.append((f.content_type, f.file.read()))

    return service.add_gallery_images(
        session=session,
        product_id=product_id,
        files=payload,
    )


@router.delete(
    "/{product_id}/gallery/{image_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
    summary="Delete a gallery image by id",
)
def delete_gallery_image(
    product_id: uuid.UUID,
    image_id: uuid.UUID,
    session: Session = Depends(get_session),
) -> dict[str, str]:
    service.remove_gallery_image(session, product_id, image_id)
    return {"message": "Imagen eliminada"}


# -------- Sizes offered per product (admin) --------


@router.post(
    "/{product_id}/sizes",
    response_model=list[ProductSizeOptionRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def add_product_size(
    product_id: uuid.UUID,
    payload: ProductSizeOptionCreate,
    session: Session = Depends(get_session),
):
    return service.add_size_to_product(session, product_id, payload)


@router.put(
    "/{product_id}/sizes",
    response_model=list[ProductSizeOptionRead],
    dependencies=[Depends(require_admin)],
)
def replace_product_sizes(
    product_id: uuid.UUID,
    payload: ProductSizeOptionsReplace,
    session: Session = Depends(get_session),
):
    """Replace every size offered for the product (admin only)."""
    return service.replace_product_sizes(session, product_id, payload)


@router.patch(
    "/{product_id}/sizes/{size_id}/default",
    response_model=list[ProductSizeOptionRead],
    dependencies=[Depends(require_admin)],
)
def set_default_product_size(
    product_id: uuid.UUID,
    size_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.set_default_size(session, product_id, size_id)


@router.delete(
    "/{product_id}/sizes/{size_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def remove_product_size(
    product_id: uuid.UUID,
    size_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    service.remove_size_from_product(session, product_id, size_id)
    return None
