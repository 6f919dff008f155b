# app/services/product_service.py
import logging
import re
import unicodedata
import uuid
from typing import Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.storage_utils import (
    upload_to_storage,
    delete_public_url,
    generate_filename,
)
from app.models.product import Product, ProductImage, ProductSize, ProductSizeOption
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    BestSeller,
    ProductCreate,
    ProductRead,
    ProductSizeCreate,
    ProductSizeOptionCreate,
    ProductSizeOptionRead,
    ProductSizeOptionsReplace,
    ProductSizeRead,
    ProductSizeUpdate,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def live_unit_price(product: Product, size: ProductSize | None = None) -> float:
    """Current unit price: effective product price plus the size surcharge."""
    price = product.effective_price
    if size is not None:
        price += size.additional_price
    return price


def to_product_read(product: Product) -> ProductRead:
    return ProductRead(**product.model_dump(), effective_price=product.effective_price)


def ensure_size_offered(
    session: Session,
    repo: ProductRepository,
    product: Product,
    size: ProductSize,
) -> None:
    """400 unless `size` is one of the sizes offered for `product`."""
    if repo.get_size_option(session, product.id, size.id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"El tamaño {size.name} no está disponible para {product.name}",
        )


class ProductService:
    """
    Business logic for the catalog: products, gallery images and sizes.

    Responsibilities:
      - slug generation & uniqueness
      - soft delete (hide) vs hard delete (rows + Storage files)
      - image upload/delete orchestration with Supabase Storage
      - size management and the sizes offered per product
      - category checks on create/update
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(
        self,
        repo: ProductRepository,
        category_repo: CategoryRepository | None = None,
    ):
        self.repo = repo
        self.category_repo = category_repo or CategoryRepository()

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Accent-folding slugification:
          - "Torta de Maracuyá" -> "torta-de-maracuya"
          - non-alphanumeric -> '-', collapsed and stripped
        """
        value = unicodedata.normalize("NFKD", raw.strip().lower())
        value = value.encode("ascii", "ignore").decode("ascii")
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "producto"

    def _ensure_unique_slug(self, session: Session, base_slug: str) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while self.repo.get_by_slug(session, slug) is not None:
            slug = f"{base_slug}-{i}"
            i += 1
        return slug

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Tipo de imagen no soportado. Permitidos: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Imagen demasiado grande (máximo 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    @staticmethod
    def _remove_stored_file(url: str) -> None:
        # Storage cleanup never blocks the DB change
        try:
            delete_public_url(url)
        except Exception as e:
            logger.warning(f"Storage cleanup failed for {url}: {e}")

    def _ensure_category(self, session: Session, category_id: uuid.UUID) -> None:
        category = self.category_repo.get_by_id(session, category_id)
        if not category or not category.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Categoría no encontrada o inactiva",
            )

    # ----- Products -----

    def _get_or_404(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado",
            )
        return product

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        category_id: uuid.UUID | None = None,
        only_offers: bool = False,
        search: str | None = None,
    ) -> list[ProductRead]:
        products = self.repo.list_products(
            session,
            skip=skip,
            limit=limit,
            only_active=only_active,
            category_id=category_id,
            only_offers=only_offers,
            search=search.strip() if search else None,
        )
        return [to_product_read(p) for p in products]

    def get_product(self, session: Session, product_id: uuid.UUID) -> ProductRead:
        return to_product_read(self._get_or_404(session, product_id))

    def get_product_by_slug(self, session: Session, slug: str) -> ProductRead:
        product = self.repo.get_by_slug(session, slug)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado",
            )
        return to_product_read(product)

    def related_products(
        self,
        session: Session,
        product_id: uuid.UUID,
        limit: int = 4,
    ) -> list[ProductRead]:
        product = self._get_or_404(session, product_id)
        return [to_product_read(p) for p in self.repo.list_related(session, product, limit)]

    def best_sellers(self, session: Session, limit: int = 5) -> list[BestSeller]:
        return [
            BestSeller(product_id=pid, name=name, total_quantity=int(qty or 0))
            for pid, name, qty in self.repo.best_sellers(session, limit)
        ]

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> ProductRead:
        """
        Create a new product with a unique slug.

        - If slug is provided => slugify & ensure unique.
        - Else => slugify from name & ensure unique.
        """
        raw_slug = payload.slug or payload.name
        slug = self._ensure_unique_slug(session, self._slugify(raw_slug))

        if payload.category_id is not None:
            self._ensure_category(session, payload.category_id)

        product = Product(**payload.model_dump(exclude={"slug"}), slug=slug)

        product = self.repo.create(session, product)
        logger.info(f"Product created: {product.slug}")
        return to_product_read(product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Partial update of a product.

        - If slug is changed, enforce uniqueness.
        """
        product = self._get_or_404(session, product_id)
        data = payload.model_dump(exclude_unset=True)

        new_slug = data.pop("slug", None)
        if new_slug is not None:
            new_base_slug = self._slugify(new_slug)
            if new_base_slug != product.slug:
                product.slug = self._ensure_unique_slug(session, new_base_slug)

        if data.get("category_id") is not None:
            self._ensure_category(session, data["category_id"])

        for field, value in data.items():
            setattr(product, field, value)

        return to_product_read(self.repo.update(session, product))

    def update_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        stock: int,
    ) -> ProductRead:
        product = self._get_or_404(session, product_id)
        product.stock = stock
        return to_product_read(self.repo.update(session, product))

    def deactivate_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> ProductRead:
        """Soft delete: hidden from the storefront, history kept."""
        product = self._get_or_404(session, product_id)
        product.is_active = False
        return to_product_read(self.repo.update(session, product))

    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> None:
        """
        Hard delete: gallery rows, cart rows and the product, then
        best-effort Storage cleanup.
        """
        product = self._get_or_404(session, product_id)
        if self.repo.product_has_history(session, product_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=(
                    "El producto tiene pedidos o reservaciones; "
                    "desactívalo en lugar de eliminarlo"
                ),
            )

        urls = [img.image_url for img in self.repo.list_images_for_product(session, product_id)]
        if product.hero_image_url:
            urls.append(product.hero_image_url)

        self.repo.delete_cascade(session, product)

        for url in urls:
            self._remove_stored_file(url)

    # ----- Hero image -----

    def set_hero_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> ProductRead:
        """
        Upload or replace the hero image for a product.

        Path pattern:
            products/<product_id>/hero.<ext>
        """
        product = self._get_or_404(session, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        old_url = product.hero_image_url
        path = f"products/{product.id}/hero.{ext}"
        product.hero_image_url = upload_to_storage(path, file_bytes, content_type)

        # Same path means the upload already replaced it
        if old_url and old_url != product.hero_image_url:
            self._remove_stored_file(old_url)

        return to_product_read(self.repo.update(session, product))

    # ----- Gallery images -----

    def list_images(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductImage]:
        self._get_or_404(session, product_id)
        return self.repo.list_images_for_product(session, product_id)

    def add_gallery_images(
        self,
        session: Session,
        product_id: uuid.UUID,
        files: Iterable[tuple[str, bytes]],
    ) -> list[ProductImage]:
        """
        Upload one or more gallery images for a product.

        Args:
            files: iterable of (content_type, file_bytes)

        Path pattern:
            products/<product_id>/gallery/<uuid>.<ext>
        """
        product = self._get_or_404(session, product_id)
        next_order = len(self.repo.list_images_for_product(session, product.id))

        new_images: list[ProductImage] = []
        for idx, (content_type, file_bytes) in enumerate(files):
            ext = self._validate_and_get_ext(content_type, file_bytes)
            path = f"products/{product.id}/gallery/{generate_filename(ext)}"
            url = upload_to_storage(path, file_bytes, content_type)

            image = ProductImage(
                product_id=product.id,
                image_url=url,
                sort_order=next_order + idx,
            )
            new_images.append(self.repo.create_image(session, image))

        return new_images

    def remove_gallery_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        image_id: uuid.UUID,
    ) -> None:
        image = self.repo.get_image_by_id(session, image_id)
        if not image or image.product_id != product_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Imagen no encontrada para este producto",
            )

        url = image.image_url
        self.repo.delete_image(session, image)
        self._remove_stored_file(url)

    # ----- Sizes -----

    def _get_size_or_404(self, session: Session, size_id: uuid.UUID) -> ProductSize:
        size = self.repo.get_size(session, size_id)
        if not size:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tamaño no encontrado",
            )
        return size

    def list_sizes(self, session: Session, only_active: bool = True) -> list[ProductSize]:
        return self.repo.list_sizes(session, only_active=only_active)

    def get_size(self, session: Session, size_id: uuid.UUID) -> ProductSize:
        return self._get_size_or_404(session, size_id)

    def create_size(self, session: Session, payload: ProductSizeCreate) -> ProductSize:
        return self.repo.save_size(session, ProductSize(**payload.model_dump()))

    def update_size(
        self,
        session: Session,
        size_id: uuid.UUID,
        payload: ProductSizeUpdate,
    ) -> ProductSize:
        size = self._get_size_or_404(session, size_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(size, field, value)
        return self.repo.save_size(session, size)

    def toggle_size(self, session: Session, size_id: uuid.UUID) -> ProductSize:
        size = self._get_size_or_404(session, size_id)
        size.is_active = not size.is_active
        return self.repo.save_size(session, size)

    def delete_size(self, session: Session, size_id: uuid.UUID) -> None:
        """
        Sizes referenced by orders or carts can only be deactivated.
        """
        size = self._get_size_or_404(session, size_id)
        if self.repo.size_in_use(session, size_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El tamaño está en uso; desactívalo en lugar de eliminarlo",
            )
        self.repo.delete_size(session, size)

    # ----- Sizes offered per product -----

    def _option_reads(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductSizeOptionRead]:
        return [
            ProductSizeOptionRead(
                **option.model_dump(),
                size=ProductSizeRead(**size.model_dump()),
            )
            for option, size in self.repo.list_size_options(session, product_id)
        ]

    def list_product_sizes(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductSizeOptionRead]:
        """Sizes offered for a product, default first."""
        self._get_or_404(session, product_id)
        return self._option_reads(session, product_id)

    def add_size_to_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductSizeOptionCreate,
    ) -> list[ProductSizeOptionRead]:
        product = self._get_or_404(session, product_id)
        size = self._get_size_or_404(session, payload.size_id)
        if self.repo.get_size_option(session, product.id, size.id) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este tamaño ya está asignado al producto",
            )

        if payload.is_default:
            self.repo.unset_default_size(session, product.id)
        self.repo.save_size_option(
            session,
            ProductSizeOption(
                product_id=product.id,
                size_id=size.id,
                is_default=payload.is_default,
            ),
        )
        return self._option_reads(session, product.id)

    def remove_size_from_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        size_id: uuid.UUID,
    ) -> None:
        option = self._get_option_or_404(session, product_id, size_id)
        self.repo.delete_size_option(session, option)

    def set_default_size(
        self,
        session: Session,
        product_id: uuid.UUID,
        size_id: uuid.UUID,
    ) -> list[ProductSizeOptionRead]:
        option = self._get_option_or_404(session, product_id, size_id)
        self.repo.unset_default_size(session, product_id)
        option.is_default = True
        self.repo.save_size_option(session, option)
        return self._option_reads(session, product_id)

    def replace_product_sizes(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductSizeOptionsReplace,
    ) -> list[ProductSizeOptionRead]:
        """
        Replace the whole list of sizes offered for a product.
        Duplicated ids collapse; an empty list sells the product unsized.
        """
        product = self._get_or_404(session, product_id)
        size_ids = list(dict.fromkeys(payload.size_ids))

        if payload.default_size_id is not None and payload.default_size_id not in size_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El tamaño predeterminado debe estar entre los tamaños del producto",
            )
        missing = set(size_ids) - set(self.repo.get_sizes(session, set(size_ids)))
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tamaño no encontrado",
            )

        self.repo.replace_size_options(
            session,
            product.id,
            [
                ProductSizeOption(
                    product_id=product.id,
                    size_id=size_id,
                    is_default=size_id == payload.default_size_id,
                )
                for size_id in size_ids
            ],
        )
        logger.info(f"Product {product.slug}: {len(size_ids)} sizes offered")
        return self._option_reads(session, product.id)

    def _get_option_or_404(
        self,
        session: Session,
        product_id: uuid.UUID,
        size_id: uuid.UUID,
    ) -> ProductSizeOption:
        self._get_or_404(session, product_id)
        option = self.repo.get_size_option(session, product_id, size_id)
        if not option:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="El tamaño no está asignado a este producto",
            )
        return option
