"""FastAPI routes for image upload, serving and gallery management."""

import time
from email.utils import formatdate

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from protean.utils.globals import current_domain

from storefront.identity.api.auth import current_user, require_admin
from storefront.media.api.schemas import DeleteImageResponse, ImageResponse, ProductRef
from storefront.media.image import Image, storage_filename
from storefront.media.management import RegisterImage, RemoveImage, ReplaceImageFile, products_using_image
from storefront.media.references import image_references
from storefront.media.store import get_image_store
from storefront.media.store.port import ImageStore, StoredFileNotFound
from storefront.utils.query import find_all, find_one

logger = structlog.get_logger(__name__)

CACHE_SECONDS = 31536000


def image_response(image: Image, include_products: bool = False) -> ImageResponse:
    products = None
    if include_products:
        products = [ProductRef(id=str(p.id), title=p.title) for p in products_using_image(image.id)]
    return ImageResponse(
        id=str(image.id),
        filename=image.filename,
        url=image.url,
        content_type=image.content_type,
        size=image.size or 0,
        original_name=image.original_name,
        uploaded_at=image.uploaded_at,
        products=products,
    )


async def _store_upload(upload: UploadFile, store: ImageStore):
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")
    content_type = upload.content_type or "application/octet-stream"
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are allowed")

    return store.put(storage_filename(upload.filename or "upload"), data, content_type), upload.filename


router = APIRouter(prefix="/api", tags=["images"])


@router.post("/upload/productImage", status_code=201, response_model=ImageResponse)
async def upload_image(
    image: UploadFile = File(...),
    _user=Depends(current_user),
    store: ImageStore = Depends(get_image_store),
) -> ImageResponse:
    """Store an uploaded image and register its metadata."""
    stored, original_name = await _store_upload(image, store)
    try:
        image_id = current_domain.process(
            RegisterImage(
                filename=stored.filename,
                original_name=original_name,
                content_type=stored.content_type,
                size=stored.size,
                file_id=stored.file_id,
            ),
            asynchronous=False,
        )
    except Exception:
        store.delete(stored.file_id)
        raise

    logger.info("image_uploaded", image_id=image_id, filename=stored.filename, size=stored.size)
    return image_response(current_domain.repository_for(Image).get(image_id))


@router.get("/images/{filename}")
async def fetch_image(filename: str, store: ImageStore = Depends(get_image_store)) -> StreamingResponse:
    """Stream an image by filename with long-lived cache headers."""
    image = find_one(Image, filename=filename)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    try:
        chunks = store.stream(image.file_id)
    except StoredFileNotFound:
        logger.error("image_file_missing", image_id=str(image.id), file_id=image.file_id)
        raise HTTPException(status_code=404, detail="Image not found") from None

    return StreamingResponse(
        chunks,
        media_type=image.content_type,
        headers={
            "Cache-Control": f"public, max-age={CACHE_SECONDS}",
            "Expires": formatdate(time.time() + CACHE_SECONDS, usegmt=True),
        },
    )


@router.get("/images", response_model=list[ImageResponse], dependencies=[Depends(require_admin)])
async def list_images(include_products: bool = Query(default=False)) -> list[ImageResponse]:
    images = sorted(find_all(Image), key=lambda i: i.uploaded_at, reverse=True)
    return [image_response(image, include_products=include_products) for image in images]


@router.get("/images/{image_id}/products", response_model=list[ProductRef], dependencies=[Depends(require_admin)])
async def image_products(image_id: str) -> list[ProductRef]:
    image = current_domain.repository_for(Image).get(image_id)
    return [ProductRef(id=str(p.id), title=p.title) for p in products_using_image(image.id)]


@router.delete("/images/{image_id}", response_model=DeleteImageResponse, dependencies=[Depends(require_admin)])
async def delete_image(
    image_id: str,
    force: bool = Query(default=False),
    store: ImageStore = Depends(get_image_store),
) -> DeleteImageResponse:
    image = current_domain.repository_for(Image).get(image_id)
    references = image_references(image.id)
    if references and not force:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Image is in use",
                "products": [{"id": str(p.id), "title": p.title} for p in references.products],
                "drafts": len(references.drafts),
                "avatars": len(references.users),
                "page_settings": len(references.page_settings),
            },
        )

    file_id = current_domain.process(RemoveImage(image_id=image_id, force=force), asynchronous=False)
    store.delete(file_id)
    return DeleteImageResponse(status="deleted", detached_products=len(references.products))


@router.post("/images/{image_id}/replace", response_model=ImageResponse, dependencies=[Depends(require_admin)])
async def replace_image(
    image_id: str,
    image: UploadFile = File(...),
    store: ImageStore = Depends(get_image_store),
) -> ImageResponse:
    """Swap the file behind an image; products keep referencing the same id."""
    current_domain.repository_for(Image).get(image_id)
    stored, original_name = await _store_upload(image, store)
    try:
        previous_file_id = current_domain.process(
            ReplaceImageFile(
                image_id=image_id,
                filename=stored.filename,
                original_name=original_name,
                content_type=stored.content_type,
                size=stored.size,
                file_id=stored.file_id,
            ),
            asynchronous=False,
        )
    except Exception:
        store.delete(stored.file_id)
        raise

    store.delete(previous_file_id)
    return image_response(current_domain.repository_for(Image).get(image_id))
