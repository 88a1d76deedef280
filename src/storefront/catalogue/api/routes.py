"""FastAPI endpoints for the Catalogue: products, ratings, comments and drafts."""

import json

from fastapi import APIRouter, Depends, HTTPException, Query
from protean.utils.globals import current_domain

from storefront.catalogue.api.schemas import (
    AddCommentRequest,
    AddProductImagesRequest,
    CommentResponse,
    CountResponse,
    CreateProductRequest,
    DeletedResponse,
    DraftRequest,
    DraftResponse,
    ImageRef,
    ProductDetailResponse,
    ProductIdResponse,
    ProductResponse,
    RateProductRequest,
    RatingResponse,
    ShippingOptionSchema,
    SizeSchema,
    StatusResponse,
    UpdateProductImageRequest,
    UpdateProductRequest,
    VisitResponse,
)
from storefront.catalogue.comment import AddComment, Comment, DeleteComment, build_thread
from storefront.catalogue.creation import CreateProduct, UpdateProduct
from storefront.catalogue.draft import DiscardDraft, Draft, PublishDraft, SaveDraft, UpdateDraft
from storefront.catalogue.images import AddProductImages, RecordProductVisit, SetProductImage
from storefront.catalogue.product import Product
from storefront.catalogue.rating import RateProduct, Rating
from storefront.catalogue.removal import RemoveProduct
from storefront.identity.api.auth import current_user, require_admin
from storefront.identity.security import is_admin_email
from storefront.identity.user import User
from storefront.media.image import Image
from storefront.media.store import get_image_store
from storefront.media.store.port import ImageStore
from storefront.utils.query import find_all, find_one

MAX_RECOMMENDATIONS = 4


def _image_index() -> dict:
    return {str(image.id): image for image in find_all(Image)}


def _image_ref(image_id, images: dict) -> ImageRef | None:
    image = images.get(str(image_id)) if image_id else None
    return ImageRef(id=str(image.id), url=image.url) if image else None


def product_response(product: Product, images: dict, cls=ProductResponse, **extra):
    """Serialize a product, resolving image ids to URLs at read time."""
    additional = [_image_ref(image_id, images) for image_id in product.additional_images]
    return cls(
        id=str(product.id),
        title=product.title,
        product_type=product.product_type,
        price=product.price,
        description=product.description,
        materials=product.materials,
        product_quantity=product.product_quantity or 0,
        sizes=[
            SizeSchema(size=v.size, color=v.color, quantity=v.quantity or 0, size_price=v.size_price)
            for v in product.ordered_sizes()
        ],
        shipping_options=[
            ShippingOptionSchema(name=o.name, price=o.price or 0.0) for o in product.ordered_shipping_options()
        ],
        image=_image_ref(product.image_id, images),
        hover_image=_image_ref(product.hover_image_id, images),
        additional_images=[ref for ref in additional if ref is not None],
        average_rating=product.average_rating,
        rating_count=product.rating_count or 0,
        visits=product.visits or 0,
        created_at=product.created_at,
        **extra,
    )


def _matches_search(product: Product, term: str) -> bool:
    haystack = " ".join(filter(None, [product.title, product.description, product.product_type]))
    return term.lower() in haystack.lower()


def _same_type(product: Product, product_type: str | None) -> bool:
    return bool(product_type) and (product.product_type or "").lower() == product_type.lower()


def _dump_list(items) -> str:
    return json.dumps([item.model_dump() for item in items])


product_router = APIRouter(prefix="/products", tags=["products"])
product_activity_router = APIRouter(prefix="/api/products", tags=["products"])
admin_product_router = APIRouter(prefix="/api", tags=["products"], dependencies=[Depends(require_admin)])
comment_router = APIRouter(prefix="/api/comments", tags=["comments"])
draft_router = APIRouter(prefix="/api/drafts", tags=["drafts"])


# --- Storefront product endpoints ---


@product_router.get("", response_model=list[ProductResponse])
async def list_products(
    search: str | None = Query(default=None),
    type: str | None = Query(default=None),
) -> list[ProductResponse]:
    products = find_all(Product)
    if search:
        products = [p for p in products if _matches_search(p, search)]
    if type:
        products = [p for p in products if _same_type(p, type)]

    images = _image_index()
    products.sort(key=lambda p: p.created_at, reverse=True)
    return [product_response(p, images) for p in products]


@product_router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: str) -> ProductDetailResponse:
    product = current_domain.repository_for(Product).get(product_id)
    images = _image_index()

    related = [
        p for p in find_all(Product) if str(p.id) != str(product.id) and _same_type(p, product.product_type)
    ]
    related.sort(key=lambda p: p.created_at, reverse=True)
    recommendations = [product_response(p, images) for p in related[:MAX_RECOMMENDATIONS]]

    return product_response(product, images, cls=ProductDetailResponse, recommendations=recommendations)


@product_activity_router.post("/{product_id}/visit", response_model=VisitResponse)
async def record_visit(product_id: str) -> VisitResponse:
    visits = current_domain.process(RecordProductVisit(product_id=product_id), asynchronous=False)
    return VisitResponse(visits=visits)


@product_activity_router.post("/{product_id}/rate", response_model=RatingResponse)
async def rate_product(product_id: str, body: RateProductRequest, user: User = Depends(current_user)) -> RatingResponse:
    command = RateProduct(user_id=str(user.id), product_id=product_id, value=body.value)
    result = current_domain.process(command, asynchronous=False)
    return RatingResponse(**result)


@product_activity_router.get("/{product_id}/user-rating", response_model=RatingResponse)
async def user_rating(product_id: str, user: User = Depends(current_user)) -> RatingResponse:
    product = current_domain.repository_for(Product).get(product_id)
    rating = find_one(Rating, user_id=str(user.id), product_id=str(product.id))
    return RatingResponse(
        value=rating.value if rating else None,
        average_rating=product.average_rating,
        rating_count=product.rating_count or 0,
    )


def _comment_response(node: dict, names: dict) -> CommentResponse:
    comment = node["comment"]
    return CommentResponse(
        id=str(comment.id),
        user_id=str(comment.user_id),
        user_name=names.get(str(comment.user_id)),
        text=comment.text,
        parent_id=str(comment.parent_id) if comment.parent_id else None,
        likes=comment.likes or 0,
        dislikes=comment.dislikes or 0,
        created_at=comment.created_at,
        replies=[_comment_response(reply, names) for reply in node["replies"]],
    )


@product_activity_router.get("/{product_id}/comments", response_model=list[CommentResponse])
async def list_comments(product_id: str) -> list[CommentResponse]:
    current_domain.repository_for(Product).get(product_id)
    names = {str(u.id): u.name for u in find_all(User)}
    thread = build_thread(find_all(Comment, product_id=product_id))
    return [_comment_response(node, names) for node in thread]


@product_activity_router.post("/{product_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(product_id: str, body: AddCommentRequest, user: User = Depends(current_user)) -> CommentResponse:
    command = AddComment(user_id=str(user.id), product_id=product_id, text=body.text, parent_id=body.parent_id)
    comment_id = current_domain.process(command, asynchronous=False)
    comment = current_domain.repository_for(Comment).get(comment_id)
    return _comment_response({"comment": comment, "replies": []}, {str(user.id): user.name})


@comment_router.delete("/{comment_id}", response_model=DeletedResponse)
async def delete_comment(comment_id: str, user: User = Depends(current_user)) -> DeletedResponse:
    comment = current_domain.repository_for(Comment).get(comment_id)
    is_admin = is_admin_email(user.email)
    if str(comment.user_id) != str(user.id) and not is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to delete this comment")

    command = DeleteComment(comment_id=comment_id, user_id=str(user.id), is_admin=is_admin)
    return DeletedResponse(deleted=current_domain.process(command, asynchronous=False))


# --- Admin product endpoints ---


@admin_product_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        title=body.title,
        product_type=body.product_type,
        price=body.price,
        description=body.description,
        materials=body.materials,
        product_quantity=body.product_quantity,
        sizes=_dump_list(body.sizes),
        shipping_options=_dump_list(body.shipping_options),
        image_id=body.image_id,
        hover_image_id=body.hover_image_id,
        additional_image_ids=json.dumps(body.additional_image_ids),
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@admin_product_router.put("/products/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    command = UpdateProduct(
        product_id=product_id,
        title=body.title,
        product_type=body.product_type,
        price=body.price,
        description=body.description,
        materials=body.materials,
        product_quantity=body.product_quantity,
        sizes=_dump_list(body.sizes) if body.sizes is not None else None,
        shipping_options=_dump_list(body.shipping_options) if body.shipping_options is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_product_router.patch("/products/{product_id}/add-image", response_model=StatusResponse)
async def add_product_images(product_id: str, body: AddProductImagesRequest) -> StatusResponse:
    command = AddProductImages(product_id=product_id, image_ids=json.dumps(body.image_ids))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_product_router.patch("/products/{product_id}/update-image", response_model=StatusResponse)
async def update_product_image(product_id: str, body: UpdateProductImageRequest) -> StatusResponse:
    command = SetProductImage(product_id=product_id, field=body.field, image_id=body.image_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_product_router.delete("/product/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str, store: ImageStore = Depends(get_image_store)) -> StatusResponse:
    file_ids = current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)
    for file_id in file_ids:
        store.delete(file_id)
    return StatusResponse(status="deleted")


# --- Draft endpoints (admin) ---


def draft_response(draft: Draft) -> DraftResponse:
    return DraftResponse(
        id=str(draft.id),
        user_id=str(draft.user_id),
        product_data=draft.data,
        last_updated=draft.last_updated,
    )


def _own_draft(draft_id: str, user: User) -> Draft:
    draft = current_domain.repository_for(Draft).get(draft_id)
    if str(draft.user_id) != str(user.id):
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


@draft_router.get("", response_model=list[DraftResponse])
async def list_drafts(user: User = Depends(require_admin)) -> list[DraftResponse]:
    drafts = sorted(find_all(Draft, user_id=str(user.id)), key=lambda d: d.last_updated, reverse=True)
    return [draft_response(d) for d in drafts]


@draft_router.get("/count", response_model=CountResponse)
async def count_drafts(user: User = Depends(require_admin)) -> CountResponse:
    return CountResponse(count=len(find_all(Draft, user_id=str(user.id))))


@draft_router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: str, user: User = Depends(require_admin)) -> DraftResponse:
    return draft_response(_own_draft(draft_id, user))


@draft_router.post("", status_code=201, response_model=DraftResponse)
async def create_draft(body: DraftRequest, user: User = Depends(require_admin)) -> DraftResponse:
    command = SaveDraft(user_id=str(user.id), product_data=json.dumps(body.product_data))
    draft_id = current_domain.process(command, asynchronous=False)
    return draft_response(current_domain.repository_for(Draft).get(draft_id))


@draft_router.put("/{draft_id}", response_model=DraftResponse)
async def update_draft(draft_id: str, body: DraftRequest, user: User = Depends(require_admin)) -> DraftResponse:
    _own_draft(draft_id, user)
    command = UpdateDraft(draft_id=draft_id, product_data=json.dumps(body.product_data))
    current_domain.process(command, asynchronous=False)
    return draft_response(current_domain.repository_for(Draft).get(draft_id))


@draft_router.delete("/{draft_id}", response_model=StatusResponse)
async def delete_draft(
    draft_id: str,
    user: User = Depends(require_admin),
    store: ImageStore = Depends(get_image_store),
) -> StatusResponse:
    _own_draft(draft_id, user)
    file_ids = current_domain.process(DiscardDraft(draft_id=draft_id), asynchronous=False)
    for file_id in file_ids:
        store.delete(file_id)
    return StatusResponse(status="deleted")


@draft_router.post("/{draft_id}/publish", status_code=201, response_model=ProductIdResponse)
async def publish_draft(draft_id: str, user: User = Depends(require_admin)) -> ProductIdResponse:
    _own_draft(draft_id, user)
    product_id = current_domain.process(PublishDraft(draft_id=draft_id), asynchronous=False)
    return ProductIdResponse(product_id=product_id)
