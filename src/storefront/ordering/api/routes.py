"""FastAPI endpoints for the cart, the wishlist and order history."""

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.identity.api.auth import current_user
from storefront.identity.security import is_admin_email
from storefront.identity.user import User
from storefront.media.image import Image
from storefront.ordering.api.schemas import (
    AddressResponse,
    AddToCartRequest,
    AddToWishlistRequest,
    CartItemIdResponse,
    CartItemResponse,
    CartResponse,
    ChangeQuantityRequest,
    CountResponse,
    HasPurchasedResponse,
    OrderResponse,
    StatusResponse,
    WishlistCheckResponse,
    WishlistItemResponse,
)
from storefront.ordering.cart import CartItem, StockLimitExceeded
from storefront.ordering.items import AddToCart, ChangeCartQuantity, RemoveFromCart
from storefront.ordering.order import Order, has_purchased, orders_for_user
from storefront.ordering.wishlist import AddToWishlist, RemoveFromWishlist, WishlistItem, wishlist_entry
from storefront.utils.query import find_all


def _image_urls() -> dict:
    return {str(image.id): image.url for image in find_all(Image)}


def _stock_limit(exc: StockLimitExceeded) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "message": "Maximum stock reached!",
            "available_stock": exc.available,
            "current_in_cart": exc.in_cart,
        },
    )


cart_router = APIRouter(prefix="/api/cart", tags=["cart"])
wishlist_router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])
order_router = APIRouter(prefix="/api", tags=["orders"])


# --- Cart endpoints ---


def cart_item_response(item: CartItem, urls: dict) -> CartItemResponse:
    return CartItemResponse(
        id=str(item.id),
        product_id=str(item.product_id),
        title=item.title,
        price=item.price,
        image_url=urls.get(str(item.image_id)) if item.image_id else None,
        size=item.size,
        color=item.color,
        shipping_name=item.shipping_name,
        shipping_price=item.shipping_price or 0.0,
        quantity=item.quantity,
        line_total=item.line_total,
    )


@cart_router.get("", response_model=CartResponse)
async def get_cart(user: User = Depends(current_user)) -> CartResponse:
    items = sorted(find_all(CartItem, user_id=str(user.id)), key=lambda i: i.added_at)
    urls = _image_urls()
    return CartResponse(
        items=[cart_item_response(item, urls) for item in items],
        subtotal=round(sum(item.line_total for item in items), 2),
    )


@cart_router.get("/count", response_model=CountResponse)
async def cart_count(user: User = Depends(current_user)) -> CountResponse:
    return CountResponse(count=sum(item.quantity for item in find_all(CartItem, user_id=str(user.id))))


@cart_router.post("", status_code=201, response_model=CartItemIdResponse)
async def add_to_cart(body: AddToCartRequest, user: User = Depends(current_user)) -> CartItemIdResponse:
    command = AddToCart(
        user_id=str(user.id),
        product_id=body.product_id,
        quantity=body.quantity,
        size=body.size,
        color=body.color,
        shipping_name=body.shipping_name,
    )
    try:
        cart_item_id = current_domain.process(command, asynchronous=False)
    except StockLimitExceeded as exc:
        raise _stock_limit(exc) from None
    return CartItemIdResponse(cart_item_id=cart_item_id)


@cart_router.patch("/{cart_item_id}", response_model=CartItemIdResponse)
async def change_quantity(
    cart_item_id: str, body: ChangeQuantityRequest, user: User = Depends(current_user)
) -> CartItemIdResponse:
    command = ChangeCartQuantity(user_id=str(user.id), cart_item_id=cart_item_id, quantity=body.quantity)
    try:
        current_domain.process(command, asynchronous=False)
    except StockLimitExceeded as exc:
        raise _stock_limit(exc) from None
    return CartItemIdResponse(cart_item_id=cart_item_id)


@cart_router.delete("/{cart_item_id}", response_model=StatusResponse)
async def remove_from_cart(cart_item_id: str, user: User = Depends(current_user)) -> StatusResponse:
    current_domain.process(RemoveFromCart(user_id=str(user.id), cart_item_id=cart_item_id), asynchronous=False)
    return StatusResponse(status="removed")


# --- Wishlist endpoints ---


@wishlist_router.get("", response_model=list[WishlistItemResponse])
async def get_wishlist(user: User = Depends(current_user)) -> list[WishlistItemResponse]:
    items = sorted(find_all(WishlistItem, user_id=str(user.id)), key=lambda i: i.added_at, reverse=True)
    products = {str(p.id): p for p in find_all(Product)}
    urls = _image_urls()

    response = []
    for item in items:
        product = products.get(str(item.product_id))
        response.append(
            WishlistItemResponse(
                id=str(item.id),
                product_id=str(item.product_id),
                title=product.title if product else None,
                price=product.price if product else None,
                image_url=urls.get(str(product.image_id)) if product and product.image_id else None,
                added_at=item.added_at,
            )
        )
    return response


@wishlist_router.post("", status_code=201, response_model=WishlistCheckResponse)
async def add_to_wishlist(body: AddToWishlistRequest, user: User = Depends(current_user)) -> WishlistCheckResponse:
    command = AddToWishlist(user_id=str(user.id), product_id=body.product_id)
    item_id = current_domain.process(command, asynchronous=False)
    return WishlistCheckResponse(in_wishlist=True, wishlist_item_id=item_id)


@wishlist_router.delete("/{wishlist_item_id}", response_model=StatusResponse)
async def remove_from_wishlist(wishlist_item_id: str, user: User = Depends(current_user)) -> StatusResponse:
    command = RemoveFromWishlist(user_id=str(user.id), wishlist_item_id=wishlist_item_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="removed")


@wishlist_router.get("/check/{product_id}", response_model=WishlistCheckResponse)
async def check_wishlist(product_id: str, user: User = Depends(current_user)) -> WishlistCheckResponse:
    entry = wishlist_entry(user.id, product_id)
    return WishlistCheckResponse(in_wishlist=entry is not None, wishlist_item_id=str(entry.id) if entry else None)


# --- Order endpoints ---


def order_response(order: Order, urls: dict) -> OrderResponse:
    address = None
    if order.shipping_address is not None:
        address = AddressResponse(
            name=order.shipping_address.name,
            address_line1=order.shipping_address.address_line1,
            address_line2=order.shipping_address.address_line2,
            city=order.shipping_address.city,
            state=order.shipping_address.state,
            postal_code=order.shipping_address.postal_code,
            country=order.shipping_address.country,
        )
    return OrderResponse(
        id=str(order.id),
        product_id=str(order.product_id),
        title=order.title,
        price=order.price,
        image_url=urls.get(str(order.image_id)) if order.image_id else None,
        size=order.size,
        color=order.color,
        quantity=order.quantity,
        shipping_cost=order.shipping_cost or 0.0,
        shipping_method=order.shipping_method,
        total=order.total,
        transaction_id=order.transaction_id,
        payer_email=order.payer_email,
        payer_name=order.payer_name,
        shipping_address=address,
        status=order.status,
        source=order.source,
        created_at=order.created_at,
    )


@order_router.get("/orders", response_model=list[OrderResponse])
async def list_orders(user: User = Depends(current_user)) -> list[OrderResponse]:
    urls = _image_urls()
    return [order_response(order, urls) for order in orders_for_user(user.id)]


@order_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: User = Depends(current_user)) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.user_id) != str(user.id) and not is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="Not allowed to view this order")
    return order_response(order, _image_urls())


@order_router.get("/user/has-purchased/{product_id}", response_model=HasPurchasedResponse)
async def user_has_purchased(product_id: str, user: User = Depends(current_user)) -> HasPurchasedResponse:
    return HasPurchasedResponse(has_purchased=has_purchased(user.id, product_id))
