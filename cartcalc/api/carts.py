"""Cart API endpoints.

Provides endpoints for one cart instance:
- GET /carts/{instance} - cart with computed totals
- DELETE /carts/{instance} - clear cart
- POST /carts/{instance}/items - add item
- POST /carts/{instance}/items/batch - add several items
- PATCH /carts/{instance}/items/{row_id} - update row
- DELETE /carts/{instance}/items/{row_id} - remove row
- POST /carts/{instance}/items/search - search rows
- POST /carts/{instance}/conditions - add cart condition
- DELETE /carts/{instance}/conditions/{name} - remove condition by name
- DELETE /carts/{instance}/conditions?type= - remove conditions by type
- PUT /carts/{instance}/conditions-order - change condition order
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from cartcalc.api.schemas import (
    CartResponse,
    ConditionCreateRequest,
    ConditionSchema,
    ConditionsOrderRequest,
    ErrorResponse,
    ItemBatchRequest,
    ItemCreateRequest,
    ItemUpdateRequest,
    LineItemResponse,
    SearchRequest,
    SearchResponse,
)
from cartcalc.application.cart_handle import CartHandle, get_cart_handle
from cartcalc.domain.entities import LineItem
from cartcalc.domain.exceptions import (
    CartError,
    InstanceNameRequiredError,
    InvalidAttributesError,
    InvalidConditionsError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidWeightError,
    MissingRequiredFieldError,
    RowNotFoundError,
)

router = APIRouter(prefix="/carts", tags=["Carts"])


# ============================================================================
# Dependencies
# ============================================================================


ERROR_CODES: dict[type[CartError], str] = {
    MissingRequiredFieldError: "MISSING_REQUIRED_FIELD",
    InvalidQuantityError: "INVALID_QUANTITY",
    InvalidPriceError: "INVALID_PRICE",
    InvalidWeightError: "INVALID_WEIGHT",
    InvalidAttributesError: "INVALID_ATTRIBUTES",
    InvalidConditionsError: "INVALID_CONDITIONS",
    RowNotFoundError: "ROW_NOT_FOUND",
    InstanceNameRequiredError: "INSTANCE_NAME_REQUIRED",
}


def http_error(error: CartError) -> HTTPException:
    """Convert a cart error into an HTTPException with the standard body."""
    status_code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(error, RowNotFoundError)
        else status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": ERROR_CODES.get(type(error), "CART_ERROR"),
            "message": error.message,
            "details": error.details,
        },
    )


def get_handle(instance: str) -> CartHandle:
    """Get the handle for the cart instance in the path."""
    try:
        return get_cart_handle(instance)
    except CartError as e:
        raise http_error(e) from e


HandleDep = Annotated[CartHandle, Depends(get_handle)]


# ============================================================================
# Converters
# ============================================================================


def item_to_response(item: LineItem) -> LineItemResponse:
    """Convert LineItem entity to response schema."""
    return LineItemResponse(
        row_id=item.row_id,
        id=item.id,
        name=item.name,
        qty=item.qty,
        price=item.price,
        original_price=item.original_price,
        weight=item.weight,
        total_weight=item.total_weight,
        requires_shipping=item.requires_shipping,
        attributes=item.attributes,
        conditions=[ConditionSchema.from_condition(c) for c in item.conditions],
        disable=item.disable,
        subtotal=item.subtotal,
        applied_conditions=item.applied_conditions,
        totals=item.totals,
    )


def cart_to_response(handle: CartHandle) -> CartResponse:
    """Build the cart response from the persisted state of a handle."""
    cart = handle.content()
    return CartResponse(
        instance=handle.instance_name,
        items=[item_to_response(item) for item in cart.items.values()],
        conditions=[ConditionSchema.from_condition(c) for c in cart.conditions],
        conditions_order=handle.get_conditions_order(),
        subtotal=cart.subtotal,
        total=cart.effective_total,
        totals=cart.totals,
        applied_conditions=cart.applied_conditions,
        conditions_total=cart.conditions_total(),
        count=len(cart.items),
        quantity=sum(item.qty for item in cart.items.values()),
        weight=handle.weight(),
        requires_shipping=handle.requires_shipping(),
        billing=cart.meta_billing,
        shipping=cart.meta_shipping,
    )


# ============================================================================
# Cart Endpoints
# ============================================================================


@router.get(
    "/{instance}",
    response_model=CartResponse,
    summary="Get cart",
    description="Get a cart instance with all computed totals.",
)
async def get_cart(handle: HandleDep) -> CartResponse:
    """Get cart contents and totals."""
    return cart_to_response(handle)


@router.delete(
    "/{instance}",
    response_model=CartResponse,
    summary="Clear cart",
)
async def clear_cart(handle: HandleDep) -> CartResponse:
    """Remove every row, condition and meta payload of a cart."""
    handle.clear()
    return cart_to_response(handle)


# ============================================================================
# Item Endpoints
# ============================================================================


@router.post(
    "/{instance}/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Add item",
    description="Add an item; identical id and attributes merge into one row.",
)
async def add_item(request: ItemCreateRequest, handle: HandleDep) -> CartResponse:
    """Add an item to the cart."""
    try:
        handle.add(request.to_item())
    except CartError as e:
        raise http_error(e) from e
    return cart_to_response(handle)


@router.post(
    "/{instance}/items/batch",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Add several items",
)
async def add_items(request: ItemBatchRequest, handle: HandleDep) -> CartResponse:
    """Add several items; none are added if one is invalid."""
    try:
        handle.add_many([item.to_item() for item in request.items])
    except CartError as e:
        raise http_error(e) from e
    return cart_to_response(handle)


@router.post(
    "/{instance}/items/search",
    response_model=SearchResponse,
    summary="Search rows",
)
async def search_items(request: SearchRequest, handle: HandleDep) -> SearchResponse:
    """Find rows matching every criterion."""
    return SearchResponse(row_ids=handle.search(request.criteria))


@router.patch(
    "/{instance}/items/{row_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Update row",
)
async def update_item(row_id: str, request: ItemUpdateRequest, handle: HandleDep) -> CartResponse:
    """Update a row; a quantity of zero or less removes it."""
    try:
        handle.update(row_id, request.to_changes())
    except CartError as e:
        raise http_error(e) from e
    return cart_to_response(handle)


@router.delete(
    "/{instance}/items/{row_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Remove row",
)
async def remove_item(row_id: str, handle: HandleDep) -> CartResponse:
    """Remove a row from the cart."""
    try:
        handle.remove(row_id)
    except CartError as e:
        raise http_error(e) from e
    return cart_to_response(handle)


# ============================================================================
# Condition Endpoints
# ============================================================================


@router.post(
    "/{instance}/conditions",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add cart condition",
)
async def add_condition(request: ConditionCreateRequest, handle: HandleDep) -> CartResponse:
    """Attach a cart-level condition."""
    handle.condition(request.to_condition())
    return cart_to_response(handle)


@router.delete(
    "/{instance}/conditions/{name}",
    response_model=CartResponse,
    summary="Remove cart condition by name",
)
async def remove_condition(name: str, handle: HandleDep) -> CartResponse:
    """Remove the cart-level conditions with the given name."""
    handle.remove_condition_by_name(name)
    return cart_to_response(handle)


@router.delete(
    "/{instance}/conditions",
    response_model=CartResponse,
    summary="Remove cart conditions by type",
)
async def remove_conditions_by_type(
    handle: HandleDep,
    type: Annotated[str, Query(min_length=1, description="Condition type to remove")],
) -> CartResponse:
    """Remove every cart-level condition of a type."""
    handle.remove_condition_by_type(type)
    return cart_to_response(handle)


@router.put(
    "/{instance}/conditions-order",
    response_model=CartResponse,
    summary="Set condition order",
)
async def set_conditions_order(request: ConditionsOrderRequest, handle: HandleDep) -> CartResponse:
    """Change the order in which cart-level condition types are applied."""
    try:
        handle.set_conditions_order(request.order)
    except CartError as e:
        raise http_error(e) from e
    return cart_to_response(handle)
