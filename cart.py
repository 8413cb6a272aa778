"""
Client-side shopping cart.

The cart never reaches the server until checkout. State changes go through
``cart_reducer``; ``CartStore`` dispatches actions, writes the item list to
storage after every change and reads it back when constructed.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from typing import List, Optional, Tuple, Union

from logging_setup import get_logger
from storage import MemoryStorage

logger = get_logger(__name__)

CART_STORAGE_KEY = "cart"
FREE_SHIPPING_THRESHOLD = 500
SHIPPING_COST = 50


@dataclass(frozen=True)
class CartItem:
    product_id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None
    stock: Optional[int] = None  # last known stock, caps the quantity


@dataclass(frozen=True)
class CartState:
    items: Tuple[CartItem, ...] = ()

    @property
    def total(self) -> float:
        return round(sum(i.price * i.quantity for i in self.items), 2)

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)


# ---------------------------
# Actions
# ---------------------------


@dataclass(frozen=True)
class AddItem:
    product: dict
    quantity: int = 1


@dataclass(frozen=True)
class SetQuantity:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class RemoveItem:
    product_id: str


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadCart:
    items: Tuple[CartItem, ...]


Action = Union[AddItem, SetQuantity, RemoveItem, ClearCart, LoadCart]


def _capped(quantity: int, stock: Optional[int]) -> int:
    return quantity if stock is None else min(quantity, stock)


def cart_reducer(state: CartState, action: Action) -> CartState:
    """Return the next cart state; ``state`` is never modified."""
    if isinstance(action, AddItem):
        product = action.product
        product_id = product.get("id") or product.get("product_id")
        stock = product.get("stock")
        if not product_id or action.quantity <= 0 or (stock is not None and stock <= 0):
            return state
        product_id = str(product_id)
        items = list(state.items)
        for idx, item in enumerate(items):
            if item.product_id == product_id:
                # Same product again: merge into the existing line.
                new_stock = stock if stock is not None else item.stock
                items[idx] = replace(
                    item,
                    price=float(product.get("price", item.price)),
                    stock=new_stock,
                    quantity=_capped(item.quantity + action.quantity, new_stock),
                )
                return CartState(tuple(items))
        items.append(
            CartItem(
                product_id=product_id,
                name=product.get("name", ""),
                price=float(product.get("price", 0)),
                quantity=_capped(action.quantity, stock),
                image=product.get("image"),
                stock=stock,
            )
        )
        return CartState(tuple(items))

    if isinstance(action, SetQuantity):
        if action.quantity <= 0:
            return cart_reducer(state, RemoveItem(action.product_id))
        return CartState(
            tuple(
                replace(i, quantity=_capped(action.quantity, i.stock)) if i.product_id == action.product_id else i
                for i in state.items
            )
        )

    if isinstance(action, RemoveItem):
        return CartState(tuple(i for i in state.items if i.product_id != action.product_id))

    if isinstance(action, ClearCart):
        return CartState()

    if isinstance(action, LoadCart):
        return CartState(tuple(action.items))

    raise ValueError(f"Unknown cart action: {action!r}")


class CartStore:
    def __init__(self, storage=None, key: str = CART_STORAGE_KEY):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.state = cart_reducer(CartState(), LoadCart(self._rehydrate()))

    def _rehydrate(self) -> Tuple[CartItem, ...]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return ()
        try:
            return tuple(CartItem(**entry) for entry in json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.warning("cart_rehydrate_failed", error=str(e))
            return ()

    def _persist(self) -> None:
        self.storage.set_item(self.key, json.dumps([asdict(i) for i in self.state.items]))

    def dispatch(self, action: Action) -> CartState:
        self.state = cart_reducer(self.state, action)
        self._persist()
        return self.state

    def add_item(self, product: dict, quantity: int = 1) -> CartState:
        return self.dispatch(AddItem(product, quantity))

    def set_quantity(self, product_id: str, quantity: int) -> CartState:
        return self.dispatch(SetQuantity(product_id, quantity))

    def remove_item(self, product_id: str) -> CartState:
        return self.dispatch(RemoveItem(product_id))

    def clear(self) -> CartState:
        return self.dispatch(ClearCart())

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return self.state.items

    @property
    def total(self) -> float:
        return self.state.total

    @property
    def item_count(self) -> int:
        return self.state.item_count

    @property
    def shipping_cost(self) -> float:
        if not self.state.items or self.total > FREE_SHIPPING_THRESHOLD:
            return 0
        return SHIPPING_COST

    @property
    def final_total(self) -> float:
        return round(self.total + self.shipping_cost, 2)

    def to_order_items(self) -> List[dict]:
        return [{"product_id": i.product_id, "quantity": i.quantity} for i in self.state.items]
