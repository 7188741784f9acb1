from dataclasses import dataclass, field
from typing import List


def round_price(value: float) -> float:
    return round(value, 2)


@dataclass(slots=True)
class CartItemInfo:
    product_id: str
    name: str
    price: float
    img_url: str
    quantity: int


@dataclass(slots=True)
class CartInfo:
    items: List[CartItemInfo] = field(default_factory=list)
    full_price: float = 0.0

    def find_item(self, product_id: str) -> CartItemInfo | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def drop_item(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    def computed_price(self) -> float:
        return round_price(sum(item.price * item.quantity for item in self.items))


@dataclass(slots=True)
class CartEntity:
    id: str
    info: CartInfo
