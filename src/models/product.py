# src/models/product.py

"""Catalog data models built from document-store records."""

from dataclasses import dataclass, field
from typing import Any


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Product:
    """A single catalog product, immutable for the session."""

    id: str
    name: str
    price: float
    brand: str = ""
    category: str = ""
    original_price: float | None = None
    stock: int = 0
    images: tuple[str, ...] = field(default_factory=tuple)
    featured: bool = False
    created_at: Any = None
    description: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Product":
        """Build a Product from a store record (camelCase keys).

        Raises ``KeyError``/``ValueError``/``TypeError`` when the record
        lacks an id or name, or carries a non-numeric price or stock.
        """
        product_id = record["id"]
        name = record["name"]
        if (
            product_id in (None, "")
            or name is None
            or not str(name).strip()
        ):
            msg = f"record {product_id!r} has no id or name"
            raise ValueError(msg)

        price = float(record.get("price", 0))
        raw_original = record.get("originalPrice")
        original = (
            float(raw_original) if raw_original is not None else None
        )

        images = record.get("images")
        if not images and record.get("image"):
            images = [record["image"]]

        return cls(
            id=str(product_id),
            name=str(name),
            price=price,
            brand=_text(record, "brand"),
            category=_text(record, "category"),
            original_price=original,
            stock=int(record.get("stock", 0)),
            images=tuple(str(i) for i in images or ()),
            featured=bool(record.get("featured", False)),
            created_at=record.get("createdAt"),
            description=_text(record, "description"),
        )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def primary_image(self) -> str | None:
        return self.images[0] if self.images else None


@dataclass(frozen=True)
class Category:
    """A browsable product category."""

    id: str
    name: str
    icon: str = ""
    created_at: Any = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Category":
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            icon=_text(record, "icon"),
            created_at=record.get("createdAt"),
        )


@dataclass(frozen=True)
class Banner:
    """Promotional banner derived from a catalog product."""

    id: str
    product_id: str
    image: str
    title: str
    subtitle: str
