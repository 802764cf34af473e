"""
Catalog Service Models

Product representation on the wire and in the product store.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """
    Catalog product.

    Decoding is lenient: absent fields stay None and unknown fields are dropped.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    item_id: str | None = Field(default=None, alias="itemId", description="Catalog item identifier")
    name: str | None = None
    desc: str | None = None
    price: float | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Product":
        """Build a product from its JSON object."""
        return cls.model_validate(data)

    def to_json(self) -> dict[str, Any]:
        """JSON object using the wire field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Product":
        """Build a product from a stored document, dropping the store's _id."""
        return cls.model_validate({k: v for k, v in document.items() if k != "_id"})

    def to_document(self) -> dict[str, Any]:
        """Document to insert into the product store."""
        return self.model_dump(by_alias=True)
