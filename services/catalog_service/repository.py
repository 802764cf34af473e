"""
Catalog Service Repository

Data access for products. The store itself is an external collaborator; the
API layer only depends on the CatalogService interface.
"""

from abc import ABC, abstractmethod

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from services.catalog_service.models import Product
from shared.domain.exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class CatalogService(ABC):
    """Interface to the product store."""

    @abstractmethod
    async def get_products(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    async def get_product(self, item_id: str) -> Product | None:
        """Return the product with the given item id, or None."""

    @abstractmethod
    async def add_product(self, product: Product) -> None:
        """Insert a product."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the store is unreachable."""


class MongoCatalogService(CatalogService):
    """Product store backed by a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize repository.

        Args:
            collection: Collection holding product documents
        """
        self.collection = collection

    @classmethod
    def from_database(cls, db: AsyncIOMotorDatabase, collection_name: str = "products") -> "MongoCatalogService":
        return cls(db[collection_name])

    async def get_products(self) -> list[Product]:
        """
        List all products.

        Returns:
            List of products

        Raises:
            DatabaseError: If the query fails
        """
        try:
            documents = await self.collection.find({}).to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError("Failed to list products", operation="find", cause=e) from e

        logger.debug("Products listed", count=len(documents))
        return [Product.from_document(document) for document in documents]

    async def get_product(self, item_id: str) -> Product | None:
        """
        Get product by item id.

        Args:
            item_id: Catalog item identifier

        Returns:
            Product or None
        """
        try:
            document = await self.collection.find_one({"itemId": item_id})
        except PyMongoError as e:
            raise DatabaseError(
                "Failed to fetch product",
                operation="find_one",
                context={"item_id": item_id},
                cause=e,
            ) from e

        if document is None:
            return None
        return Product.from_document(document)

    async def add_product(self, product: Product) -> None:
        try:
            await self.collection.insert_one(product.to_document())
        except PyMongoError as e:
            raise DatabaseError(
                "Failed to add product",
                operation="insert_one",
                context={"item_id": product.item_id},
                cause=e,
            ) from e

        logger.info("Product added", item_id=product.item_id)

    async def ping(self) -> None:
        try:
            await self.collection.database.command("ping")
        except PyMongoError as e:
            raise DatabaseError("Product store is unreachable", operation="ping", cause=e) from e
