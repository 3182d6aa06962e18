"""Admin catalog management.

Creates, updates and deletes digital products and credit packages.
Issued grants and lots carry their own copied terms, so catalog changes
never reach them.
"""

from typing import Any, List, Optional

from credit_store.errors import UnauthorizedError
from credit_store.logging_config import get_logger
from credit_store.models import Actor, CreditPackage, DigitalProduct
from credit_store.repositories.catalog_repository import CatalogRepository
from credit_store.services.time_controller import TimeController
from credit_store.utils import id_generator
from credit_store.utils.id_generator import generate_record_id

logger = get_logger(__name__)


class CatalogManager:
    """Catalog operations with admin checks.

    Field validation (prices >= 0, credits > 0, expiry_days > 0) comes from
    the catalog models and surfaces as pydantic ValidationError.
    """

    def __init__(self, catalog: CatalogRepository, clock: TimeController, id_prefix: Optional[str] = None):
        self.catalog = catalog
        self.clock = clock
        self._id_prefix = id_prefix

    def _require_admin(self, actor: Actor, operation: str) -> None:
        if not actor.is_admin:
            logger.warning("unauthorized_operation", user_id=actor.user_id, operation=operation)
            raise UnauthorizedError(f"User {actor.user_id} is not allowed to {operation}")

    # Public reads

    def list_products(self, category: Optional[str] = None) -> List[DigitalProduct]:
        return self.catalog.list_products(category)

    def get_product(self, product_id: str) -> DigitalProduct:
        return self.catalog.get_product(product_id)

    def list_credit_packages(self) -> List[CreditPackage]:
        return self.catalog.list_packages()

    def get_credit_package(self, package_id: str) -> CreditPackage:
        return self.catalog.get_package(package_id)

    # Products

    def add_product(self, actor: Actor, **fields: Any) -> DigitalProduct:
        """Create a product with a generated ID.

        Raises:
            UnauthorizedError: If the actor is not an admin
            ValidationError: If the fields are invalid
        """
        self._require_admin(actor, "add products")
        product = DigitalProduct(
            id=generate_record_id(id_generator.PRODUCT, self._id_prefix),
            created_at_millis=self.clock.get_current_time_millis(),
            **fields,
        )
        self.catalog.add_product(product)
        logger.info("product_added", product_id=product.id, name=product.name, admin_id=actor.user_id)
        return product

    def update_product(self, actor: Actor, product_id: str, **changes: Any) -> DigitalProduct:
        """Apply a partial update to a product.

        Raises:
            UnauthorizedError: If the actor is not an admin
            ProductNotFoundError: If the product ID is unknown
            ValidationError: If the result is invalid
        """
        self._require_admin(actor, "update products")
        current = self.catalog.get_product(product_id)
        data = current.model_dump()
        data.update(changes)
        data["id"] = product_id
        product = DigitalProduct(**data)
        self.catalog.update_product(product)
        logger.info(
            "product_updated",
            product_id=product_id,
            fields=sorted(changes),
            admin_id=actor.user_id,
        )
        return product

    def delete_product(self, actor: Actor, product_id: str) -> DigitalProduct:
        """Remove a product from the catalog.

        Raises:
            UnauthorizedError: If the actor is not an admin
            ProductNotFoundError: If the product ID is unknown
        """
        self._require_admin(actor, "delete products")
        product = self.catalog.delete_product(product_id)
        logger.info("product_deleted", product_id=product_id, admin_id=actor.user_id)
        return product

    # Credit packages

    def add_credit_package(self, actor: Actor, **fields: Any) -> CreditPackage:
        self._require_admin(actor, "add credit packages")
        package = CreditPackage(
            id=generate_record_id(id_generator.PACKAGE, self._id_prefix),
            **fields,
        )
        self.catalog.add_package(package)
        logger.info(
            "credit_package_added",
            package_id=package.id,
            credits=package.credits,
            admin_id=actor.user_id,
        )
        return package

    def update_credit_package(self, actor: Actor, package_id: str, **changes: Any) -> CreditPackage:
        self._require_admin(actor, "update credit packages")
        current = self.catalog.get_package(package_id)
        data = current.model_dump()
        data.update(changes)
        data["id"] = package_id
        package = CreditPackage(**data)
        self.catalog.update_package(package)
        logger.info(
            "credit_package_updated",
            package_id=package_id,
            fields=sorted(changes),
            admin_id=actor.user_id,
        )
        return package

    def delete_credit_package(self, actor: Actor, package_id: str) -> CreditPackage:
        self._require_admin(actor, "delete credit packages")
        package = self.catalog.delete_package(package_id)
        logger.info("credit_package_deleted", package_id=package_id, admin_id=actor.user_id)
        return package
