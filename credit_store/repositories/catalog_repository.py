"""Catalog repository - digital products and credit packages.

Seeded from config/store.yaml and changed at runtime by admins through
CatalogManager.
"""

import threading
from typing import Dict, List, Optional

from credit_store.config import Config, get_config
from credit_store.errors import PackageNotFoundError, ProductNotFoundError
from credit_store.models import CreditPackage, DigitalProduct


class CatalogRepository:
    """Repository for product and credit package definitions.

    Entries are kept in insertion order. Lookups return copies, so issued
    grants and lots never share state with the catalog.
    """

    def __init__(self, config: Optional[Config] = None):
        """Initialize catalog repository.

        Args:
            config: Configuration instance. If not provided, uses global config.
        """
        self._config = config or get_config()
        self._products_by_id: Dict[str, DigitalProduct] = {}
        self._packages_by_id: Dict[str, CreditPackage] = {}
        self._lock = threading.RLock()
        self._load_catalog()

    def _load_catalog(self) -> None:
        """Load the seed catalog from configuration."""
        with self._lock:
            self._products_by_id.clear()
            self._packages_by_id.clear()

            for product in self._config.catalog.products:
                self._products_by_id[product.id] = product.model_copy()

            for package in self._config.catalog.credit_packages:
                self._packages_by_id[package.id] = package.model_copy()

    # Products

    def get_product(self, product_id: str) -> DigitalProduct:
        """Get product by ID.

        Raises:
            ProductNotFoundError: If product ID not found
        """
        product = self.find_product(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product not found: {product_id}")
        return product

    def find_product(self, product_id: str) -> Optional[DigitalProduct]:
        """Find product by ID (returns None if not found)."""
        with self._lock:
            product = self._products_by_id.get(product_id)
            return product.model_copy() if product else None

    def list_products(self, category: Optional[str] = None) -> List[DigitalProduct]:
        """List products, optionally filtered by category."""
        with self._lock:
            return [
                p.model_copy()
                for p in self._products_by_id.values()
                if category is None or p.category == category
            ]

    def add_product(self, product: DigitalProduct) -> None:
        """Add a product.

        Raises:
            ValueError: If the product ID already exists
        """
        with self._lock:
            if product.id in self._products_by_id:
                raise ValueError(f"Product '{product.id}' already exists")
            self._products_by_id[product.id] = product.model_copy()

    def update_product(self, product: DigitalProduct) -> None:
        """Replace an existing product definition.

        Raises:
            ProductNotFoundError: If product ID not found
        """
        with self._lock:
            if product.id not in self._products_by_id:
                raise ProductNotFoundError(f"Product not found: {product.id}")
            self._products_by_id[product.id] = product.model_copy()

    def delete_product(self, product_id: str) -> DigitalProduct:
        """Remove a product and return its last definition.

        Raises:
            ProductNotFoundError: If product ID not found
        """
        with self._lock:
            product = self._products_by_id.pop(product_id, None)
            if product is None:
                raise ProductNotFoundError(f"Product not found: {product_id}")
            return product

    # Credit packages

    def get_package(self, package_id: str) -> CreditPackage:
        """Get credit package by ID.

        Raises:
            PackageNotFoundError: If package ID not found
        """
        package = self.find_package(package_id)
        if package is None:
            raise PackageNotFoundError(f"Credit package not found: {package_id}")
        return package

    def find_package(self, package_id: str) -> Optional[CreditPackage]:
        """Find credit package by ID (returns None if not found)."""
        with self._lock:
            package = self._packages_by_id.get(package_id)
            return package.model_copy() if package else None

    def list_packages(self) -> List[CreditPackage]:
        with self._lock:
            return [p.model_copy() for p in self._packages_by_id.values()]

    def add_package(self, package: CreditPackage) -> None:
        """Add a credit package.

        Raises:
            ValueError: If the package ID already exists
        """
        with self._lock:
            if package.id in self._packages_by_id:
                raise ValueError(f"Credit package '{package.id}' already exists")
            self._packages_by_id[package.id] = package.model_copy()

    def update_package(self, package: CreditPackage) -> None:
        """Replace an existing credit package definition.

        Raises:
            PackageNotFoundError: If package ID not found
        """
        with self._lock:
            if package.id not in self._packages_by_id:
                raise PackageNotFoundError(f"Credit package not found: {package.id}")
            self._packages_by_id[package.id] = package.model_copy()

    def delete_package(self, package_id: str) -> CreditPackage:
        """Remove a credit package and return its last definition.

        Raises:
            PackageNotFoundError: If package ID not found
        """
        with self._lock:
            package = self._packages_by_id.pop(package_id, None)
            if package is None:
                raise PackageNotFoundError(f"Credit package not found: {package_id}")
            return package

    def reload(self) -> None:
        """Reload configuration and reset the catalog to its seed state."""
        self._config.reload()
        self._load_catalog()

    def __len__(self) -> int:
        """Get number of catalog entries (products and packages)."""
        with self._lock:
            return len(self._products_by_id) + len(self._packages_by_id)

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"CatalogRepository(products={len(self._products_by_id)}, "
                f"packages={len(self._packages_by_id)})"
            )
