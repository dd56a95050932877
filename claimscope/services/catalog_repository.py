"""Catalog repository for ClaimScope.

Read/write access to catalog items and regional prices, plus the payload
parser used when seeding from loosely typed JSON. The engine reads from an
immutable CatalogSnapshot taken once per invocation so a concurrent seed
cannot change prices halfway through an estimate.
"""

import json
import re
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from claimscope.config.errors import CatalogError, ErrorCode, RuleDefinitionError
from claimscope.models.catalog import CatalogItem, RegionalPrice

logger = structlog.get_logger(__name__)


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# JSON-encoded rule columns that may arrive as strings
_JSON_COLUMNS = ("scope_conditions", "companion_rules")


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys to snake_case."""
    if isinstance(value, dict):
        return {_snake(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(v) for v in value]
    return value


def parse_catalog_row(row: Mapping[str, Any]) -> CatalogItem:
    """Parse one raw catalog row into a CatalogItem.

    Accepts camelCase or snake_case keys and JSON-encoded rule columns.

    Raises:
        RuleDefinitionError: If a rule column is not valid JSON.
        CatalogError: If the row does not describe a catalog item.
    """
    if not isinstance(row, Mapping):
        raise CatalogError(
            code=ErrorCode.MALFORMED_CATALOG_ROW,
            message=f"Catalog row must be an object, got {type(row).__name__}",
        )

    data = _snake_keys(dict(row))
    code = data.get("code")

    for column in _JSON_COLUMNS:
        raw = data.get(column)
        if isinstance(raw, str):
            try:
                data[column] = _snake_keys(json.loads(raw)) if raw.strip() else None
            except json.JSONDecodeError as e:
                raise RuleDefinitionError(
                    message=f"{column} is not valid JSON: {e}",
                    catalog_code=code,
                )

    if data.get("companion_rules") is None:
        data.pop("companion_rules", None)

    try:
        return CatalogItem(**data)
    except PydanticValidationError as e:
        rule_error = any(err["loc"] and err["loc"][0] in _JSON_COLUMNS for err in e.errors())
        if rule_error:
            raise RuleDefinitionError(message=str(e), catalog_code=code)
        raise CatalogError(
            code=ErrorCode.MALFORMED_CATALOG_ROW,
            message=str(e),
            catalog_code=code,
        )


def load_catalog_payload(rows: Iterable[Any]) -> Tuple[List[CatalogItem], List[str]]:
    """Parse raw catalog rows, skipping the ones that cannot be parsed.

    Returns:
        (parsed items, warnings for rejected rows)
    """
    items: List[CatalogItem] = []
    warnings: List[str] = []
    for index, row in enumerate(rows):
        try:
            items.append(parse_catalog_row(row))
        except CatalogError as e:
            logger.warning(
                "catalog_row_rejected",
                index=index,
                catalog_code=e.catalog_code,
                error_code=e.code,
                error=e.message,
            )
            warnings.append(f"Catalog row {index} ({e.catalog_code or 'no code'}) rejected: {e.message}")
    return items, warnings


def load_price_payload(rows: Iterable[Any]) -> Tuple[List[RegionalPrice], List[str]]:
    """Parse raw regional price rows, skipping the ones that cannot be parsed."""
    prices: List[RegionalPrice] = []
    warnings: List[str] = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            warnings.append(f"Price row {index} rejected: not an object")
            logger.warning("price_row_rejected", index=index, error="not an object")
            continue
        data = _snake_keys(dict(row))
        try:
            prices.append(RegionalPrice(**data))
        except PydanticValidationError as e:
            logger.warning("price_row_rejected", index=index, line_item_code=data.get("line_item_code"), error=str(e))
            warnings.append(f"Price row {index} ({data.get('line_item_code') or 'no code'}) rejected")
    return prices, warnings


# =============================================================================
# SNAPSHOT
# =============================================================================


class CatalogSnapshot:
    """Immutable view of the catalog and price tables."""

    def __init__(
        self,
        items: Mapping[str, CatalogItem],
        prices: Mapping[Tuple[str, str], RegionalPrice],
    ):
        self._items = MappingProxyType(dict(items))
        self._prices = MappingProxyType(dict(prices))

    def get_item(self, code: Optional[str]) -> Optional[CatalogItem]:
        if not code:
            return None
        return self._items.get(code.upper())

    def get_price(self, region_id: str, code: str) -> Optional[RegionalPrice]:
        return self._prices.get((region_id, code.upper()))

    def active_items(self) -> List[CatalogItem]:
        """Active items ordered by sort order, then code."""
        return sorted(
            (item for item in self._items.values() if item.is_active),
            key=lambda item: (item.sort_order, item.code),
        )

    def regions(self) -> List[str]:
        return sorted({region_id for region_id, _ in self._prices})

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._items

    def __len__(self) -> int:
        return len(self._items)


# =============================================================================
# REPOSITORY
# =============================================================================


class CatalogRepository(ABC):
    """Storage interface for catalog items and regional prices."""

    @abstractmethod
    def upsert_catalog_items(self, items: Iterable[CatalogItem]) -> int:
        """Insert or replace items keyed by code. Returns the number written."""

    @abstractmethod
    def upsert_regional_prices(self, prices: Iterable[RegionalPrice]) -> int:
        """Insert or replace prices keyed by (region_id, line_item_code)."""

    @abstractmethod
    def snapshot(self) -> CatalogSnapshot:
        """Return an immutable snapshot for one engine invocation."""

    def get_item(self, code: str) -> Optional[CatalogItem]:
        return self.snapshot().get_item(code)

    def get_price(self, region_id: str, code: str) -> Optional[RegionalPrice]:
        return self.snapshot().get_price(region_id, code)

    def seed(self, catalog_rows: Iterable[Any], price_rows: Iterable[Any] = ()) -> List[str]:
        """Parse and upsert raw seed rows.

        Returns:
            Warnings for rows that were rejected.
        """
        items, warnings = load_catalog_payload(catalog_rows)
        prices, price_warnings = load_price_payload(price_rows)
        self.upsert_catalog_items(items)
        self.upsert_regional_prices(prices)
        logger.info(
            "catalog_seeded",
            items=len(items),
            prices=len(prices),
            rejected=len(warnings) + len(price_warnings),
        )
        return warnings + price_warnings


class InMemoryCatalogRepository(CatalogRepository):
    """Dictionary-backed catalog repository."""

    def __init__(self):
        self._items: Dict[str, CatalogItem] = {}
        self._prices: Dict[Tuple[str, str], RegionalPrice] = {}

    def upsert_catalog_items(self, items: Iterable[CatalogItem]) -> int:
        count = 0
        for item in items:
            self._items[item.code] = item
            count += 1
        return count

    def upsert_regional_prices(self, prices: Iterable[RegionalPrice]) -> int:
        count = 0
        for price in prices:
            self._prices[price.key] = price
            count += 1
        return count

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(self._items, self._prices)


def build_default_catalog() -> InMemoryCatalogRepository:
    """Create an in-memory repository seeded with the default catalog."""
    from claimscope.data.default_catalog import default_catalog_rows, default_price_rows

    repository = InMemoryCatalogRepository()
    repository.seed(default_catalog_rows(), default_price_rows())
    return repository
