"""ClaimScope error handling.

Custom exceptions and error codes for the scope and estimate engine.

Most business conditions (missing price, missing dimension, ineligible O&P)
are reported as warnings or validation issues rather than raised. The
exceptions below are raised for individual items and caught by the batch
operations, or for states the engine cannot reason about at all.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FIELD = "INVALID_FIELD"
    INVALID_CONFIG = "INVALID_CONFIG"

    # Catalog Errors
    CATALOG_ITEM_NOT_FOUND = "CATALOG_ITEM_NOT_FOUND"
    MALFORMED_CATALOG_ROW = "MALFORMED_CATALOG_ROW"
    MALFORMED_RULE = "MALFORMED_RULE"

    # Pricing Errors
    NO_REGIONAL_PRICE = "NO_REGIONAL_PRICE"

    # Scope Errors
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    SCOPE_ITEM_NOT_FOUND = "SCOPE_ITEM_NOT_FOUND"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"


class ClaimScopeError(Exception):
    """Base exception for ClaimScope errors.

    Provides structured error information for the host application.

    Attributes:
        code: One of the ErrorCode constants
        message: Message safe to show the adjuster
        details: Identifiers of the offending item, room or region
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the host's error payload."""
        return {"code": self.code, "message": self.message, "details": self.details}

    def __repr__(self) -> str:
        return f"ClaimScopeError(code={self.code!r}, message={self.message!r})"


class ValidationError(ClaimScopeError):
    """Validation-specific error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )


class CatalogError(ClaimScopeError):
    """Catalog lookup or catalog data error."""

    def __init__(
        self,
        code: str,
        message: str,
        catalog_code: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "catalog_code": catalog_code}
        )
        self.catalog_code = catalog_code


class RuleDefinitionError(CatalogError):
    """A companion or scope rule payload could not be parsed."""

    def __init__(self, message: str, catalog_code: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.MALFORMED_RULE,
            message=message,
            catalog_code=catalog_code,
            details=details
        )


class MissingRegionalPriceError(ClaimScopeError):
    """No regional price row exists for an item in the requested region."""

    def __init__(self, catalog_code: str, region_id: str, scope_item_id: Optional[int] = None):
        super().__init__(
            code=ErrorCode.NO_REGIONAL_PRICE,
            message=f"No regional price for {catalog_code} in region {region_id}",
            details={
                "catalog_code": catalog_code,
                "region_id": region_id,
                "scope_item_id": scope_item_id,
            }
        )
        self.catalog_code = catalog_code
        self.region_id = region_id
        self.scope_item_id = scope_item_id


class InvariantViolationError(ClaimScopeError):
    """State that should never occur, e.g. a negative quantity."""

    def __init__(self, message: str, scope_item_id: Optional[int] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.INVARIANT_VIOLATION,
            message=message,
            details={**(details or {}), "scope_item_id": scope_item_id}
        )
        self.scope_item_id = scope_item_id
