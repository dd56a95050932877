"""ClaimScope - Scope Assembly & Estimate Engine.

Turns damage observed by a field adjuster into a priced, carrier-compliant
repair estimate.

Architecture:
- Catalog store: trade-coded catalog items and regional prices
- Geometry resolver and quantity formulas
- Companion rule engine: cascades expected co-occurring line items
- Pricing, depreciation and estimate aggregation
- Scope validation
- ScopeEngine facade tying them to the host's repositories
"""

__version__ = "1.0.0"
