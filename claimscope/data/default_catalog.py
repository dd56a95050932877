"""Default catalog and regional price seed data for ClaimScope.

Rows are kept in the loose JSON shape seed files arrive in and go through
services.catalog_repository like any other payload. Catalog items with
scope_conditions can be selected as primaries for a damage observation;
items without conditions are only ever reached as companions, templates or
manual adds.
"""

from typing import Any, Dict, List

# =============================================================================
# CATALOG ITEMS
# =============================================================================

INTERIOR_WATER_DAMAGE = ["water_intrusion", "water_damage", "flood", "mold"]
STORM_DAMAGE = ["hail_impact", "wind_damage"]
CARPETED_ROOMS = [
    "interior_bedroom", "interior_living", "interior_family",
    "interior_den", "interior_dining", "interior_hallway",
]
WET_ROOMS = ["interior_kitchen", "interior_bathroom", "interior_laundry"]

DEFAULT_CATALOG_ROWS: List[Dict[str, Any]] = [
    # ---- Drywall ------------------------------------------------------------
    {
        "code": "DRY-X-1-2",
        "description": "Drywall - 1/2\" hung, taped, floated, ready for paint",
        "trade_code": "DRY", "unit": "SF", "quantity_formula": "WALL_SF_NET",
        "default_waste_factor": 10, "activity_type": "replace",
        "scope_conditions": {
            "damage_types": INTERIOR_WATER_DAMAGE + ["impact", "hole"],
            "surfaces": ["wall"],
            "severities": ["moderate", "severe"],
            "zone_types": ["interior"],
        },
        "companion_rules": {"auto_adds": ["PNT-INT-SF"], "excludes": ["DRY-PATCH-EA"]},
        "sort_order": 10,
    },
    {
        "code": "DRY-CEIL-SF",
        "description": "Drywall - ceiling, hung, taped, floated, ready for paint",
        "trade_code": "DRY", "unit": "SF", "quantity_formula": "CEILING_SF",
        "default_waste_factor": 10, "activity_type": "replace",
        "scope_conditions": {
            "damage_types": INTERIOR_WATER_DAMAGE + ["water_stain"],
            "surfaces": ["ceiling"],
            "severities": ["moderate", "severe"],
            "zone_types": ["interior"],
        },
        "companion_rules": {"auto_adds": ["PNT-CEIL-SF"]},
        "sort_order": 11,
    },
    {
        "code": "DRY-PATCH-EA",
        "description": "Drywall patch / small repair, ready for paint",
        "trade_code": "DRY", "unit": "EA", "quantity_formula": "EACH",
        "activity_type": "repair",
        "scope_conditions": {
            "damage_types": ["crack", "hole", "impact"],
            "surfaces": ["wall", "ceiling"],
            "severities": ["minor"],
        },
        "companion_rules": {"excludes": ["DRY-X-1-2"]},
        "sort_order": 12,
    },
    {"code": "DRY-TAPE-SF", "description": "Tape and finish drywall joints", "trade_code": "DRY",
     "unit": "SF", "quantity_formula": "WALL_SF_NET", "activity_type": "install"},
    {"code": "DRY-TEXT-SF", "description": "Texture drywall - match existing", "trade_code": "DRY",
     "unit": "SF", "quantity_formula": "WALL_SF_NET", "activity_type": "install"},

    # ---- Demolition ---------------------------------------------------------
    {"code": "DEM-DRY-LD", "description": "Tear out wet drywall, bag for disposal - per load (500 SF)",
     "trade_code": "DEM", "unit": "LD", "quantity_formula": "EACH", "activity_type": "remove"},
    {"code": "DEM-DRY-SF", "description": "Tear out drywall - after hours of drying", "trade_code": "DEM",
     "unit": "SF", "quantity_formula": "WALL_SF_NET", "activity_type": "remove"},
    {"code": "DEM-FLR-SF", "description": "Tear out flooring and underlayment", "trade_code": "DEM",
     "unit": "SF", "quantity_formula": "FLOOR_SF", "activity_type": "remove"},
    {"code": "DEM-RFG-SQ", "description": "Remove composition shingle roofing", "trade_code": "DEM",
     "unit": "SQ", "quantity_formula": "ROOF_SQ", "activity_type": "remove"},
    {"code": "DEM-HAUL-LD", "description": "Haul debris - per pickup truck load", "trade_code": "DEM",
     "unit": "LD", "quantity_formula": "EACH", "activity_type": "remove"},

    # ---- Mitigation ---------------------------------------------------------
    {
        "code": "MIT-EXTR-SF",
        "description": "Water extraction from floor",
        "trade_code": "MIT", "unit": "SF", "quantity_formula": "FLOOR_SF",
        "activity_type": "clean",
        "scope_conditions": {
            "damage_types": ["flood", "standing_water"],
            "surfaces": ["floor"],
            "zone_types": ["interior"],
        },
        "sort_order": 1,
    },
    {"code": "MIT-AIRM-DAY", "description": "Air mover (per 24 hour period)", "trade_code": "MIT",
     "unit": "DAY", "quantity_formula": "EACH", "activity_type": "labor_only"},
    {"code": "MIT-DEHU-DAY", "description": "Dehumidifier (per 24 hour period)", "trade_code": "MIT",
     "unit": "DAY", "quantity_formula": "EACH", "activity_type": "labor_only"},
    {"code": "MIT-APPL-SF", "description": "Apply antimicrobial agent", "trade_code": "MIT",
     "unit": "SF", "quantity_formula": "FLOOR_SF", "activity_type": "clean"},

    # ---- Painting -----------------------------------------------------------
    {"code": "PNT-INT-SF", "description": "Seal/prime then paint walls (2 coats)", "trade_code": "PNT",
     "unit": "SF", "quantity_formula": "WALL_SF_NET", "activity_type": "install"},
    {"code": "PNT-CEIL-SF", "description": "Seal/prime then paint ceiling (2 coats)", "trade_code": "PNT",
     "unit": "SF", "quantity_formula": "CEILING_SF", "activity_type": "install"},
    {"code": "PNT-TRIM-LF", "description": "Paint baseboard", "trade_code": "PNT",
     "unit": "LF", "quantity_formula": "PERIMETER_LF", "activity_type": "install"},
    {"code": "PNT-WIN-EA", "description": "Paint window trim and casing", "trade_code": "PNT",
     "unit": "EA", "quantity_formula": "EACH", "activity_type": "install"},
    {"code": "PNT-EXT-SF", "description": "Paint exterior siding (2 coats)", "trade_code": "PNT",
     "unit": "SF", "quantity_formula": "WALL_SF_NET", "activity_type": "install"},

    # ---- Flooring -----------------------------------------------------------
    {
        "code": "FLR-CARPET-SF",
        "description": "Carpet - standard grade",
        "trade_code": "FLR", "unit": "SF", "quantity_formula": "FLOOR_SF",
        "default_waste_factor": 10, "activity_type": "replace",
        "scope_conditions": {
            "damage_types": INTERIOR_WATER_DAMAGE,
            "surfaces": ["floor"],
            "room_types": CARPETED_ROOMS,
        },
        "companion_rules": {"requires": ["FLR-PAD-SF"], "auto_adds": ["DEM-FLR-SF"], "excludes": ["FLR-VINYL-SF"]},
        "sort_order": 30,
    },
    {
        "code": "FLR-VINYL-SF",
        "description": "Vinyl plank flooring",
        "trade_code": "FLR", "unit": "SF", "quantity_formula": "FLOOR_SF",
        "default_waste_factor": 8, "activity_type": "replace",
        "scope_conditions": {
            "damage_types": INTERIOR_WATER_DAMAGE,
            "surfaces": ["floor"],
            "room_types": WET_ROOMS,
        },
        "companion_rules": {"auto_adds": ["DEM-FLR-SF"], "excludes": ["FLR-CARPET-SF"]},
        "sort_order": 31,
    },
    {"code": "FLR-PAD-SF", "description": "Carpet pad", "trade_code": "FLR",
     "unit": "SF", "quantity_formula": "FLOOR_SF", "default_waste_factor": 10},
    {"code": "FLR-BASE-LF", "description": "Baseboard - 3 1/4\"", "trade_code": "FLR",
     "unit": "LF", "quantity_formula": "PERIMETER_LF", "default_waste_factor": 5},

    # ---- Roofing ------------------------------------------------------------
    {
        "code": "RFG-X-300",
        "description": "Laminated - comp. shingle roofing - w/out felt",
        "trade_code": "RFG", "unit": "SQ", "quantity_formula": "ROOF_SQ",
        "default_waste_factor": 10, "activity_type": "replace",
        "scope_conditions": {"damage_types": STORM_DAMAGE, "zone_types": ["roof"]},
        "companion_rules": {"requires": ["RFG-FELT-SQ", "RFG-DRIP-LF"], "auto_adds": ["DEM-RFG-SQ"]},
        "sort_order": 40,
    },
    {"code": "RFG-FELT-SQ", "description": "Roofing felt - 15 lb.", "trade_code": "RFG",
     "unit": "SQ", "quantity_formula": "ROOF_SQ", "default_waste_factor": 10},
    {"code": "RFG-ICE-SQ", "description": "Ice & water barrier", "trade_code": "RFG",
     "unit": "SQ", "quantity_formula": "MANUAL", "default_waste_factor": 5},
    {"code": "RFG-DRIP-LF", "description": "Drip edge", "trade_code": "RFG",
     "unit": "LF", "quantity_formula": "PERIMETER_LF", "default_waste_factor": 5},
    {"code": "RFG-RIDG-LF", "description": "Ridge cap - composition shingles", "trade_code": "RFG",
     "unit": "LF", "quantity_formula": "MANUAL"},

    # ---- Windows / exterior -------------------------------------------------
    {
        "code": "WIN-DOUBLE-EA",
        "description": "Vinyl window - double hung, 9-12 SF",
        "trade_code": "WIN", "unit": "EA", "quantity_formula": "EACH",
        "activity_type": "replace",
        "scope_conditions": {"damage_types": STORM_DAMAGE + ["impact"], "surfaces": ["window"]},
        "sort_order": 50,
    },
    {
        "code": "EXT-SIDING-SF",
        "description": "Siding - vinyl",
        "trade_code": "EXT", "unit": "SF", "quantity_formula": "WALL_SF_NET",
        "default_waste_factor": 10, "activity_type": "replace",
        "scope_conditions": {"damage_types": STORM_DAMAGE, "surfaces": ["siding", "wall"], "zone_types": ["exterior"]},
        "sort_order": 55,
    },

    # ---- Electrical / plumbing ----------------------------------------------
    {
        "code": "ELE-GFCI-EA",
        "description": "Ground fault interrupter (GFI) outlet",
        "trade_code": "ELE", "unit": "EA", "quantity_formula": "EACH",
        "activity_type": "replace",
        "scope_conditions": {
            "damage_types": ["water_intrusion", "water_damage", "electrical"],
            "surfaces": ["outlet"],
            "room_types": WET_ROOMS,
        },
        "companion_rules": {"excludes": ["ELE-OUTL-EA"]},
        "sort_order": 60,
    },
    {
        "code": "ELE-OUTL-EA",
        "description": "Outlet or switch",
        "trade_code": "ELE", "unit": "EA", "quantity_formula": "EACH",
        "activity_type": "replace",
        "scope_conditions": {
            "damage_types": ["water_intrusion", "water_damage", "electrical", "fire"],
            "surfaces": ["outlet"],
        },
        "companion_rules": {"excludes": ["ELE-GFCI-EA"]},
        "sort_order": 61,
    },
    {"code": "ELE-SMOKE-EA", "description": "Smoke detector", "trade_code": "ELE",
     "unit": "EA", "quantity_formula": "EACH", "activity_type": "install"},
    {
        "code": "PLM-SUPPLY-EA",
        "description": "Water supply line - toilet or sink",
        "trade_code": "PLM", "unit": "EA", "quantity_formula": "EACH",
        "activity_type": "replace",
        "scope_conditions": {"damage_types": ["pipe_burst", "plumbing_leak"], "surfaces": ["plumbing", "pipe"]},
        "sort_order": 70,
    },

    # ---- Cabinetry / general / contents -------------------------------------
    {
        "code": "CAB-BASE-LF",
        "description": "Cabinetry - lower (base) units",
        "trade_code": "CAB", "unit": "LF", "quantity_formula": "MANUAL",
        "activity_type": "replace",
        "scope_conditions": {"damage_types": INTERIOR_WATER_DAMAGE, "surfaces": ["cabinet"]},
        "sort_order": 80,
    },
    {"code": "GEN-PROT-SF", "description": "Floor protection - plastic and tape", "trade_code": "GEN",
     "unit": "SF", "quantity_formula": "FLOOR_SF", "activity_type": "install"},
    {"code": "GEN-CLEAN-SF", "description": "Final cleaning - construction", "trade_code": "GEN",
     "unit": "SF", "quantity_formula": "FLOOR_SF", "activity_type": "clean"},
    {"code": "CON-PACK-EA", "description": "Contents - pack out and inventory, per box", "trade_code": "GEN",
     "unit": "EA", "quantity_formula": "MANUAL", "activity_type": "labor_only", "coverage_type": "C"},
]


# =============================================================================
# REGIONAL PRICES
# =============================================================================

# National base unit costs: (material, labor, equipment)
NATIONAL_UNIT_COSTS: Dict[str, tuple] = {
    "DRY-X-1-2": (0.62, 1.58, 0.0),
    "DRY-CEIL-SF": (0.66, 1.92, 0.0),
    "DRY-PATCH-EA": (12.50, 68.00, 0.0),
    "DRY-TAPE-SF": (0.08, 0.64, 0.0),
    "DRY-TEXT-SF": (0.10, 0.52, 0.0),
    "DEM-DRY-LD": (0.0, 210.00, 35.00),
    "DEM-DRY-SF": (0.0, 0.48, 0.0),
    "DEM-FLR-SF": (0.0, 0.61, 0.0),
    "DEM-RFG-SQ": (0.0, 62.00, 8.00),
    "DEM-HAUL-LD": (0.0, 98.00, 45.00),
    "MIT-EXTR-SF": (0.0, 0.42, 0.18),
    "MIT-AIRM-DAY": (0.0, 0.0, 28.00),
    "MIT-DEHU-DAY": (0.0, 0.0, 72.00),
    "MIT-APPL-SF": (0.09, 0.21, 0.0),
    "PNT-INT-SF": (0.24, 0.71, 0.0),
    "PNT-CEIL-SF": (0.24, 0.84, 0.0),
    "PNT-TRIM-LF": (0.12, 0.86, 0.0),
    "PNT-WIN-EA": (4.50, 38.00, 0.0),
    "PNT-EXT-SF": (0.31, 0.98, 0.0),
    "FLR-CARPET-SF": (2.35, 0.62, 0.0),
    "FLR-VINYL-SF": (3.10, 1.95, 0.0),
    "FLR-PAD-SF": (0.58, 0.12, 0.0),
    "FLR-BASE-LF": (1.85, 1.72, 0.0),
    "RFG-X-300": (148.00, 96.00, 0.0),
    "RFG-FELT-SQ": (9.20, 12.40, 0.0),
    "RFG-ICE-SQ": (88.00, 24.00, 0.0),
    "RFG-DRIP-LF": (1.05, 1.20, 0.0),
    "RFG-RIDG-LF": (3.60, 2.90, 0.0),
    "WIN-DOUBLE-EA": (385.00, 142.00, 0.0),
    "EXT-SIDING-SF": (2.15, 1.84, 0.0),
    "ELE-GFCI-EA": (22.00, 46.00, 0.0),
    "ELE-OUTL-EA": (4.80, 38.00, 0.0),
    "ELE-SMOKE-EA": (34.00, 41.00, 0.0),
    "PLM-SUPPLY-EA": (14.00, 62.00, 0.0),
    "CAB-BASE-LF": (165.00, 38.00, 0.0),
    "GEN-PROT-SF": (0.12, 0.18, 0.0),
    "GEN-CLEAN-SF": (0.02, 0.31, 0.0),
    "CON-PACK-EA": (4.20, 22.00, 0.0),
}

# Region id -> (display name, material factor, labor factor)
REGION_FACTORS: Dict[str, tuple] = {
    "US-NATIONAL": ("National average", 1.00, 1.00),
    "TX-HOUSTON": ("Houston, TX", 0.97, 0.91),
    "CO-DENVER": ("Denver, CO", 1.02, 1.05),
    "NY-NYC": ("New York, NY", 1.12, 1.48),
}

PRICE_LIST_VERSION = "2026.09"
EFFECTIVE_DATE = "2026-09-01"


def default_catalog_rows() -> List[Dict[str, Any]]:
    """Return a copy of the default catalog rows."""
    return [dict(row) for row in DEFAULT_CATALOG_ROWS]


def default_price_rows() -> List[Dict[str, Any]]:
    """Build regional price rows by applying region factors to national costs."""
    rows: List[Dict[str, Any]] = []
    for region_id, (region_name, material_factor, labor_factor) in REGION_FACTORS.items():
        for code, (material, labor, equipment) in NATIONAL_UNIT_COSTS.items():
            rows.append({
                "region_id": region_id,
                "region_name": region_name,
                "line_item_code": code,
                "material_cost": round(material * material_factor, 2),
                "labor_cost": round(labor * labor_factor, 2),
                "equipment_cost": round(equipment, 2),
                "effective_date": EFFECTIVE_DATE,
                "price_list_version": PRICE_LIST_VERSION,
            })
    return rows
