"""Water damage classification protocol (IICRC).

A seven-question flow the voice agent walks through for water losses. The
answers are classified into a WaterClassification, which in turn drives
the water-forced companions and the water validation checks.
"""

from datetime import datetime
from typing import List, Optional

import structlog

from claimscope.models.inspection import (
    ContaminationLevel,
    WaterClassification,
    WaterProtocolQuestion,
    WaterProtocolResponses,
    WaterSource,
)

logger = structlog.get_logger(__name__)


# Source keyword -> cleanliness, checked in order
SOURCE_MAP = (
    ("supply line", WaterSource.CLEAN),
    ("supply", WaterSource.CLEAN),
    ("rain", WaterSource.CLEAN),
    ("sprinkler", WaterSource.CLEAN),
    ("water heater", WaterSource.CLEAN),
    ("washing machine", WaterSource.GRAY),
    ("dishwasher", WaterSource.GRAY),
    ("dish washer", WaterSource.GRAY),
    ("sink", WaterSource.GRAY),
    ("sewer", WaterSource.BLACK),
    ("sewage", WaterSource.BLACK),
    ("toilet", WaterSource.BLACK),
    ("flood", WaterSource.BLACK),
)

SOURCE_CATEGORIES = {
    WaterSource.CLEAN: 1,
    WaterSource.GRAY: 2,
    WaterSource.BLACK: 3,
}

PROTOCOL_QUESTIONS = [
    WaterProtocolQuestion(
        step=1,
        question="What was the source of the water damage?",
        field="water_source",
        answer_format="text",
        examples=["supply line break", "washing machine overflow", "sewer backup", "rain/flood"],
    ),
    WaterProtocolQuestion(
        step=2, question="When did the water first appear?",
        field="standing_water_start", answer_format="datetime",
    ),
    WaterProtocolQuestion(
        step=3, question="When was the water completely removed?",
        field="standing_water_end", answer_format="datetime",
    ),
    WaterProtocolQuestion(
        step=4, question="What is the approximate affected area in square feet?",
        field="affected_area", answer_format="number",
    ),
    WaterProtocolQuestion(
        step=5, question="Do you see visible contamination (discoloration, odor, growth)?",
        field="visible_contamination", answer_format="boolean",
    ),
    WaterProtocolQuestion(
        step=6, question="What materials are affected? (drywall, carpet, wood, concrete)",
        field="affected_materials", answer_format="text",
    ),
    WaterProtocolQuestion(
        step=7, question="Any additional notes about the water damage?",
        field="notes", answer_format="text",
    ),
]


def get_protocol_questions() -> List[WaterProtocolQuestion]:
    """Return the protocol questions in asking order."""
    return [q.model_copy() for q in PROTOCOL_QUESTIONS]


def infer_water_source(description: str) -> WaterSource:
    """Map a free-text source to clean/gray/black; unknown sources are gray."""
    text = (description or "").lower().strip()
    for keyword, source in SOURCE_MAP:
        if keyword in text:
            return source
    return WaterSource.GRAY


def assess_contamination(category: int, standing_hours: float, visible_contamination: bool) -> ContaminationLevel:
    if category == 3:
        return ContaminationLevel.HIGH
    if category == 2 and (standing_hours > 24 or visible_contamination):
        return ContaminationLevel.HIGH
    if category == 2 and standing_hours > 12:
        return ContaminationLevel.MEDIUM
    return ContaminationLevel.LOW


def is_drying_possible(category: int, standing_hours: float, affected_area: float) -> bool:
    """In-place drying is ruled out for black water and long-standing gray water."""
    if category == 3:
        return False
    if category == 2 and standing_hours > 48:
        return False
    if affected_area > 1000 and standing_hours > 72:
        return False
    return True


def determine_water_class(affected_area: float, drying_possible: bool) -> int:
    """IICRC class 1-4 from extent of saturation."""
    if not drying_possible:
        return 4
    if affected_area > 300:
        return 3
    if affected_area > 24:
        return 2
    return 1


def classify_water_damage(
    responses: WaterProtocolResponses,
    now: Optional[datetime] = None,
) -> WaterClassification:
    """Classify water damage from protocol answers.

    Args:
        responses: Protocol answers.
        now: Reference time for open-ended standing water; defaults to the
            current time.

    Returns:
        WaterClassification.
    """
    now = now or datetime.now()
    source = infer_water_source(responses.water_source)
    category = SOURCE_CATEGORIES[source]

    start = responses.standing_water_start or now
    end = responses.standing_water_end or now
    standing_hours = max(0.0, (end - start).total_seconds() / 3600.0)
    affected_area = responses.affected_area or 0.0

    drying_possible = is_drying_possible(category, standing_hours, affected_area)
    classification = WaterClassification(
        category=category,
        water_class=determine_water_class(affected_area, drying_possible),
        source=source,
        contamination_level=assess_contamination(category, standing_hours, responses.visible_contamination),
        drying_possible=drying_possible,
        notes=responses.notes,
    )

    logger.info(
        "water_damage_classified",
        source=source.value,
        category=classification.category,
        water_class=classification.water_class,
        drying_possible=drying_possible,
        standing_hours=round(standing_hours, 1),
    )
    return classification
