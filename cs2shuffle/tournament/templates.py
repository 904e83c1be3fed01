"""
Rating templates: stat-weighted adjustments on top of the win/loss rating.

A template maps match stats (kills, deaths, assists, adr) to weights. After a
match the weighted sum of a player's stats is clamped to the template's
bounds, rounded, and added to the display ELO the rating model produced.
The built-in "Pure Win/Loss" template has every weight at zero.
"""

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from cs2shuffle.exceptions import InvalidRatingTemplate, RatingTemplateNotFound
from cs2shuffle.storage.database import Database
from cs2shuffle.utils.constants import DEFAULT_RATING_TEMPLATE_ID, TEMPLATE_STATS
from cs2shuffle.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class RatingTemplate:
    """Stat weights and adjustment bounds."""
    id: str
    name: str
    weights: Dict[str, float] = field(default_factory=dict)
    enabled: bool = False
    description: Optional[str] = None
    min_adjustment: Optional[float] = None
    max_adjustment: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'RatingTemplate':
        return cls(
            id=row['id'],
            name=row['name'],
            weights=json.loads(row['weights'] or '{}'),
            enabled=bool(row['enabled']),
            description=row.get('description'),
            min_adjustment=row.get('min_adjustment'),
            max_adjustment=row.get('max_adjustment'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_adjustment(template: RatingTemplate, stats: Dict[str, Any]) -> int:
    """
    Weighted stat sum for one player, clamped to the template bounds and rounded.

    Stats without a weight, and missing stat values, contribute nothing.
    """
    adjustment = 0.0
    for stat in TEMPLATE_STATS:
        weight = template.weights.get(stat)
        if weight is not None:
            adjustment += (stats.get(stat) or 0) * weight

    if template.min_adjustment is not None:
        adjustment = max(template.min_adjustment, adjustment)
    if template.max_adjustment is not None:
        adjustment = min(template.max_adjustment, adjustment)
    return int(round(adjustment))


def slugify(name: str) -> str:
    slug = re.sub(r'[^a-z0-9\s-]', '', name.lower().strip())
    slug = re.sub(r'[\s-]+', '-', slug)
    return slug.strip('-')


class RatingTemplateStore:
    """Persistence of rating templates."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, template_id: str) -> Optional[RatingTemplate]:
        row = self.db.query_one("SELECT * FROM rating_templates WHERE id = ?", (template_id,))
        return RatingTemplate.from_row(row) if row else None

    def ensure_default(self) -> RatingTemplate:
        """Create the zero-weight default template, or re-enable it."""
        template = self.get(DEFAULT_RATING_TEMPLATE_ID)
        if template is None:
            template = self.create(
                "Pure Win/Loss",
                weights={stat: 0 for stat in TEMPLATE_STATS},
                enabled=True,
                description="Only team result affects ELO. No stat adjustments.",
                template_id=DEFAULT_RATING_TEMPLATE_ID,
            )
            logger.info('Created default "Pure Win/Loss" rating template')
        elif not template.enabled:
            self.db.update('rating_templates', {'enabled': 1, 'updated_at': utc_now()},
                           "id = ?", (DEFAULT_RATING_TEMPLATE_ID,))
            template.enabled = True
            logger.info('Enabled default "Pure Win/Loss" rating template')
        return template

    def get_all(self) -> List[RatingTemplate]:
        """All templates, the built-in default first."""
        self.ensure_default()
        rows = self.db.query(
            "SELECT * FROM rating_templates ORDER BY id = ? DESC, created_at, id",
            (DEFAULT_RATING_TEMPLATE_ID,)
        )
        return [RatingTemplate.from_row(row) for row in rows]

    def create(
        self,
        name: str,
        weights: Optional[Dict[str, float]] = None,
        enabled: bool = False,
        description: Optional[str] = None,
        min_adjustment: Optional[float] = None,
        max_adjustment: Optional[float] = None,
        template_id: Optional[str] = None
    ) -> RatingTemplate:
        """
        Insert a template; the id defaults to a slug of the name.

        Raises:
            InvalidRatingTemplate: Empty name or id, unknown stat weight,
                inverted bounds, or an id that is already taken
        """
        if not name or not name.strip():
            raise InvalidRatingTemplate("Template name is required.")
        template_id = template_id or slugify(name)
        if not template_id:
            raise InvalidRatingTemplate(f"Cannot derive a template id from name '{name}'.")

        weights = dict(weights or {})
        unknown = sorted(set(weights) - set(TEMPLATE_STATS))
        if unknown:
            raise InvalidRatingTemplate(
                f"Unknown stat weight(s): {', '.join(unknown)}. "
                f"Expected any of: {', '.join(TEMPLATE_STATS)}."
            )
        if min_adjustment is not None and max_adjustment is not None and min_adjustment > max_adjustment:
            raise InvalidRatingTemplate(
                f"Minimum adjustment {min_adjustment} is greater than maximum {max_adjustment}."
            )
        if self.get(template_id) is not None:
            raise InvalidRatingTemplate(f"Template with ID '{template_id}' already exists.")

        now = utc_now()
        self.db.insert('rating_templates', {
            'id': template_id,
            'name': name.strip(),
            'description': description.strip() if description and description.strip() else None,
            'enabled': 1 if enabled else 0,
            'weights': json.dumps(weights),
            'min_adjustment': min_adjustment,
            'max_adjustment': max_adjustment,
            'created_at': now,
            'updated_at': now,
        })
        logger.info(f"Created rating template {template_id} '{name.strip()}'")
        return self.get(template_id)

    def delete(self, template_id: str):
        """
        Remove a template. Tournaments that name it fall back to no adjustment.

        Raises:
            InvalidRatingTemplate: For the built-in default template
            RatingTemplateNotFound: Unknown id
        """
        if template_id == DEFAULT_RATING_TEMPLATE_ID:
            raise InvalidRatingTemplate('Cannot delete the default "Pure Win/Loss" template.')
        if not self.db.delete('rating_templates', "id = ?", (template_id,)):
            raise RatingTemplateNotFound(template_id)
        logger.info(f"Deleted rating template {template_id}")
