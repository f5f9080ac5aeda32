"""
Hierarchy service for the theme -> category taxonomy.
"""

import logging

from django.db import transaction
from django.db.models import Max
from rest_framework.exceptions import ValidationError

from risks.exceptions import HasDependents
from risks.models import RiskCategory, RiskTheme
from risks.services.scoring_service import RiskScoringService

logger = logging.getLogger(__name__)


def next_order(queryset):
    """Next free display position within ``queryset``."""
    current = queryset.aggregate(max_order=Max('order'))['max_order']
    return (current or 0) + 1


class HierarchyService:
    """Service for creating, updating and deleting themes and categories."""

    def __init__(self, scoring_service=None):
        self.scoring_service = scoring_service or RiskScoringService()

    # Themes

    def create_theme(self, data):
        data = dict(data)
        with transaction.atomic():
            if data.get('order') is None:
                data['order'] = next_order(RiskTheme.objects.all())
            theme = RiskTheme.objects.create(**data)
        logger.info(f"Created risk theme {theme.code}")
        return theme

    def update_theme(self, theme, data):
        """Update a theme, rescoring its risks when the board appetite moves."""
        with transaction.atomic():
            previous_appetite = theme.board_appetite
            for field, value in data.items():
                if field == 'order' and value is None:
                    continue
                setattr(theme, field, value)
            theme.save()
            if theme.board_appetite != previous_appetite:
                logger.info(
                    f"Board appetite for theme {theme.code} changed "
                    f"from {previous_appetite} to {theme.board_appetite}"
                )
                self.scoring_service.rescore_theme(theme)
        return theme

    def delete_theme(self, theme):
        with transaction.atomic():
            if theme.categories.exists():
                logger.info(f"Refused to delete theme {theme.code}: it has categories")
                raise HasDependents('Cannot delete theme with existing categories.')
            theme.delete()

    def reorder_themes(self, items):
        """Apply ``[{'id': ..., 'order': ...}]`` to the themes' display order."""
        ids = [item['id'] for item in items]
        with transaction.atomic():
            themes = RiskTheme.objects.select_for_update().in_bulk(ids)
            missing = sorted(set(ids) - set(themes))
            if missing:
                raise ValidationError({'items': [f"Unknown theme id(s): {missing}"]})
            for item in items:
                theme = themes[item['id']]
                theme.order = item['order']
            RiskTheme.objects.bulk_update(themes.values(), ['order'])
        return len(items)

    # Categories

    def _check_code_free(self, theme, code, exclude_pk=None):
        clashes = theme.categories.filter(code=code)
        if exclude_pk is not None:
            clashes = clashes.exclude(pk=exclude_pk)
        if clashes.exists():
            raise ValidationError({'code': ['Category code already exists in this theme.']})

    def create_category(self, theme, data):
        data = dict(data)
        with transaction.atomic():
            self._check_code_free(theme, data['code'])
            if data.get('order') is None:
                data['order'] = next_order(theme.categories.all())
            category = RiskCategory.objects.create(theme=theme, **data)
        logger.info(f"Created risk category {category.code} under theme {theme.code}")
        return category

    def update_category(self, category, data):
        with transaction.atomic():
            code = data.get('code')
            if code is not None and code != category.code:
                self._check_code_free(category.theme, code, exclude_pk=category.pk)
            for field, value in data.items():
                if field == 'order' and value is None:
                    continue
                setattr(category, field, value)
            category.save()
        return category

    def delete_category(self, category):
        with transaction.atomic():
            if category.risks.exists():
                logger.info(f"Refused to delete category {category.code}: it has risks")
                raise HasDependents('Cannot delete category with existing risks.')
            category.delete()
