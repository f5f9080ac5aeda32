"""
CSV Service for loading risk reference data (themes, categories and the
control library) from CSV files.
"""

import logging
import os

import pandas as pd
from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import ValidationError

from risks.models import ControlLibrary, RiskTheme
from risks.services.hierarchy_service import HierarchyService

logger = logging.getLogger(__name__)


TRUE_VALUES = {'yes', 'y', 'true', '1', 'active'}


class CSVService:
    """Service for loading reference data from CSV files."""

    KINDS = ('themes', 'categories', 'controls')

    ROW_HANDLERS = {
        'themes': '_load_theme',
        'categories': '_load_category',
        'controls': '_load_control',
    }

    DEFAULT_FILES = {
        'themes': 'risk_themes.csv',
        'categories': 'risk_categories.csv',
        'controls': 'control_library.csv',
    }

    def __init__(self, kind, file_path=None, hierarchy_service=None):
        """Initialize for one kind of reference data with an optional file path."""
        if kind not in self.KINDS:
            raise ValueError(f"Unknown reference data kind: {kind}")
        self.kind = kind
        self.file_path = file_path or os.path.join(
            getattr(settings, 'RISK_REFERENCE_CSV_DIR', ''), self.DEFAULT_FILES[kind]
        )
        self.hierarchy_service = hierarchy_service or HierarchyService()

    def load(self):
        """
        Load rows from the CSV file and upsert them by code.
        Returns statistics about the operation.
        """
        try:
            df = pd.read_csv(self.file_path, dtype=str, keep_default_na=False)
        except FileNotFoundError:
            logger.warning(f"Reference CSV not found at {self.file_path}")
            return {
                'success': False,
                'message': f"CSV file not found at: {self.file_path}",
                'error': 'FILE_NOT_FOUND',
            }

        # Clean column names
        df.columns = df.columns.str.strip()

        handler = getattr(self, self.ROW_HANDLERS[self.kind])
        created_count = 0
        updated_count = 0
        errors = []

        for index, row in df.iterrows():
            try:
                with transaction.atomic():
                    result = handler(row)
            except (ValueError, KeyError) as e:
                errors.append(f"Row {index + 2}: {e}")
                continue
            except ValidationError as e:
                errors.append(f"Row {index + 2}: {e.detail}")
                continue
            if result is None:
                continue
            if result:
                created_count += 1
            else:
                updated_count += 1

        logger.info(
            f"Loaded {self.kind} from {self.file_path}: "
            f"{created_count} created, {updated_count} updated, {len(errors)} errors"
        )
        return {
            'success': True,
            'message': f"CSV load of {self.kind} completed.",
            'created': created_count,
            'updated': updated_count,
            'total_processed': created_count + updated_count,
            'errors': errors if errors else None,
        }

    # Parsing helpers

    def _text(self, row, column, default=''):
        value = row.get(column, default)
        if pd.isna(value):
            return default
        return str(value).strip()

    def _required(self, row, column):
        value = self._text(row, column)
        if not value:
            raise ValueError(f"'{column}' is required")
        return value

    def _int(self, row, column, minimum=None, maximum=None):
        value = self._text(row, column)
        if value == '':
            return None
        try:
            number = int(float(value))
        except ValueError:
            raise ValueError(f"'{column}' must be a whole number, got '{value}'")
        if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
            raise ValueError(f"'{column}' must be between {minimum} and {maximum}, got {number}")
        return number

    def _flag(self, row, column, default=True):
        value = self._text(row, column)
        if value == '':
            return default
        return value.lower() in TRUE_VALUES

    # Row handlers return True when a row was created, False when updated
    # and None for blank rows.

    def _load_theme(self, row):
        if not self._text(row, 'Code'):
            return None
        data = {
            'code': self._required(row, 'Code'),
            'name': self._required(row, 'Name'),
            'description': self._text(row, 'Description'),
            'is_active': self._flag(row, 'Is Active'),
        }
        appetite = self._int(row, 'Board Appetite', 1, 5)
        if appetite is not None:
            data['board_appetite'] = appetite
        order = self._int(row, 'Order')
        if order is not None:
            data['order'] = order

        theme = RiskTheme.objects.filter(code=data['code']).first()
        if theme is None:
            self.hierarchy_service.create_theme(data)
            return True
        self.hierarchy_service.update_theme(theme, data)
        return False

    def _load_category(self, row):
        if not self._text(row, 'Code'):
            return None
        theme_code = self._required(row, 'Theme Code')
        theme = RiskTheme.objects.filter(code=theme_code).first()
        if theme is None:
            raise ValueError(f"Unknown theme code '{theme_code}'")

        data = {
            'code': self._required(row, 'Code'),
            'name': self._required(row, 'Name'),
            'description': self._text(row, 'Description'),
            'is_active': self._flag(row, 'Is Active'),
        }
        order = self._int(row, 'Order')
        if order is not None:
            data['order'] = order

        category = theme.categories.filter(code=data['code']).first()
        if category is None:
            self.hierarchy_service.create_category(theme, data)
            return True
        self.hierarchy_service.update_category(category, data)
        return False

    def _load_control(self, row):
        if not self._text(row, 'Code'):
            return None
        code = self._required(row, 'Code')
        _, created = ControlLibrary.objects.update_or_create(
            code=code,
            defaults={
                'name': self._required(row, 'Name'),
                'description': self._text(row, 'Description'),
                'control_type': self._text(row, 'Control Type'),
                'frequency': self._text(row, 'Frequency'),
                'is_active': self._flag(row, 'Is Active'),
            },
        )
        return created
