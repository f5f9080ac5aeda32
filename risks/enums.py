"""
Closed categorical values used across the risk register.
"""

from django.db import models


class RAGStatus(models.TextChoices):
    BLUE = 'Blue', 'Blue (Closed)'
    GREEN = 'Green', 'Green (OK)'
    AMBER = 'Amber', 'Amber (Attention)'
    RED = 'Red', 'Red (Critical)'

    @property
    def color(self):
        return {
            'Blue': '#3498db',
            'Green': '#27ae60',
            'Amber': '#f39c12',
            'Red': '#e74c3c',
        }[self.value]


class AppetiteStatus(models.TextChoices):
    OK = 'OK', 'Within appetite'
    OUTSIDE = 'Outside', 'Outside appetite'


class RiskTier(models.TextChoices):
    TIER_A = 'Tier A', 'Tier A - High'
    TIER_B = 'Tier B', 'Tier B - Medium'
    TIER_C = 'Tier C', 'Tier C - Low'


class ControlImplementationStatus(models.TextChoices):
    PLANNED = 'Planned', 'Planned'
    IN_PROGRESS = 'In Progress', 'In Progress'
    IMPLEMENTED = 'Implemented', 'Implemented'


class ActionStatus(models.TextChoices):
    OPEN = 'Open', 'Open'
    IN_PROGRESS = 'In Progress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'
    OVERDUE = 'Overdue', 'Overdue'


class ActionPriority(models.TextChoices):
    HIGH = 'High', 'High'
    MEDIUM = 'Medium', 'Medium'
    LOW = 'Low', 'Low'
