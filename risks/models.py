"""
Risk models for the Risk Management Application.
"""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from risks import scoring
from risks.enums import (
    ActionPriority,
    ActionStatus,
    AppetiteStatus,
    ControlImplementationStatus,
    RAGStatus,
    RiskTier,
)


RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]
EFFECTIVENESS_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]

EFFECTIVE_CONTROL_THRESHOLD = 70


class RiskTheme(models.Model):
    """Level 1 of the risk taxonomy, carrying the board's risk appetite."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    board_appetite = models.PositiveSmallIntegerField(
        default=scoring.DEFAULT_BOARD_APPETITE,
        validators=RATING_VALIDATORS,
        help_text='Highest residual score the board tolerates for risks in this theme.',
    )
    order = models.IntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'id']
        verbose_name = 'Risk Theme'
        verbose_name_plural = 'Risk Themes'

    def __str__(self):
        return f"{self.code}: {self.name}"

    @property
    def risk_count(self):
        return Risk.objects.filter(category__theme=self).count()


class RiskCategory(models.Model):
    """Level 2 of the risk taxonomy. Codes are unique within a theme only."""

    theme = models.ForeignKey(RiskTheme, on_delete=models.PROTECT, related_name='categories')
    code = models.CharField(max_length=20)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['theme', 'order', 'id']
        verbose_name = 'Risk Category'
        verbose_name_plural = 'Risk Categories'
        constraints = [
            models.UniqueConstraint(fields=['theme', 'code'], name='uq_risk_category_theme_code'),
        ]
        indexes = [
            models.Index(fields=['theme', 'order'], name='risks_category_theme_order_idx'),
        ]

    def __str__(self):
        return f"{self.code}: {self.name}"


class ControlLibrary(models.Model):
    """Reusable control definition that can be attached to many risks."""

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    control_type = models.CharField(max_length=50, blank=True, default='', db_index=True)
    frequency = models.CharField(max_length=50, blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'risks_control_library'
        ordering = ['code']
        verbose_name = 'Control'
        verbose_name_plural = 'Control Library'

    def __str__(self):
        return f"{self.code}: {self.name}"

    @property
    def usage_count(self):
        return self.risk_controls.count()


class Risk(models.Model):
    """
    A risk in the register.

    The inherent/residual scores, their RAG statuses and the appetite status
    are derived from the impact ratings, the probability, the attached
    controls and the theme's board appetite. They are recomputed on every
    save and are never edited directly.
    """

    ref_no = models.CharField(max_length=50, unique=True, db_index=True)
    category = models.ForeignKey(RiskCategory, on_delete=models.PROTECT, related_name='risks')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    tier = models.CharField(max_length=20, choices=RiskTier.choices, blank=True, null=True, db_index=True)

    # Opaque references into the user directory
    owner_id = models.PositiveIntegerField(blank=True, null=True, db_index=True)
    responsible_party_id = models.PositiveIntegerField(blank=True, null=True)

    # Inputs
    financial_impact = models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)
    regulatory_impact = models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)
    reputational_impact = models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)
    inherent_probability = models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)

    # Derived
    inherent_risk_score = models.DecimalField(max_digits=5, decimal_places=2, editable=False, default=0)
    inherent_rag = models.CharField(
        max_length=10, choices=RAGStatus.choices, editable=False, default=RAGStatus.GREEN, db_index=True
    )
    residual_risk_score = models.DecimalField(max_digits=5, decimal_places=2, editable=False, default=0)
    residual_rag = models.CharField(
        max_length=10, choices=RAGStatus.choices, editable=False, default=RAGStatus.GREEN, db_index=True
    )
    appetite_status = models.CharField(
        max_length=10, choices=AppetiteStatus.choices, editable=False, default=AppetiteStatus.OK
    )

    monthly_update = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    SCORE_FIELDS = [
        'inherent_risk_score',
        'inherent_rag',
        'residual_risk_score',
        'residual_rag',
        'appetite_status',
    ]

    class Meta:
        ordering = ['-inherent_risk_score', 'ref_no']
        verbose_name = 'Risk'
        verbose_name_plural = 'Risks'
        indexes = [
            models.Index(fields=['financial_impact', 'inherent_probability'], name='risks_risk_impact_prob_idx'),
        ]

    def save(self, *args, **kwargs):
        """Recalculate the derived scores before saving."""
        self.calculate_scores()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | set(self.SCORE_FIELDS) | {'updated_at'}
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.ref_no}: {self.name}"

    @property
    def inherent_impact(self):
        return scoring.inherent_impact(
            self.financial_impact, self.regulatory_impact, self.reputational_impact
        )

    @property
    def inherent_rag_color(self):
        return RAGStatus(self.inherent_rag).color

    @property
    def residual_rag_color(self):
        return RAGStatus(self.residual_rag).color

    def get_board_appetite(self):
        """Board appetite of the risk's theme, or the default on a dangling link."""
        if self.category_id is None:
            return scoring.DEFAULT_BOARD_APPETITE
        appetite = (
            RiskTheme.objects
            .filter(categories__id=self.category_id)
            .values_list('board_appetite', flat=True)
            .first()
        )
        if appetite is None:
            return scoring.DEFAULT_BOARD_APPETITE
        return appetite

    def get_effectiveness_scores(self):
        if self.pk is None:
            return []
        return list(
            RiskControl.objects
            .filter(risk_id=self.pk, effectiveness_score__isnull=False)
            .values_list('effectiveness_score', flat=True)
        )

    def calculate_scores(self):
        """Refresh the derived score fields in memory."""
        scores = scoring.calculate_scores(
            financial_impact=self.financial_impact,
            regulatory_impact=self.regulatory_impact,
            reputational_impact=self.reputational_impact,
            inherent_probability=self.inherent_probability,
            effectiveness_scores=self.get_effectiveness_scores(),
            board_appetite=self.get_board_appetite(),
        )
        for field, value in scores._asdict().items():
            setattr(self, field, value)
        return scores


class RiskControl(models.Model):
    """A control from the library attached to a risk, with its effectiveness."""

    risk = models.ForeignKey(Risk, on_delete=models.CASCADE, related_name='risk_controls')
    control = models.ForeignKey(ControlLibrary, on_delete=models.PROTECT, related_name='risk_controls')
    implementation_status = models.CharField(
        max_length=20,
        choices=ControlImplementationStatus.choices,
        default=ControlImplementationStatus.PLANNED,
        db_index=True,
    )
    effectiveness_score = models.PositiveSmallIntegerField(
        blank=True, null=True, validators=EFFECTIVENESS_VALIDATORS
    )
    notes = models.TextField(blank=True, default='')
    last_tested_date = models.DateField(blank=True, null=True)
    next_test_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        verbose_name = 'Risk Control'
        verbose_name_plural = 'Risk Controls'
        constraints = [
            models.UniqueConstraint(fields=['risk', 'control'], name='uq_risk_control'),
        ]

    def __str__(self):
        return f"{self.risk_id} -> {self.control_id}"

    @property
    def is_effective(self):
        return self.effectiveness_score is not None and self.effectiveness_score >= EFFECTIVE_CONTROL_THRESHOLD

    @property
    def test_overdue(self):
        return self.next_test_date is not None and self.next_test_date < timezone.localdate()


class RiskActionQuerySet(models.QuerySet):

    def open(self):
        return self.filter(status__in=[ActionStatus.OPEN, ActionStatus.IN_PROGRESS])

    def overdue(self):
        return self.filter(due_date__lt=timezone.localdate(), completed_at__isnull=True)


class RiskAction(models.Model):
    """Remediation task tracked against a risk. Does not affect scoring."""

    risk = models.ForeignKey(Risk, on_delete=models.CASCADE, related_name='actions')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    owner_id = models.PositiveIntegerField(blank=True, null=True)
    status = models.CharField(
        max_length=20, choices=ActionStatus.choices, default=ActionStatus.OPEN, db_index=True
    )
    priority = models.CharField(
        max_length=10, choices=ActionPriority.choices, default=ActionPriority.MEDIUM, db_index=True
    )
    due_date = models.DateField(blank=True, null=True, db_index=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = RiskActionQuerySet.as_manager()

    class Meta:
        ordering = ['due_date', 'id']
        verbose_name = 'Risk Action'
        verbose_name_plural = 'Risk Actions'

    def save(self, *args, **kwargs):
        """Stamp the completion time the first time an action is completed."""
        if self.status == ActionStatus.COMPLETED and self.completed_at is None:
            self.completed_at = timezone.now()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.title

    @property
    def is_overdue(self):
        return (
            self.due_date is not None
            and self.due_date < timezone.localdate()
            and self.completed_at is None
        )
