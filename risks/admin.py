"""
Admin configuration for the risks app.
"""

from django.contrib import admin
from .models import ControlLibrary, Risk, RiskAction, RiskCategory, RiskControl, RiskTheme


class RiskCategoryInline(admin.TabularInline):
    model = RiskCategory
    extra = 0
    fields = ['code', 'name', 'order', 'is_active']


class RiskControlInline(admin.TabularInline):
    model = RiskControl
    extra = 0
    fields = ['control', 'implementation_status', 'effectiveness_score', 'last_tested_date', 'next_test_date']
    autocomplete_fields = ['control']


class RiskActionInline(admin.TabularInline):
    model = RiskAction
    extra = 0
    fields = ['title', 'status', 'priority', 'due_date', 'completed_at']
    readonly_fields = ['completed_at']


@admin.register(RiskTheme)
class RiskThemeAdmin(admin.ModelAdmin):
    """Admin configuration for RiskTheme model."""

    list_display = ['code', 'name', 'board_appetite', 'order', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    ordering = ['order']
    inlines = [RiskCategoryInline]


@admin.register(RiskCategory)
class RiskCategoryAdmin(admin.ModelAdmin):
    """Admin configuration for RiskCategory model."""

    list_display = ['code', 'name', 'theme', 'order', 'is_active']
    list_filter = ['theme', 'is_active']
    search_fields = ['code', 'name']


@admin.register(ControlLibrary)
class ControlLibraryAdmin(admin.ModelAdmin):
    """Admin configuration for ControlLibrary model."""

    list_display = ['code', 'name', 'control_type', 'frequency', 'is_active']
    list_filter = ['control_type', 'is_active']
    search_fields = ['code', 'name']


@admin.register(Risk)
class RiskAdmin(admin.ModelAdmin):
    """Admin configuration for Risk model."""

    list_display = [
        'ref_no', 'name', 'category', 'tier',
        'financial_impact', 'regulatory_impact', 'reputational_impact', 'inherent_probability',
        'inherent_risk_score', 'inherent_rag', 'residual_risk_score', 'residual_rag',
        'appetite_status', 'is_active',
    ]
    list_filter = ['inherent_rag', 'residual_rag', 'appetite_status', 'tier', 'category__theme', 'is_active']
    search_fields = ['ref_no', 'name']
    ordering = ['-inherent_risk_score', 'ref_no']
    readonly_fields = [
        'inherent_risk_score', 'inherent_rag', 'residual_risk_score', 'residual_rag',
        'appetite_status', 'created_at', 'updated_at',
    ]
    inlines = [RiskControlInline, RiskActionInline]
