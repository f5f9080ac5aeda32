"""
Serializers for the Risk API.
"""

from rest_framework import serializers

from risks.models import (
    ControlLibrary,
    Risk,
    RiskAction,
    RiskCategory,
    RiskControl,
    RiskTheme,
)


class RiskThemeSerializer(serializers.ModelSerializer):
    """Serializer for RiskTheme model."""

    categories_count = serializers.SerializerMethodField()
    order = serializers.IntegerField(required=False, allow_null=True)

    class Meta:
        model = RiskTheme
        fields = [
            'id', 'code', 'name', 'description', 'board_appetite',
            'order', 'is_active', 'categories_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_categories_count(self, obj):
        count = getattr(obj, 'categories_count', None)
        if count is None:
            count = obj.categories.count()
        return count


class ThemeReorderItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    order = serializers.IntegerField()


class ThemeReorderSerializer(serializers.Serializer):
    items = ThemeReorderItemSerializer(many=True, allow_empty=False)


class RiskCategorySerializer(serializers.ModelSerializer):
    """Serializer for RiskCategory model."""

    theme_id = serializers.IntegerField(read_only=True)
    risks_count = serializers.SerializerMethodField()
    order = serializers.IntegerField(required=False, allow_null=True)

    class Meta:
        model = RiskCategory
        fields = [
            'id', 'theme_id', 'code', 'name', 'description', 'order',
            'is_active', 'risks_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']
        # Uniqueness within the theme is checked by the hierarchy service.
        validators = []

    def get_risks_count(self, obj):
        count = getattr(obj, 'risks_count', None)
        if count is None:
            count = obj.risks.count()
        return count


class ControlLibrarySerializer(serializers.ModelSerializer):
    """Serializer for ControlLibrary model."""

    usage_count = serializers.SerializerMethodField()

    class Meta:
        model = ControlLibrary
        fields = [
            'id', 'code', 'name', 'description', 'control_type',
            'frequency', 'is_active', 'usage_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_usage_count(self, obj):
        count = getattr(obj, 'usage_count_annotated', None)
        if count is None:
            count = obj.usage_count
        return count


class RiskControlSerializer(serializers.ModelSerializer):
    """Serializer for a control attached to a risk."""

    control_id = serializers.PrimaryKeyRelatedField(
        source='control', queryset=ControlLibrary.objects.all()
    )
    control = ControlLibrarySerializer(read_only=True)
    risk_id = serializers.IntegerField(read_only=True)
    is_effective = serializers.ReadOnlyField()
    test_overdue = serializers.ReadOnlyField()

    class Meta:
        model = RiskControl
        fields = [
            'id', 'risk_id', 'control_id', 'control', 'implementation_status',
            'effectiveness_score', 'notes', 'last_tested_date', 'next_test_date',
            'is_effective', 'test_overdue', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']
        # Duplicate attachment is reported as DUPLICATE_CONTROL by the service.
        validators = []


class RiskControlUpdateSerializer(RiskControlSerializer):
    """Serializer for updating a risk control; the control itself is fixed."""

    control_id = serializers.IntegerField(read_only=True)


class RiskActionSerializer(serializers.ModelSerializer):
    """Serializer for RiskAction model."""

    risk_id = serializers.IntegerField(read_only=True)
    is_overdue = serializers.ReadOnlyField()

    class Meta:
        model = RiskAction
        fields = [
            'id', 'risk_id', 'title', 'description', 'owner_id', 'status',
            'priority', 'due_date', 'completed_at', 'notes', 'is_overdue',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class RiskSummarySerializer(serializers.ModelSerializer):

    class Meta:
        model = Risk
        fields = ['id', 'ref_no', 'name']


class RiskActionListSerializer(RiskActionSerializer):
    """Action row for the register-wide action list, with its risk."""

    risk = RiskSummarySerializer(read_only=True)

    class Meta(RiskActionSerializer.Meta):
        fields = RiskActionSerializer.Meta.fields + ['risk']


class RiskSerializer(serializers.ModelSerializer):
    """Serializer for Risk model. Score fields are always read-only."""

    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=RiskCategory.objects.all()
    )
    theme_id = serializers.IntegerField(source='category.theme_id', read_only=True)
    inherent_impact = serializers.ReadOnlyField()
    inherent_risk_score = serializers.FloatField(read_only=True)
    residual_risk_score = serializers.FloatField(read_only=True)
    inherent_rag_color = serializers.ReadOnlyField()
    residual_rag_color = serializers.ReadOnlyField()

    class Meta:
        model = Risk
        fields = [
            'id', 'ref_no', 'category_id', 'theme_id', 'name', 'description', 'tier',
            'owner_id', 'responsible_party_id',
            'financial_impact', 'regulatory_impact', 'reputational_impact',
            'inherent_probability', 'inherent_impact',
            'inherent_risk_score', 'inherent_rag', 'inherent_rag_color',
            'residual_risk_score', 'residual_rag', 'residual_rag_color',
            'appetite_status', 'monthly_update', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'inherent_rag', 'residual_rag', 'appetite_status', 'created_at', 'updated_at',
        ]


class RiskDetailSerializer(RiskSerializer):
    """Risk with its attached controls and actions."""

    controls = RiskControlSerializer(source='risk_controls', many=True, read_only=True)
    actions = RiskActionSerializer(many=True, read_only=True)

    class Meta(RiskSerializer.Meta):
        fields = RiskSerializer.Meta.fields + ['controls', 'actions']


class RecalculateResultSerializer(serializers.Serializer):
    """Serializer for bulk recalculation results."""

    message = serializers.CharField()
    count = serializers.IntegerField()
