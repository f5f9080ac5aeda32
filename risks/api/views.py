"""
API Views for the Risk Management Application.
"""

from django.db import transaction
from django.db.models import Case, Count, F, IntegerField, Q, Value, When
from django.shortcuts import get_object_or_404
from rest_framework import generics
from rest_framework.decorators import api_view
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from risks.enums import ActionStatus, AppetiteStatus, RAGStatus
from risks.heatmap import build_heatmap
from risks.models import (
    ControlLibrary,
    Risk,
    RiskAction,
    RiskCategory,
    RiskTheme,
)
from risks.services.control_service import ControlAttachmentService
from risks.services.hierarchy_service import HierarchyService
from risks.services.scoring_service import RiskScoringService
from .serializers import (
    ControlLibrarySerializer,
    RecalculateResultSerializer,
    RiskActionListSerializer,
    RiskActionSerializer,
    RiskCategorySerializer,
    RiskControlSerializer,
    RiskControlUpdateSerializer,
    RiskDetailSerializer,
    RiskSerializer,
    RiskThemeSerializer,
    ThemeReorderSerializer,
)


RISK_SORT_FIELDS = {
    'ref_no', 'name', 'tier', 'created_at', 'updated_at',
    'inherent_risk_score', 'residual_risk_score',
    'inherent_rag', 'residual_rag', 'appetite_status',
}


def parse_bool(value):
    return str(value).lower() in ('true', '1', 'yes')


def parse_id(params, name):
    """Integer id from the query string, or None when absent."""
    value = params.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: ['A valid integer is required.']})


class RiskPagination(PageNumberPagination):
    """Custom pagination for risks."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


# Themes

class RiskThemeListView(generics.ListCreateAPIView):
    """
    GET: List risk themes in display order. Query params: is_active
    POST: Create a theme; order defaults to the end of the list.
    """
    serializer_class = RiskThemeSerializer

    def get_queryset(self):
        queryset = RiskTheme.objects.annotate(categories_count=Count('categories'))

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        return queryset.order_by('order', 'id')

    def perform_create(self, serializer):
        serializer.instance = HierarchyService().create_theme(serializer.validated_data)


class RiskThemeDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve a theme.
    PATCH/PUT: Update a theme; a new board appetite rescores its risks.
    DELETE: Delete a theme without categories.
    """
    queryset = RiskTheme.objects.all()
    serializer_class = RiskThemeSerializer

    def perform_update(self, serializer):
        serializer.instance = HierarchyService().update_theme(
            serializer.instance, serializer.validated_data
        )

    def perform_destroy(self, instance):
        HierarchyService().delete_theme(instance)


@api_view(['POST'])
def reorder_themes(request):
    """Set the display order of several themes at once."""
    serializer = ThemeReorderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    count = HierarchyService().reorder_themes(serializer.validated_data['items'])
    return Response({
        'message': 'Themes reordered successfully',
        'count': count,
    })


# Categories

class RiskCategoryListView(generics.ListCreateAPIView):
    """
    GET: List the categories of a theme. Query params: is_active
    POST: Create a category under the theme.
    """
    serializer_class = RiskCategorySerializer

    def get_theme(self):
        return get_object_or_404(RiskTheme, pk=self.kwargs['theme_pk'])

    def get_queryset(self):
        theme = self.get_theme()
        queryset = theme.categories.annotate(risks_count=Count('risks'))

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        return queryset.order_by('order', 'id')

    def perform_create(self, serializer):
        serializer.instance = HierarchyService().create_category(
            self.get_theme(), serializer.validated_data
        )


class RiskCategoryDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve a category of a theme.
    PATCH/PUT: Update it.
    DELETE: Delete a category without risks.
    """
    serializer_class = RiskCategorySerializer

    def get_queryset(self):
        return RiskCategory.objects.filter(theme_id=self.kwargs['theme_pk'])

    def perform_update(self, serializer):
        serializer.instance = HierarchyService().update_category(
            serializer.instance, serializer.validated_data
        )

    def perform_destroy(self, instance):
        HierarchyService().delete_category(instance)


# Control library

class ControlLibraryListView(generics.ListCreateAPIView):
    """
    GET: List library controls. Query params: is_active, control_type, search
    POST: Create a library control.
    """
    serializer_class = ControlLibrarySerializer
    pagination_class = RiskPagination

    def get_queryset(self):
        queryset = ControlLibrary.objects.annotate(usage_count_annotated=Count('risk_controls'))

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        control_type = self.request.query_params.get('control_type')
        if control_type:
            queryset = queryset.filter(control_type=control_type)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(code__icontains=search) |
                Q(name__icontains=search) |
                Q(description__icontains=search)
            )

        return queryset.order_by('code')


class ControlLibraryDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve a library control.
    PATCH/PUT: Update it.
    DELETE: Delete a control no risk uses.
    """
    queryset = ControlLibrary.objects.all()
    serializer_class = ControlLibrarySerializer

    def perform_destroy(self, instance):
        ControlAttachmentService().delete_library_control(instance)


@api_view(['GET'])
def control_dropdown(request):
    """Active controls for selection lists."""
    controls = ControlLibrary.objects.filter(is_active=True).order_by('code')
    return Response({
        'controls': [
            {
                'id': c.id,
                'code': c.code,
                'name': c.name,
                'label': f"{c.code} - {c.name}",
                'type': c.control_type,
            }
            for c in controls
        ]
    })


# Risks

class RiskListView(generics.ListCreateAPIView):
    """
    GET: List all risks with optional filtering.
    Query params: theme_id, category_id, tier, inherent_rag, residual_rag,
    appetite_status, owner_id, is_active, search, sort_by
    POST: Create a risk; its scores are calculated immediately.
    """
    serializer_class = RiskSerializer
    pagination_class = RiskPagination

    def get_queryset(self):
        queryset = Risk.objects.select_related('category')
        params = self.request.query_params

        theme_id = parse_id(params, 'theme_id')
        if theme_id is not None:
            queryset = queryset.filter(category__theme_id=theme_id)

        category_id = parse_id(params, 'category_id')
        if category_id is not None:
            queryset = queryset.filter(category_id=category_id)

        owner_id = parse_id(params, 'owner_id')
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)

        for field in ('tier', 'inherent_rag', 'residual_rag', 'appetite_status'):
            value = params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})

        is_active = params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        # Search
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(ref_no__icontains=search) |
                Q(name__icontains=search) |
                Q(description__icontains=search)
            )

        # Sorting
        sort_by = params.get('sort_by', '-inherent_risk_score')
        if sort_by.lstrip('-') in RISK_SORT_FIELDS:
            queryset = queryset.order_by(sort_by, 'ref_no')

        return queryset

    def perform_create(self, serializer):
        with transaction.atomic():
            serializer.save()


class RiskDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve a single risk with its controls and actions.
    PATCH/PUT: Update a risk; its scores are recalculated.
    DELETE: Delete a risk along with its controls and actions.
    """
    queryset = Risk.objects.select_related('category')

    def get_serializer_class(self):
        if self.request.method == 'GET':
            return RiskDetailSerializer
        return RiskSerializer

    def perform_update(self, serializer):
        with transaction.atomic():
            serializer.instance = Risk.objects.select_for_update().get(pk=serializer.instance.pk)
            serializer.save()


@api_view(['POST'])
def recalculate_risk(request, pk):
    """Recalculate the scores of a single risk."""
    risk = RiskScoringService().rescore(pk)
    return Response(RiskDetailSerializer(risk).data)


@api_view(['POST'])
def recalculate_all(request):
    """Recalculate the scores of every risk in the register."""
    result = RiskScoringService().recalculate_all()
    return Response(RecalculateResultSerializer(result).data)


@api_view(['GET'])
def risk_heatmap(request):
    """Get the 5x5 impact x probability heatmap of active risks."""
    queryset = Risk.objects.filter(is_active=True).only(
        'ref_no', 'name', 'financial_impact', 'regulatory_impact', 'reputational_impact',
        'inherent_probability', 'inherent_risk_score', 'inherent_rag',
    )

    theme_id = parse_id(request.query_params, 'theme_id')
    if theme_id is not None:
        queryset = queryset.filter(category__theme_id=theme_id)

    return Response(build_heatmap(queryset.order_by('ref_no')))


@api_view(['GET'])
def risk_dashboard(request):
    """Get dashboard statistics for active risks."""
    risks = Risk.objects.filter(is_active=True)
    total = risks.count()

    high = risks.filter(inherent_rag=RAGStatus.RED).count()
    medium = risks.filter(inherent_rag=RAGStatus.AMBER).count()

    actions = RiskAction.objects.filter(risk__is_active=True)

    by_theme = [
        {'name': t['name'], 'code': t['code'], 'count': t['count']}
        for t in RiskTheme.objects.annotate(
            count=Count('categories__risks', filter=Q(categories__risks__is_active=True))
        ).filter(count__gt=0).order_by('order', 'id').values('name', 'code', 'count')
    ]

    by_tier = [
        {'name': row['tier'] or 'Unknown', 'count': row['count']}
        for row in risks.values('tier').annotate(count=Count('id')).order_by('tier')
    ]

    rag_counts = dict(risks.order_by().values_list('inherent_rag').annotate(count=Count('id')))
    by_rag = {rag.value.lower(): rag_counts.get(rag.value, 0) for rag in RAGStatus}

    breaches = risks.filter(appetite_status=AppetiteStatus.OUTSIDE).select_related('category__theme')
    appetite_breaches = [
        {
            'id': r.id,
            'name': r.name,
            'theme': r.category.theme.name,
            'score': float(r.residual_risk_score),
            'appetite': float(r.category.theme.board_appetite),
        }
        for r in breaches.order_by('-residual_risk_score', 'ref_no')
    ]

    return Response({
        'total_risks': total,
        'high_risks': high,
        'medium_risks': medium,
        'low_risks': total - high - medium,
        'open_actions': actions.open().count(),
        'overdue_actions': actions.overdue().count(),
        'by_theme': by_theme,
        'by_tier': by_tier,
        'by_rag': by_rag,
        'appetite_breaches': appetite_breaches,
    })


# Controls attached to a risk

class RiskScopedMixin:
    """Resolve the risk named in the URL, 404 when it does not exist."""

    def get_risk(self):
        if not hasattr(self, '_risk'):
            self._risk = get_object_or_404(Risk, pk=self.kwargs['risk_pk'])
        return self._risk


class RiskControlListView(RiskScopedMixin, generics.ListCreateAPIView):
    """
    GET: List the controls attached to a risk.
    POST: Attach a library control; the risk is rescored.
    """
    serializer_class = RiskControlSerializer

    def get_queryset(self):
        return self.get_risk().risk_controls.select_related('control')

    def perform_create(self, serializer):
        serializer.instance = ControlAttachmentService().attach(
            self.get_risk(), serializer.validated_data
        )


class RiskControlDetailView(RiskScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve an attached control.
    PATCH/PUT: Update status or effectiveness; the risk is rescored.
    DELETE: Detach the control; the risk is rescored.
    """
    serializer_class = RiskControlUpdateSerializer

    def get_queryset(self):
        return self.get_risk().risk_controls.select_related('control', 'risk')

    def perform_update(self, serializer):
        serializer.instance = ControlAttachmentService().update(
            serializer.instance, serializer.validated_data
        )

    def perform_destroy(self, instance):
        ControlAttachmentService().detach(instance)


# Remediation actions

ACTION_STATUS_RANK = Case(
    When(status=ActionStatus.OVERDUE, then=Value(0)),
    When(status=ActionStatus.OPEN, then=Value(1)),
    When(status=ActionStatus.IN_PROGRESS, then=Value(2)),
    default=Value(3),
    output_field=IntegerField(),
)


class RiskActionAllListView(generics.ListAPIView):
    """
    GET: List actions across every risk, overdue first, then open, then in
    progress, each by due date. Query params: status, priority, search
    """
    serializer_class = RiskActionListSerializer
    pagination_class = RiskPagination

    def get_queryset(self):
        queryset = RiskAction.objects.select_related('risk')
        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        priority = params.get('priority')
        if priority:
            queryset = queryset.filter(priority=priority)

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(risk__name__icontains=search)
            )

        return queryset.annotate(status_rank=ACTION_STATUS_RANK).order_by(
            'status_rank', F('due_date').asc(nulls_last=True), 'id'
        )


class RiskActionListView(RiskScopedMixin, generics.ListCreateAPIView):
    """
    GET: List the actions of a risk. Query params: status, priority
    POST: Create an action.
    """
    serializer_class = RiskActionSerializer

    def get_queryset(self):
        queryset = self.get_risk().actions.all()

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        priority = self.request.query_params.get('priority')
        if priority:
            queryset = queryset.filter(priority=priority)

        return queryset.order_by('due_date', 'id')

    def perform_create(self, serializer):
        serializer.save(risk=self.get_risk())


class RiskActionDetailView(RiskScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve an action.
    PATCH/PUT: Update it; completing it stamps completed_at.
    DELETE: Delete it.
    """
    serializer_class = RiskActionSerializer

    def get_queryset(self):
        return self.get_risk().actions.all()
