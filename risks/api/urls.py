"""
URL patterns for the risks API.
"""

from django.urls import path
from . import views

app_name = 'risks_api'

urlpatterns = [
    # Taxonomy
    path('risk-themes/', views.RiskThemeListView.as_view(), name='theme-list'),
    path('risk-themes/reorder/', views.reorder_themes, name='theme-reorder'),
    path('risk-themes/<int:pk>/', views.RiskThemeDetailView.as_view(), name='theme-detail'),
    path('risk-themes/<int:theme_pk>/categories/', views.RiskCategoryListView.as_view(), name='category-list'),
    path(
        'risk-themes/<int:theme_pk>/categories/<int:pk>/',
        views.RiskCategoryDetailView.as_view(),
        name='category-detail',
    ),

    # Control library
    path('controls/', views.ControlLibraryListView.as_view(), name='control-list'),
    path('controls/dropdown/', views.control_dropdown, name='control-dropdown'),
    path('controls/<int:pk>/', views.ControlLibraryDetailView.as_view(), name='control-detail'),

    # Risk scoring and statistics endpoints
    path('risks/heatmap/', views.risk_heatmap, name='risk-heatmap'),
    path('risks/dashboard/', views.risk_dashboard, name='risk-dashboard'),
    path('risks/recalculate/', views.recalculate_all, name='risk-recalculate-all'),
    path('risks/actions/all/', views.RiskActionAllListView.as_view(), name='action-list'),

    # Risk CRUD endpoints
    path('risks/', views.RiskListView.as_view(), name='risk-list'),
    path('risks/<int:pk>/', views.RiskDetailView.as_view(), name='risk-detail'),
    path('risks/<int:pk>/recalculate/', views.recalculate_risk, name='risk-recalculate'),

    # Controls and actions of a risk
    path('risks/<int:risk_pk>/controls/', views.RiskControlListView.as_view(), name='risk-control-list'),
    path(
        'risks/<int:risk_pk>/controls/<int:pk>/',
        views.RiskControlDetailView.as_view(),
        name='risk-control-detail',
    ),
    path('risks/<int:risk_pk>/actions/', views.RiskActionListView.as_view(), name='risk-action-list'),
    path(
        'risks/<int:risk_pk>/actions/<int:pk>/',
        views.RiskActionDetailView.as_view(),
        name='risk-action-detail',
    ),
]
