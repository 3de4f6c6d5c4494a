# uploads/urls.py
from django.urls import path

from . import views

app_name = "uploads"

urlpatterns = [
    path("batches/", views.BatchListView.as_view(), name="batch-list"),
    path("batches/<uuid:batch_id>/", views.BatchDetailView.as_view(), name="batch-detail"),
    path("batches/<uuid:batch_id>/approve/", views.BatchApproveView.as_view(), name="batch-approve"),
    path("batches/<uuid:batch_id>/reject/", views.BatchRejectView.as_view(), name="batch-reject"),
    path("pending/<str:domain_kind>/", views.PendingRowsView.as_view(), name="pending-rows"),
]
