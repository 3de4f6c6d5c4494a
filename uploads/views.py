# uploads/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: permissions, the batch lifecycle, events.

Pipeline errors are mapped to status codes in one place
(pipeline_error_response) so every endpoint reports them the same way.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import VIEW, require, resolve_actor
from uploads.commands import approve_batch, ingest_batch, list_pending_rows, reject_batch
from uploads.domains import get_domain
from uploads.exceptions import (
    DuplicateRecordError,
    EmptyFileError,
    InvalidIdentityError,
    InvalidStateError,
    NotFoundError,
    SchemaError,
    TransientError,
    UnresolvedCategoryError,
    UploadError,
)
from uploads.models import UploadBatch
from uploads.serializers import (
    STAGED_ROW_SERIALIZERS,
    ApproveResultSerializer,
    BatchRejectSerializer,
    BatchUploadSerializer,
    IngestResultSerializer,
    RejectResultSerializer,
    UploadBatchSerializer,
)
from uploads.store import BatchStore

logger = logging.getLogger(__name__)


def pipeline_error_response(exc: UploadError) -> Response:
    """Translate a pipeline error into an HTTP response."""
    body = {"detail": str(exc), "code": type(exc).__name__}

    if isinstance(exc, EmptyFileError):
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, SchemaError):
        body["missing_columns"] = exc.missing_columns
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, InvalidIdentityError):
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, NotFoundError):
        return Response(body, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InvalidStateError):
        body["current_status"] = exc.current_status
        return Response(body, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, UnresolvedCategoryError):
        body["names"] = exc.names
        return Response(body, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    if isinstance(exc, DuplicateRecordError):
        body.update(kind=exc.kind, field=exc.field, value=exc.value, row_number=exc.row_number)
        return Response(body, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    if isinstance(exc, TransientError):
        return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE, headers={"Retry-After": "5"})

    logger.error("Unmapped pipeline error", extra={"error": str(exc), "code": body["code"]})
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PipelineAPIView(APIView):
    """APIView that renders pipeline errors with their mapped status codes."""

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, UploadError):
            return pipeline_error_response(exc)
        return super().handle_exception(exc)


def _store() -> BatchStore:
    return BatchStore(using=getattr(settings, "UPLOADS_DATABASE_ALIAS", "default"))


# =============================================================================
# Batches
# =============================================================================

class BatchListView(PipelineAPIView):
    """
    GET  /api/uploads/batches/            -> list batches (?domain_kind=&status=)
    POST /api/uploads/batches/            -> upload a workbook (multipart)

    POST goes through the command layer to stage rows and emit the event.
    """
    parser_classes = [MultiPartParser, FormParser]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, VIEW)

        batches = UploadBatch.objects.using(_store().using).all()
        domain_kind = request.query_params.get("domain_kind")
        if domain_kind:
            batches = batches.filter(domain_kind=get_domain(domain_kind).kind)
        batch_status = request.query_params.get("status")
        if batch_status:
            batches = batches.filter(status=batch_status)

        return Response(UploadBatchSerializer(batches, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        serializer = BatchUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        upload = serializer.validated_data["file"]

        result = ingest_batch(
            actor,
            serializer.validated_data["domain_kind"],
            upload.read(),
            filename=upload.name or "",
        )
        return Response(IngestResultSerializer(result.data).data, status=status.HTTP_201_CREATED)


class BatchDetailView(PipelineAPIView):
    """GET /api/uploads/batches/<id>/ -> batch header with counts."""

    def get(self, request, batch_id):
        actor = resolve_actor(request)
        require(actor, VIEW)
        batch = _store().get_batch(batch_id)
        return Response(UploadBatchSerializer(batch).data)


class BatchApproveView(PipelineAPIView):
    """POST /api/uploads/batches/<id>/approve/ -> post valid rows to the ledger."""

    def post(self, request, batch_id):
        actor = resolve_actor(request)
        result = approve_batch(actor, batch_id)
        return Response(ApproveResultSerializer(result.data).data)


class BatchRejectView(PipelineAPIView):
    """POST /api/uploads/batches/<id>/reject/ -> discard the batch."""

    def post(self, request, batch_id):
        actor = resolve_actor(request)
        serializer = BatchRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = reject_batch(actor, batch_id, reason=serializer.validated_data["reason"])
        return Response(RejectResultSerializer(result.data).data)


# =============================================================================
# Staged rows
# =============================================================================

class PendingRowsView(PipelineAPIView):
    """GET /api/uploads/pending/<domain_kind>/ -> staged rows awaiting review."""

    def get(self, request, domain_kind):
        actor = resolve_actor(request)
        domain = get_domain(domain_kind)
        result = list_pending_rows(actor, domain.kind)
        serializer_class = STAGED_ROW_SERIALIZERS[domain.kind]
        return Response(serializer_class(result.data, many=True).data)
