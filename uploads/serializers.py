# uploads/serializers.py
"""
Serializers for the uploads API.

Used for input validation and output formatting only; every state change
happens in uploads.commands.
"""

from django.conf import settings
from rest_framework import serializers

from uploads.models import (
    StagedContribution,
    StagedLoan,
    StagedMember,
    StagedTransaction,
    UploadBatch,
)
from uploads.records import DomainKind


class UploadBatchSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source="public_id", read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = UploadBatch
        fields = [
            "id",
            "domain_kind",
            "status",
            "status_label",
            "original_filename",
            "file_checksum",
            "file_size_bytes",
            "total_rows",
            "valid_rows",
            "invalid_rows",
            "processed_rows",
            "deleted_rows",
            "uploaded_by",
            "uploaded_at",
            "reviewed_by",
            "reviewed_at",
            "rejection_reason",
        ]
        read_only_fields = fields


class StagedRowSerializer(serializers.ModelSerializer):
    """Common columns for a staged row plus its batch's id and status."""

    batch_id = serializers.UUIDField(source="batch.public_id", read_only=True)
    batch_status = serializers.CharField(source="batch.status", read_only=True)
    uploaded_by = serializers.CharField(source="batch.uploaded_by", read_only=True)

    COMMON_FIELDS = [
        "id",
        "batch_id",
        "batch_status",
        "uploaded_by",
        "row_number",
        "validation_status",
        "validation_errors",
    ]


class StagedMemberSerializer(StagedRowSerializer):
    class Meta:
        model = StagedMember
        fields = StagedRowSerializer.COMMON_FIELDS + StagedMember.record_field_names()
        read_only_fields = fields


class StagedLoanSerializer(StagedRowSerializer):
    class Meta:
        model = StagedLoan
        fields = StagedRowSerializer.COMMON_FIELDS + StagedLoan.record_field_names()
        read_only_fields = fields


class StagedContributionSerializer(StagedRowSerializer):
    class Meta:
        model = StagedContribution
        fields = StagedRowSerializer.COMMON_FIELDS + StagedContribution.record_field_names()
        read_only_fields = fields


class StagedTransactionSerializer(StagedRowSerializer):
    class Meta:
        model = StagedTransaction
        fields = StagedRowSerializer.COMMON_FIELDS + StagedTransaction.record_field_names()
        read_only_fields = fields


STAGED_ROW_SERIALIZERS = {
    DomainKind.MEMBER: StagedMemberSerializer,
    DomainKind.LOAN: StagedLoanSerializer,
    DomainKind.CONTRIBUTION: StagedContributionSerializer,
    DomainKind.TRANSACTION: StagedTransactionSerializer,
}


class BatchUploadSerializer(serializers.Serializer):
    """Input for POST /api/uploads/batches/ (multipart)."""

    domain_kind = serializers.CharField(max_length=20)
    file = serializers.FileField()

    def validate_file(self, value):
        limit = getattr(settings, "UPLOADS_MAX_FILE_SIZE", None)
        if limit and value.size > limit:
            raise serializers.ValidationError(
                f"File is {value.size} bytes; the limit is {limit} bytes."
            )
        return value


class BatchRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class IngestResultSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    domain_kind = serializers.CharField()
    status = serializers.CharField()
    total = serializers.IntegerField()
    valid_count = serializers.IntegerField()
    invalid_count = serializers.IntegerField()


class ApproveResultSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    status = serializers.CharField()
    processed_count = serializers.IntegerField()
    discarded_count = serializers.IntegerField()


class RejectResultSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    status = serializers.CharField()
    deleted_count = serializers.IntegerField()
