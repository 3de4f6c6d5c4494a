# uploads/admin.py
"""
Django admin configuration for staging models.

Read-only: approving or rejecting a batch must go through the command
layer so ledger postings and audit events stay consistent.
"""

from django.contrib import admin

from uploads.models import (
    StagedContribution,
    StagedLoan,
    StagedMember,
    StagedTransaction,
    UploadBatch,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(UploadBatch)
class UploadBatchAdmin(ReadOnlyModelAdmin):
    list_display = [
        "public_id", "domain_kind", "status", "total_rows", "valid_rows",
        "invalid_rows", "uploaded_by", "uploaded_at", "reviewed_by",
    ]
    list_filter = ["domain_kind", "status"]
    search_fields = ["public_id", "original_filename", "uploaded_by", "reviewed_by"]
    date_hierarchy = "uploaded_at"


class StagedRowAdmin(ReadOnlyModelAdmin):
    list_display = ["batch", "row_number", "validation_status"]
    list_filter = ["validation_status"]
    list_select_related = ["batch"]


@admin.register(StagedMember)
class StagedMemberAdmin(StagedRowAdmin):
    list_display = StagedRowAdmin.list_display + ["staff_no", "surname", "firstname"]
    search_fields = ["staff_no", "reg_no", "surname"]


@admin.register(StagedLoan)
class StagedLoanAdmin(StagedRowAdmin):
    list_display = StagedRowAdmin.list_display + ["ref_no", "reg_no", "loan_type", "amount_requested"]
    search_fields = ["ref_no", "reg_no", "staff_no"]


@admin.register(StagedContribution)
class StagedContributionAdmin(StagedRowAdmin):
    list_display = StagedRowAdmin.list_display + ["reg_no", "contribution_type", "amount"]
    search_fields = ["reg_no", "staff_no"]


@admin.register(StagedTransaction)
class StagedTransactionAdmin(StagedRowAdmin):
    list_display = StagedRowAdmin.list_display + ["reg_no", "transaction_type_name", "amount"]
    search_fields = ["reg_no", "staff_no"]
