# ledger/admin.py
"""
Django admin configuration for ledger models.

Members, loans, ledger transactions and balances are written only by the
batch approval path (uploads.lifecycle -> ledger.posting). The admin shows
them read-only. Transaction types are reference data maintained here.
"""

from django.contrib import admin

from core.write_barrier import bootstrap_writes_allowed
from ledger.models import LedgerTransaction, Loan, Member, MemberBalance, TransactionType


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Base admin class for rows owned by the posting path."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(TransactionType)
class TransactionTypeAdmin(admin.ModelAdmin):
    list_display = ["name", "polarity", "is_active", "created_at"]
    list_filter = ["polarity", "is_active"]
    search_fields = ["name"]

    def save_model(self, request, obj, form, change):
        with bootstrap_writes_allowed():
            super().save_model(request, obj, form, change)


@admin.register(Member)
class MemberAdmin(ReadOnlyModelAdmin):
    list_display = ["staff_no", "reg_no", "surname", "firstname", "member_status"]
    list_filter = ["member_status", "gender"]
    search_fields = ["staff_no", "reg_no", "surname", "firstname", "email"]


@admin.register(Loan)
class LoanAdmin(ReadOnlyModelAdmin):
    list_display = ["ref_no", "reg_no", "transaction_type", "amount_requested", "remaining_balance", "status"]
    list_filter = ["status", "transaction_type"]
    search_fields = ["ref_no", "reg_no", "staff_no"]


@admin.register(LedgerTransaction)
class LedgerTransactionAdmin(ReadOnlyModelAdmin):
    list_display = ["transaction_date", "reg_no", "transaction_type", "effect", "amount", "status", "upload_batch_id"]
    list_filter = ["effect", "status", "transaction_type"]
    search_fields = ["reg_no", "staff_no", "upload_batch_id"]


@admin.register(MemberBalance)
class MemberBalanceAdmin(ReadOnlyModelAdmin):
    list_display = ["reg_no", "transaction_type", "current_balance", "updated_at"]
    list_filter = ["transaction_type"]
    search_fields = ["reg_no"]
