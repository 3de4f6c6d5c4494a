import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TransactionType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("name", models.CharField(max_length=100, unique=True)),
                ("polarity", models.CharField(choices=[("CREDIT", "Credit"), ("DEBIT", "Debit")], max_length=10)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("staff_no", models.CharField(max_length=50, unique=True)),
                ("reg_no", models.CharField(max_length=50, unique=True)),
                ("surname", models.CharField(blank=True, default="", max_length=100)),
                ("firstname", models.CharField(max_length=150)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("gender", models.CharField(blank=True, choices=[("Male", "Male"), ("Female", "Female")], default="", max_length=10)),
                ("dob", models.DateField(blank=True, null=True)),
                ("date_of_appoint", models.DateField(blank=True, null=True)),
                ("retirement_date", models.DateField(blank=True, null=True)),
                ("mobile_no", models.CharField(blank=True, default="", max_length=30)),
                ("state_of_origin", models.CharField(blank=True, default="", max_length=100)),
                ("rank_grade", models.CharField(blank=True, default="", max_length=100)),
                ("bank_name", models.CharField(blank=True, default="", max_length=100)),
                ("acct_no", models.CharField(blank=True, default="", max_length=30)),
                ("member_status", models.CharField(choices=[("Active", "Active"), ("Inactive", "Inactive"), ("Retired", "Retired"), ("Suspended", "Suspended"), ("Terminated", "Terminated")], default="Active", max_length=20)),
                ("upload_batch_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["staff_no"],
            },
        ),
        migrations.CreateModel(
            name="Loan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("ref_no", models.CharField(max_length=64, unique=True)),
                ("staff_no", models.CharField(db_index=True, max_length=50)),
                ("reg_no", models.CharField(db_index=True, max_length=50)),
                ("amount_requested", models.DecimalField(decimal_places=2, max_digits=15)),
                ("monthly_repayment", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("repayment_period", models.PositiveIntegerField(blank=True, null=True)),
                ("interest_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("purpose", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=[("Approved", "Approved"), ("Disbursed", "Disbursed"), ("Repaid", "Repaid")], default="Approved", max_length=20)),
                ("date_applied", models.DateField(blank=True, null=True)),
                ("date_approved", models.DateTimeField()),
                ("remaining_balance", models.DecimalField(decimal_places=2, max_digits=15)),
                ("upload_batch_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("transaction_type", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="loans", to="ledger.transactiontype")),
            ],
            options={
                "ordering": ["-date_approved", "ref_no"],
            },
        ),
        migrations.CreateModel(
            name="LedgerTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("reg_no", models.CharField(db_index=True, max_length=50)),
                ("staff_no", models.CharField(blank=True, default="", max_length=50)),
                ("transaction_date", models.DateField()),
                ("transaction_mode", models.CharField(max_length=50)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("effect", models.CharField(choices=[("CREDIT", "Credit"), ("DEBIT", "Debit")], max_length=10)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("status", models.CharField(choices=[("Completed", "Completed"), ("Reversed", "Reversed")], default="Completed", max_length=20)),
                ("upload_batch_id", models.UUIDField(db_index=True)),
                ("source_row_number", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("transaction_type", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="ledger.transactiontype")),
            ],
            options={
                "ordering": ["-transaction_date", "id"],
                "indexes": [models.Index(fields=["reg_no", "transaction_type"], name="ledger_txn_reg_type_idx")],
            },
        ),
        migrations.CreateModel(
            name="MemberBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reg_no", models.CharField(max_length=50)),
                ("current_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("transaction_type", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="balances", to="ledger.transactiontype")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("reg_no", "transaction_type"), name="uniq_member_balance_reg_type")],
            },
        ),
    ]
