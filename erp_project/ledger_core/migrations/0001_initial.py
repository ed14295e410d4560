import decimal

import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import ledger_core.managers


def money(**kwargs):
    return models.DecimalField(
        decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18, **kwargs
    )


def quantity():
    return models.DecimalField(decimal_places=3, default=decimal.Decimal("0"), max_digits=18)


def user_fk(**kwargs):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
        **kwargs,
    )


def account_override(help_text):
    return models.ForeignKey(
        blank=True,
        help_text=help_text,
        null=True,
        on_delete=django.db.models.deletion.PROTECT,
        related_name="+",
        to="ledger_core.account",
    )


VOUCHER_TYPES = [
    ("JV", "Journal Voucher"),
    ("PV", "Payment Voucher"),
    ("RV", "Receipt Voucher"),
    ("CV", "Contra Voucher"),
]
ENTRY_TYPES = [("debit", "Debit"), ("credit", "Credit")]
REFERENCE_TYPES = [
    ("invoice", "Sales Invoice"),
    ("purchase", "Purchase Invoice"),
    ("receipt", "Receipt"),
    ("payment", "Payment"),
    ("manual", "Manual"),
    ("other", "Other"),
]
ACCOUNT_ROLES = [
    ("receivable", "Accounts Receivable"),
    ("payable", "Accounts Payable"),
    ("revenue", "Sales Revenue"),
    ("sales_tax", "Sales Tax Payable"),
    ("purchases", "Purchases"),
    ("input_tax", "Input Tax Receivable"),
    ("cash", "Cash"),
]


def document_fields():
    """Columns shared by every postable document."""
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("document_number", models.CharField(max_length=64)),
        ("document_date", models.DateField()),
        ("fiscal_year", models.CharField(editable=False, max_length=4)),
        ("fiscal_period", models.CharField(editable=False, max_length=7)),
        ("subtotal", money()),
        ("total_discount", money()),
        ("taxable_amount", money()),
        ("total_tax", money()),
        ("total_amount", money()),
        ("notes", models.TextField(blank=True)),
        ("is_posted", models.BooleanField(default=False)),
        ("posted_at", models.DateTimeField(blank=True, null=True)),
        ("is_deleted", models.BooleanField(default=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="ledger_core.organization")),
        ("voucher", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.voucher")),
        ("posted_by", user_fk()),
        ("created_by", user_fk()),
    ]


def line_fields():
    """Columns shared by every document line."""
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("line_no", models.PositiveIntegerField(default=1)),
        ("description", models.CharField(blank=True, max_length=400)),
        ("quantity", models.DecimalField(decimal_places=3, default=decimal.Decimal("1"), max_digits=18)),
        ("rate", money()),
        ("discount_rate", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=5)),
        ("tax_rate", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=5)),
        ("amount", money()),
        ("discount_amount", money()),
        ("tax_amount", money()),
        ("net_amount", money()),
    ]


def counterparty_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("code", models.CharField(blank=True, max_length=32)),
        ("name", models.CharField(max_length=200)),
        ("contact_email", models.EmailField(blank=True, max_length=254, null=True)),
        ("phone", models.CharField(blank=True, max_length=32)),
        ("tax_number", models.CharField(blank=True, max_length=32)),
        ("payment_terms_days", models.IntegerField(default=30)),
        ("opening_balance", money()),
        ("current_balance", money()),
        ("is_active", models.BooleanField(default=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.organization")),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("currency_code", models.CharField(default="PKR", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("default_organization", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="default_users", to="ledger_core.organization")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
                "indexes": [models.Index(fields=["default_organization"], name="user_default_org_idx")],
            },
            managers=[
                ("objects", ledger_core.managers.OrganizationUserManager()),
            ],
        ),
        migrations.AddField(
            model_name="organization",
            name="owner",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_organizations", to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name="OrganizationMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("owner", "Owner"), ("admin", "Admin"), ("accountant", "Accountant"), ("viewer", "Viewer")], default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="ledger_core.organization")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["organization", "user"], name="membership_org_user_idx")],
                "constraints": [models.UniqueConstraint(fields=("user", "organization"), name="uq_user_organization_membership")],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32)),
                ("name", models.CharField(max_length=200)),
                ("ac_type", models.CharField(choices=[("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity"), ("revenue", "Revenue"), ("expense", "Expense")], max_length=10)),
                ("category", models.CharField(choices=[("current_asset", "Current Asset"), ("fixed_asset", "Fixed Asset"), ("other_asset", "Other Asset"), ("current_liability", "Current Liability"), ("long_term_liability", "Long-term Liability"), ("other_liability", "Other Liability"), ("owner_equity", "Owner Equity"), ("retained_earnings", "Retained Earnings"), ("sales_revenue", "Sales Revenue"), ("other_revenue", "Other Revenue"), ("cost_of_goods_sold", "Cost of Goods Sold"), ("operating_expense", "Operating Expense"), ("financial_expense", "Financial Expense"), ("other_expense", "Other Expense")], max_length=30)),
                ("normal_balance", models.CharField(choices=[("debit", "Debit"), ("credit", "Credit")], editable=False, max_length=6)),
                ("level", models.PositiveSmallIntegerField(default=1)),
                ("is_group", models.BooleanField(default=False)),
                ("opening_balance", money()),
                ("current_balance", money()),
                ("is_active", models.BooleanField(default=True)),
                ("is_system_account", models.BooleanField(default=False)),
                ("is_tax_account", models.BooleanField(default=False)),
                ("tax_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("description", models.TextField(blank=True)),
                ("is_deleted", models.BooleanField(default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="accounts", to="ledger_core.organization")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="sub_accounts", to="ledger_core.account")),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["organization", "ac_type"], name="account_org_type_idx"),
                    models.Index(fields=["organization", "code"], name="account_org_code_idx"),
                    models.Index(fields=["organization", "parent"], name="account_org_parent_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("organization", "code"), name="uq_organization_account_code")],
            },
        ),
        migrations.CreateModel(
            name="PostingAccountMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=ACCOUNT_ROLES, max_length=20)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="posting_roles", to="ledger_core.account")),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="posting_mappings", to="ledger_core.organization")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("organization", "role"), name="uq_posting_mapping_role")],
            },
        ),
        migrations.CreateModel(
            name="Voucher",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("voucher_number", models.CharField(max_length=32)),
                ("voucher_type", models.CharField(choices=VOUCHER_TYPES, max_length=2)),
                ("sequence", models.PositiveIntegerField()),
                ("voucher_date", models.DateField()),
                ("fiscal_year", models.CharField(editable=False, max_length=4)),
                ("fiscal_period", models.CharField(editable=False, max_length=7)),
                ("narration", models.TextField(blank=True)),
                ("total_debit", money()),
                ("total_credit", money()),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted"), ("void", "Void")], default="draft", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True)),
                ("reference_type", models.CharField(choices=REFERENCE_TYPES, default="manual", max_length=20)),
                ("reference_number", models.CharField(blank=True, max_length=64)),
                ("reference_id", models.BigIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="vouchers", to="ledger_core.organization")),
                ("posted_by", user_fk()),
                ("voided_by", user_fk()),
                ("created_by", user_fk()),
            ],
            options={
                "ordering": ["voucher_date", "voucher_number"],
                "indexes": [
                    models.Index(fields=["organization", "voucher_date"], name="voucher_org_date_idx"),
                    models.Index(fields=["organization", "status"], name="voucher_org_status_idx"),
                    models.Index(fields=["organization", "reference_type", "reference_id"], name="voucher_org_reference_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("organization", "voucher_number"), name="uq_voucher_organization_number"),
                    models.UniqueConstraint(fields=("organization", "voucher_type", "fiscal_year", "sequence"), name="uq_voucher_type_year_sequence"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VoucherSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("voucher_type", models.CharField(choices=VOUCHER_TYPES, max_length=2)),
                ("fiscal_year", models.CharField(max_length=4)),
                ("last_value", models.PositiveIntegerField(default=0)),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="voucher_sequences", to="ledger_core.organization")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("organization", "voucher_type", "fiscal_year"), name="uq_voucher_sequence_scope")],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("voucher_number", models.CharField(max_length=32)),
                ("voucher_type", models.CharField(choices=VOUCHER_TYPES, max_length=2)),
                ("entry_date", models.DateField()),
                ("fiscal_year", models.CharField(max_length=4)),
                ("fiscal_period", models.CharField(max_length=7)),
                ("entry_type", models.CharField(choices=ENTRY_TYPES, max_length=6)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("balance", money()),
                ("description", models.CharField(blank=True, max_length=400)),
                ("narration", models.TextField(blank=True)),
                ("reference_type", models.CharField(choices=REFERENCE_TYPES, default="manual", max_length=20)),
                ("reference_number", models.CharField(blank=True, max_length=64)),
                ("reference_id", models.BigIntegerField(blank=True, null=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("void", "Void")], default="active", max_length=6)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledger_entries", to="ledger_core.account")),
                ("organization", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ledger_entries", to="ledger_core.organization")),
                ("voucher", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledger_entries", to="ledger_core.voucher")),
                ("voided_by", user_fk()),
                ("created_by", user_fk()),
            ],
            options={
                "verbose_name_plural": "ledger entries",
                "ordering": ["entry_date", "created_at", "pk"],
                "indexes": [
                    models.Index(fields=["organization", "account", "entry_date"], name="ledger_org_account_date_idx"),
                    models.Index(fields=["organization", "fiscal_year", "fiscal_period"], name="ledger_org_period_idx"),
                    models.Index(fields=["voucher"], name="ledger_voucher_idx"),
                    models.Index(fields=["organization", "status"], name="ledger_org_status_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="ledger_entry_amount_positive")],
            },
        ),
        migrations.CreateModel(
            name="VoucherEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField(default=1)),
                ("entry_type", models.CharField(choices=ENTRY_TYPES, max_length=6)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("description", models.CharField(blank=True, max_length=400)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="voucher_entries", to="ledger_core.account")),
                ("ledger_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="voucher_entry", to="ledger_core.ledgerentry")),
                ("voucher", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="entries", to="ledger_core.voucher")),
            ],
            options={
                "ordering": ["line_no", "pk"],
                "indexes": [models.Index(fields=["voucher", "account"], name="voucher_entry_account_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="voucher_entry_amount_positive")],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=counterparty_fields() + [
                ("credit_limit", money()),
                ("default_ar_account", models.ForeignKey(blank=True, help_text="Default AR account used for this customer", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="customers_default_ar", to="ledger_core.account")),
            ],
            options={
                "indexes": [models.Index(fields=["organization", "name"], name="customer_org_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("organization", "name"), name="uq_organization_customer_name")],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=counterparty_fields() + [
                ("default_ap_account", models.ForeignKey(blank=True, help_text="Default AP account used for this supplier", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="suppliers_default_ap", to="ledger_core.account")),
            ],
            options={
                "indexes": [models.Index(fields=["organization", "name"], name="supplier_org_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("organization", "name"), name="uq_organization_supplier_name")],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoice",
            fields=document_fields() + [
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted"), ("partially_paid", "Partially Paid"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="draft", max_length=20)),
                ("shipping_charges", money()),
                ("other_charges", money()),
                ("amount_paid", money()),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.customer")),
                ("receivable_account", account_override("Overrides the receivable account")),
                ("revenue_account", account_override("Overrides the revenue account")),
                ("tax_account", account_override("Overrides the sales tax account")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organization", "document_date"], name="sales_inv_org_date_idx"),
                    models.Index(fields=["organization", "customer"], name="sales_inv_org_customer_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("organization", "document_number"), name="uq_sales_invoice_number")],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoiceLine",
            fields=line_fields() + [
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.salesinvoice")),
            ],
            options={
                "ordering": ["line_no", "pk"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoice",
            fields=document_fields() + [
                ("supplier_invoice_number", models.CharField(blank=True, max_length=64)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("verified", "Verified"), ("approved", "Approved"), ("posted", "Posted"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="draft", max_length=20)),
                ("purchase_order_ref", models.CharField(blank=True, max_length=64)),
                ("grn_ref", models.CharField(blank=True, max_length=64)),
                ("matching_status", models.CharField(choices=[("pending", "Pending"), ("matched", "Matched"), ("mismatched", "Mismatched"), ("approved", "Approved")], default="pending", max_length=12)),
                ("quantity_variance", quantity()),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("shipping_charges", money()),
                ("other_charges", money()),
                ("amount_paid", money()),
                ("supplier", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.supplier")),
                ("verified_by", user_fk()),
                ("approved_by", user_fk()),
                ("payable_account", account_override("Overrides the payable account")),
                ("purchases_account", account_override("Overrides the purchases account")),
                ("input_tax_account", account_override("Overrides the input tax account")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organization", "document_date"], name="purchase_inv_org_date_idx"),
                    models.Index(fields=["organization", "supplier"], name="purchase_inv_org_supplier_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("organization", "document_number"), name="uq_purchase_invoice_number")],
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoiceLine",
            fields=line_fields() + [
                ("po_quantity", models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ("grn_quantity", models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ("is_matched", models.BooleanField(default=False)),
                ("quantity_variance", quantity()),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.purchaseinvoice")),
            ],
            options={
                "ordering": ["line_no", "pk"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="WalkInSale",
            fields=document_fields() + [
                ("customer_name", models.CharField(blank=True, max_length=200)),
                ("customer_phone", models.CharField(blank=True, max_length=32)),
                ("status", models.CharField(choices=[("completed", "Completed"), ("cancelled", "Cancelled"), ("refunded", "Refunded")], default="completed", max_length=20)),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("card", "Card"), ("mobile_wallet", "Mobile Wallet"), ("other", "Other")], default="cash", max_length=20)),
                ("amount_received", money()),
                ("cash_account", account_override("Overrides the cash account")),
                ("revenue_account", account_override("Overrides the revenue account")),
                ("tax_account", account_override("Overrides the sales tax account")),
            ],
            options={
                "indexes": [models.Index(fields=["organization", "document_date"], name="walk_in_org_date_idx")],
                "constraints": [models.UniqueConstraint(fields=("organization", "document_number"), name="uq_walk_in_sale_number")],
            },
        ),
        migrations.CreateModel(
            name="WalkInSaleLine",
            fields=line_fields() + [
                ("sale", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.walkinsale")),
            ],
            options={
                "ordering": ["line_no", "pk"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organization", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.organization")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organization", "user"], name="auditlog_org_user_idx"),
                    models.Index(fields=["organization", "created_at"], name="auditlog_org_created_idx"),
                ],
            },
        ),
    ]
