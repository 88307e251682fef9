"""initial clinic schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _owner() -> sa.Column:
    return sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("clinic_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column(
            "role",
            sa.Enum("owner", name="role_enum"),
            nullable=False,
            server_default="owner",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("must_change_password", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _owner(),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_logs_owner_user_id", "audit_logs", ["owner_user_id"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.Enum("male", "female", "other", name="gender"), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("medical_history", sa.Text(), nullable=True),
        sa.Column("treatment_notes", sa.Text(), nullable=True),
        sa.Column("allergies", sa.Text(), nullable=True),
        sa.Column("medications", sa.Text(), nullable=True),
        sa.Column("insurance_provider", sa.String(length=120), nullable=True),
        sa.Column("insurance_policy_number", sa.String(length=64), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=120), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=50), nullable=True),
        sa.Column("last_visit", sa.Date(), nullable=True),
        sa.Column("dental_chart", sa.JSON(), nullable=False),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_patients_owner_user_id", "patients", ["owner_user_id"])

    op.create_table(
        "dentists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("specialty", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("color", sa.String(length=32), nullable=False, server_default=""),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_dentists_owner_user_id", "dentists", ["owner_user_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column(
            "dentist_id", sa.Integer(), sa.ForeignKey("dentists.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=False, server_default=""),
        sa.Column(
            "status",
            sa.Enum("scheduled", "confirmed", "completed", "cancelled", name="appointment_status"),
            nullable=False,
            server_default="scheduled",
        ),
        sa.Column(
            "reminder_time",
            sa.Enum(
                "none",
                "one_hour_before",
                "two_hours_before",
                "one_day_before",
                name="reminder_time",
            ),
            nullable=False,
            server_default="none",
        ),
        sa.Column("reminder_sent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_dentist_id", "appointments", ["dentist_id"])
    op.create_index("ix_appointments_owner_user_id", "appointments", ["owner_user_id"])

    op.create_table(
        "treatment_definitions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_price_pence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("doctor_percentage", sa.Numeric(5, 4), nullable=False),
        sa.Column("clinic_percentage", sa.Numeric(5, 4), nullable=False),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_treatment_definitions_owner_user_id", "treatment_definitions", ["owner_user_id"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_person", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column(
            "type",
            sa.Enum("material_supplier", "dental_lab", name="supplier_type"),
            nullable=False,
            server_default="material_supplier",
        ),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_suppliers_owner_user_id", "suppliers", ["owner_user_id"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("current_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_cost_pence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock_level", sa.Integer(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_inventory_items_supplier_id", "inventory_items", ["supplier_id"])
    op.create_index("ix_inventory_items_owner_user_id", "inventory_items", ["owner_user_id"])

    op.create_table(
        "treatment_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column(
            "dentist_id", sa.Integer(), sa.ForeignKey("dentists.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "treatment_definition_id",
            sa.Integer(),
            sa.ForeignKey("treatment_definitions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("treatment_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_treatment_cost_pence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("doctor_share_pence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("clinic_share_pence", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_treatment_records_patient_id", "treatment_records", ["patient_id"])
    op.create_index("ix_treatment_records_dentist_id", "treatment_records", ["dentist_id"])
    op.create_index("ix_treatment_records_treatment_date", "treatment_records", ["treatment_date"])
    op.create_index("ix_treatment_records_owner_user_id", "treatment_records", ["owner_user_id"])

    op.create_table(
        "treatment_record_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "treatment_record_id", sa.Integer(), sa.ForeignKey("treatment_records.id"), nullable=False
        ),
        sa.Column(
            "inventory_item_id",
            sa.Integer(),
            sa.ForeignKey("inventory_items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("cost_pence", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_treatment_record_items_treatment_record_id", "treatment_record_items", ["treatment_record_id"]
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount_pence", sa.Integer(), nullable=False),
        sa.Column(
            "method",
            sa.Enum("cash", "card", "bank_transfer", "other", "discount", name="payment_method"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_payments_patient_id", "payments", ["patient_id"])
    op.create_index("ix_payments_date", "payments", ["date"])
    op.create_index("ix_payments_owner_user_id", "payments", ["owner_user_id"])

    op.create_table(
        "supplier_invoices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("invoice_number", sa.String(length=64), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("amount_pence", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("unpaid", "partially_paid", "paid", name="supplier_invoice_status"),
            nullable=False,
            server_default="unpaid",
        ),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_supplier_invoices_supplier_id", "supplier_invoices", ["supplier_id"])
    op.create_index("ix_supplier_invoices_owner_user_id", "supplier_invoices", ["owner_user_id"])

    op.create_table(
        "supplier_invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("supplier_invoices.id"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_pence", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_supplier_invoice_items_invoice_id", "supplier_invoice_items", ["invoice_id"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("amount_pence", sa.Integer(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "rent",
                "salaries",
                "utilities",
                "lab_fees",
                "supplies",
                "marketing",
                "misc",
                name="expense_category",
            ),
            nullable=False,
        ),
        sa.Column(
            "supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "supplier_invoice_id",
            sa.Integer(),
            sa.ForeignKey("supplier_invoices.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_expenses_date", "expenses", ["date"])
    op.create_index("ix_expenses_supplier_id", "expenses", ["supplier_id"])
    op.create_index("ix_expenses_supplier_invoice_id", "expenses", ["supplier_invoice_id"])
    op.create_index("ix_expenses_owner_user_id", "expenses", ["owner_user_id"])

    op.create_table(
        "supplier_invoice_payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("supplier_invoices.id"), nullable=False),
        sa.Column("expense_id", sa.Integer(), sa.ForeignKey("expenses.id"), nullable=False),
        sa.Column("amount_pence", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
    )
    op.create_index("ix_supplier_invoice_payments_invoice_id", "supplier_invoice_payments", ["invoice_id"])

    op.create_table(
        "lab_cases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column("lab_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("case_type", sa.String(length=120), nullable=False),
        sa.Column("sent_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "draft",
                "sent_to_lab",
                "received_from_lab",
                "fitted_to_patient",
                "cancelled",
                name="lab_case_status",
            ),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("lab_cost_pence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _owner(),
    )
    op.create_index("ix_lab_cases_patient_id", "lab_cases", ["patient_id"])
    op.create_index("ix_lab_cases_lab_id", "lab_cases", ["lab_id"])
    op.create_index("ix_lab_cases_owner_user_id", "lab_cases", ["owner_user_id"])


def downgrade() -> None:
    for table in (
        "lab_cases",
        "supplier_invoice_payments",
        "expenses",
        "supplier_invoice_items",
        "supplier_invoices",
        "payments",
        "treatment_record_items",
        "treatment_records",
        "inventory_items",
        "suppliers",
        "treatment_definitions",
        "appointments",
        "dentists",
        "patients",
        "audit_logs",
        "users",
    ):
        op.drop_table(table)
    for enum_name in (
        "lab_case_status",
        "expense_category",
        "supplier_invoice_status",
        "payment_method",
        "supplier_type",
        "reminder_time",
        "appointment_status",
        "gender",
        "role_enum",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
