"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2025-07-02

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def _fk(column: str, table: str) -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f"{table}.id", ondelete="RESTRICT"),
        nullable=False,
    )


def upgrade() -> None:
    """Create initial database schema."""
    # Human-readable code counters (POL, PREM, REN, CLM, CUST)
    op.create_table(
        "sequence_counters",
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("name", name=op.f("pk_sequence_counters")),
    )

    op.create_table(
        "customers",
        _id(),
        sa.Column("customer_code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact_number", sa.String(10), nullable=False),
        sa.Column("address", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_customers")),
        sa.UniqueConstraint("customer_code", name=op.f("uq_customers_customer_code")),
        sa.UniqueConstraint("contact_number", name=op.f("uq_customers_contact_number")),
    )
    op.create_index(
        "uq_customers_email_lower",
        "customers",
        [sa.text("lower(email)")],
        unique=True,
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "customer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(64), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.CheckConstraint(
            "role IN ('Customer', 'Staff', 'Admin')", name=op.f("ck_users_role")
        ),
        sa.CheckConstraint(
            "role <> 'Customer' OR customer_id IS NOT NULL",
            name=op.f("ck_users_customer_link"),
        ),
    )
    op.create_index("uq_users_email_lower", "users", [sa.text("lower(email)")], unique=True)
    op.create_index(
        "ix_users_password_reset_token",
        "users",
        ["password_reset_token"],
        postgresql_where=sa.text("password_reset_token IS NOT NULL"),
    )

    op.create_table(
        "policies",
        _id(),
        sa.Column("policy_code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("coverage_type", sa.String(20), nullable=False),
        sa.Column("base_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("policy_duration_months", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("premium_rules", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_policies")),
        sa.UniqueConstraint("policy_code", name=op.f("uq_policies_policy_code")),
        sa.CheckConstraint(
            "coverage_type IN ('Comprehensive', 'Third-Party', 'Own-Damage')",
            name=op.f("ck_policies_coverage_type"),
        ),
        sa.CheckConstraint("base_amount >= 0", name=op.f("ck_policies_base_amount")),
        sa.CheckConstraint(
            "policy_duration_months IN (12, 24, 36)",
            name=op.f("ck_policies_duration"),
        ),
    )
    op.create_index(
        "uq_policies_name_lower", "policies", [sa.text("lower(name)")], unique=True
    )

    op.create_table(
        "vehicles",
        _id(),
        _fk("customer_id", "customers"),
        sa.Column("vehicle_number", sa.String(20), nullable=False),
        sa.Column("vehicle_type", sa.String(20), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("registration_year", sa.Integer(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vehicles")),
        sa.CheckConstraint(
            "vehicle_type IN ('2-Wheeler', '4-Wheeler', 'Commercial')",
            name=op.f("ck_vehicles_vehicle_type"),
        ),
    )
    # Numbers become reusable once a vehicle is soft deleted
    op.create_index(
        "uq_vehicles_number_live",
        "vehicles",
        ["vehicle_number"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index(op.f("ix_vehicles_customer_id"), "vehicles", ["customer_id"])

    op.create_table(
        "premiums",
        _id(),
        sa.Column("premium_code", sa.String(20), nullable=False),
        _fk("customer_id", "customers"),
        _fk("vehicle_id", "vehicles"),
        _fk("policy_id", "policies"),
        sa.Column("coverage_type", sa.String(20), nullable=False),
        sa.Column("calculated_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_status", sa.String(10), nullable=False),
        sa.Column("calculation_breakdown", postgresql.JSONB(), nullable=False),
        sa.Column("policy_duration_months", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_expired", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_premiums")),
        sa.UniqueConstraint("premium_code", name=op.f("uq_premiums_premium_code")),
        sa.UniqueConstraint("transaction_id", name=op.f("uq_premiums_transaction_id")),
        sa.CheckConstraint(
            "payment_status IN ('Pending', 'Paid', 'Failed')",
            name=op.f("ck_premiums_payment_status"),
        ),
        sa.CheckConstraint(
            "payment_status <> 'Paid' OR (payment_date IS NOT NULL AND expiry_date IS NOT NULL)",
            name=op.f("ck_premiums_paid_dates"),
        ),
    )
    op.create_index(
        "uq_premiums_pending_vehicle_policy",
        "premiums",
        ["vehicle_id", "policy_id"],
        unique=True,
        postgresql_where=sa.text("payment_status = 'Pending'"),
    )
    op.create_index(op.f("ix_premiums_customer_id"), "premiums", ["customer_id"])
    op.create_index(
        "ix_premiums_expiry_sweep",
        "premiums",
        ["expiry_date"],
        postgresql_where=sa.text("payment_status = 'Paid' AND NOT is_expired"),
    )

    op.create_table(
        "renewals",
        _id(),
        sa.Column("renewal_code", sa.String(20), nullable=False),
        _fk("premium_id", "premiums"),
        _fk("customer_id", "customers"),
        sa.Column("renewal_status", sa.String(10), nullable=False),
        sa.Column("renewal_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "reminder_sent_status", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("reminder_sent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_remarks", sa.String(500), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_renewals")),
        sa.UniqueConstraint("renewal_code", name=op.f("uq_renewals_renewal_code")),
        sa.CheckConstraint(
            "renewal_status IN ('Pending', 'Approved', 'Rejected')",
            name=op.f("ck_renewals_renewal_status"),
        ),
    )
    op.create_index(
        "uq_renewals_open_per_premium",
        "renewals",
        ["premium_id"],
        unique=True,
        postgresql_where=sa.text("renewal_status = 'Pending'"),
    )
    op.create_index(op.f("ix_renewals_customer_id"), "renewals", ["customer_id"])

    op.create_table(
        "claims",
        _id(),
        sa.Column("claim_code", sa.String(20), nullable=False),
        _fk("premium_id", "premiums"),
        _fk("customer_id", "customers"),
        _fk("vehicle_id", "vehicles"),
        _fk("policy_id", "policies"),
        sa.Column("claim_status", sa.String(20), nullable=False),
        sa.Column("claim_reason", sa.Text(), nullable=False),
        sa.Column("claim_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("admin_remarks", sa.String(500), nullable=True),
        sa.Column("claim_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_claims")),
        sa.UniqueConstraint("claim_code", name=op.f("uq_claims_claim_code")),
        sa.CheckConstraint(
            "claim_status IN ('Pending', 'Under-Review', 'Approved', 'Rejected')",
            name=op.f("ck_claims_claim_status"),
        ),
        sa.CheckConstraint(
            "char_length(claim_reason) BETWEEN 10 AND 1000",
            name=op.f("ck_claims_reason_length"),
        ),
        sa.CheckConstraint(
            "claim_amount IS NULL OR claim_status = 'Approved'",
            name=op.f("ck_claims_amount_only_when_approved"),
        ),
        sa.CheckConstraint(
            "claim_amount IS NULL OR claim_amount > 0",
            name=op.f("ck_claims_amount_positive"),
        ),
    )
    op.create_index(
        "uq_claims_open_per_premium",
        "claims",
        ["premium_id"],
        unique=True,
        postgresql_where=sa.text("claim_status IN ('Pending', 'Under-Review')"),
    )
    op.create_index(op.f("ix_claims_customer_id"), "claims", ["customer_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("claims")
    op.drop_table("renewals")
    op.drop_table("premiums")
    op.drop_table("vehicles")
    op.drop_table("policies")
    op.drop_table("users")
    op.drop_table("customers")
    op.drop_table("sequence_counters")
