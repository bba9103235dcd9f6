"""initial billing schema: businesses, tables, counters, bills, orders, payments

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


BILL_STATUS = sa.Enum("open", "partial", "paid", "closed", name="bill_status")
ORDER_STATUS = sa.Enum("pending", "approved", "rejected", name="order_status")
PAYMENT_STATUS = sa.Enum("pending", "confirmed", "failed", name="payment_status")
ALT_PAYMENT_STATUS = sa.Enum("pending", "confirmed", "failed", name="alternative_payment_status")
ALT_PAYMENT_METHOD = sa.Enum("cash", "card", "venmo", "other", name="alternative_payment_method")


def _timestamps():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_address", sa.String(255), nullable=False),
        sa.Column("settlement_address", sa.String(255), nullable=False),
        sa.Column("tipping_address", sa.String(255), nullable=False),
        sa.Column("tax_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("service_fee_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("counter_enabled", sa.Boolean(), nullable=False),
        sa.Column("counter_prefix", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_businesses_id"), "businesses", ["id"], unique=False)
    op.create_index(op.f("ix_businesses_owner_address"), "businesses", ["owner_address"], unique=False)
    op.create_index(op.f("ix_businesses_is_active"), "businesses", ["is_active"], unique=False)

    op.create_table(
        "tables",
        sa.Column("table_code", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tables_id"), "tables", ["id"], unique=False)
    op.create_index(op.f("ix_tables_table_code"), "tables", ["table_code"], unique=True)
    op.create_index(op.f("ix_tables_business_id"), "tables", ["business_id"], unique=False)
    op.create_index(op.f("ix_tables_is_active"), "tables", ["is_active"], unique=False)

    op.create_table(
        "counters",
        sa.Column("counter_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("current_bill_id", sa.Uuid(), nullable=True),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "counter_number", name="uq_counters_business_number"),
    )
    op.create_index(op.f("ix_counters_id"), "counters", ["id"], unique=False)
    op.create_index(op.f("ix_counters_business_id"), "counters", ["business_id"], unique=False)
    op.create_index(op.f("ix_counters_is_active"), "counters", ["is_active"], unique=False)

    op.create_table(
        "bills",
        sa.Column("table_id", sa.Uuid(), nullable=True),
        sa.Column("counter_id", sa.Uuid(), nullable=True),
        sa.Column("bill_number", sa.String(64), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("service_fee_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tip_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", BILL_STATUS, nullable=False),
        sa.Column("settlement_address", sa.String(255), nullable=False),
        sa.Column("tipping_address", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["table_id"], ["tables.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["counter_id"], ["counters.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bills_id"), "bills", ["id"], unique=False)
    op.create_index(op.f("ix_bills_bill_number"), "bills", ["bill_number"], unique=True)
    op.create_index(op.f("ix_bills_business_id"), "bills", ["business_id"], unique=False)
    op.create_index(op.f("ix_bills_table_id"), "bills", ["table_id"], unique=False)
    op.create_index(op.f("ix_bills_counter_id"), "bills", ["counter_id"], unique=False)
    op.create_index(op.f("ix_bills_status"), "bills", ["status"], unique=False)
    # At most one non-closed bill per table / per counter
    op.create_index(
        "uq_bills_open_table", "bills", ["table_id"], unique=True,
        postgresql_where=sa.text("closed_at IS NULL"),
        sqlite_where=sa.text("closed_at IS NULL"),
    )
    op.create_index(
        "uq_bills_open_counter", "bills", ["counter_id"], unique=True,
        postgresql_where=sa.text("closed_at IS NULL"),
        sqlite_where=sa.text("closed_at IS NULL"),
    )

    # counters <-> bills reference each other; batch mode lets SQLite add the constraint
    with op.batch_alter_table("counters") as batch_op:
        batch_op.create_foreign_key(
            "fk_counters_current_bill",
            "bills",
            ["current_bill_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "orders",
        sa.Column("bill_id", sa.Uuid(), nullable=False),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", ORDER_STATUS, nullable=False),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_reason", sa.Text(), nullable=True),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orders_id"), "orders", ["id"], unique=False)
    op.create_index(op.f("ix_orders_bill_id"), "orders", ["bill_id"], unique=False)
    op.create_index(op.f("ix_orders_business_id"), "orders", ["business_id"], unique=False)
    op.create_index(op.f("ix_orders_status"), "orders", ["status"], unique=False)

    op.create_table(
        "payments",
        sa.Column("bill_id", sa.Uuid(), nullable=False),
        sa.Column("payer_address", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tip_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tx_hash", sa.String(128), nullable=False),
        sa.Column("status", PAYMENT_STATUS, nullable=False),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payments_id"), "payments", ["id"], unique=False)
    op.create_index(op.f("ix_payments_bill_id"), "payments", ["bill_id"], unique=False)
    op.create_index(op.f("ix_payments_tx_hash"), "payments", ["tx_hash"], unique=True)

    op.create_table(
        "alternative_payments",
        sa.Column("bill_id", sa.Uuid(), nullable=False),
        sa.Column("participant_address", sa.String(255), nullable=False),
        sa.Column("participant_name", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tip_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", ALT_PAYMENT_METHOD, nullable=False),
        sa.Column("status", ALT_PAYMENT_STATUS, nullable=False),
        sa.Column("confirmed_by", sa.String(255), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_alternative_payments_id"), "alternative_payments", ["id"], unique=False)
    op.create_index(op.f("ix_alternative_payments_bill_id"), "alternative_payments", ["bill_id"], unique=False)
    op.create_index(op.f("ix_alternative_payments_status"), "alternative_payments", ["status"], unique=False)


def downgrade() -> None:
    op.drop_table("alternative_payments")
    op.drop_table("payments")
    op.drop_table("orders")
    with op.batch_alter_table("counters") as batch_op:
        batch_op.drop_constraint("fk_counters_current_bill", type_="foreignkey")
    op.drop_index("uq_bills_open_counter", table_name="bills")
    op.drop_index("uq_bills_open_table", table_name="bills")
    op.drop_table("bills")
    op.drop_table("counters")
    op.drop_table("tables")
    op.drop_table("businesses")

    bind = op.get_bind()
    for enum_type in (ALT_PAYMENT_METHOD, ALT_PAYMENT_STATUS, PAYMENT_STATUS, ORDER_STATUS, BILL_STATUS):
        enum_type.drop(bind, checkfirst=True)
