"""create_pluggy_tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "3f1a9c2e7b40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.Column("connector_id", sa.String(length=50), nullable=True),
        sa.Column("connector_name", sa.String(length=255), nullable=True),
        sa.Column("connector_image_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("webhook_url", sa.Text(), nullable=True),
        sa.Column("parameters", JSONType, nullable=True),
        sa.Column("institution_name", sa.String(length=255), nullable=True),
        sa.Column("institution_url", sa.Text(), nullable=True),
        sa.Column("primary_color", sa.String(length=16), nullable=True),
        sa.Column("secondary_color", sa.String(length=16), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id"),
    )
    op.create_index(op.f("ix_items_user_id"), "items", ["user_id"], unique=False)

    op.create_table(
        "accounts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.String(length=255), nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("subtype", sa.String(length=64), nullable=True),
        sa.Column("number", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("marketing_name", sa.String(length=255), nullable=True),
        sa.Column("balance", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("currency_code", sa.String(length=3), nullable=True),
        sa.Column("owner", sa.String(length=255), nullable=True),
        sa.Column("tax_number", sa.String(length=32), nullable=True),
        sa.Column("bank_data", JSONType, nullable=True),
        sa.Column("credit_data", JSONType, nullable=True),
        sa.Column("disaggregated_credit_limits", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.item_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id"),
    )
    op.create_index(op.f("ix_accounts_item_id"), "accounts", ["item_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("account_id", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("description_raw", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column("amount_in_account_currency", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("balance", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("currency_code", sa.String(length=3), nullable=True),
        sa.Column("category", sa.String(length=255), nullable=True),
        sa.Column("category_id", sa.String(length=64), nullable=True),
        sa.Column("provider_code", sa.String(length=255), nullable=True),
        sa.Column("provider_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("operation_type", sa.String(length=64), nullable=True),
        sa.Column("operation_category", sa.String(length=64), nullable=True),
        sa.Column("payment_data", JSONType, nullable=True),
        sa.Column("credit_card_metadata", JSONType, nullable=True),
        sa.Column("merchant", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.account_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_id"),
    )
    op.create_index(op.f("ix_transactions_account_id"), "transactions", ["account_id"], unique=False)
    op.create_index(op.f("ix_transactions_date"), "transactions", ["date"], unique=False)

    op.create_table(
        "credit_card_bills",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("bill_id", sa.String(length=255), nullable=False),
        sa.Column("account_id", sa.String(length=255), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("total_amount_currency_code", sa.String(length=3), nullable=True),
        sa.Column("minimum_payment_amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("allows_installments", sa.Boolean(), nullable=True),
        sa.Column("finance_charges", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.account_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bill_id"),
    )
    op.create_index(op.f("ix_credit_card_bills_account_id"), "credit_card_bills", ["account_id"], unique=False)

    op.create_table(
        "identities",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("identity_id", sa.String(length=255), nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("document", sa.String(length=64), nullable=True),
        sa.Column("document_type", sa.String(length=32), nullable=True),
        sa.Column("tax_number", sa.String(length=32), nullable=True),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("investor_profile", sa.String(length=64), nullable=True),
        sa.Column("establishment_code", sa.String(length=64), nullable=True),
        sa.Column("establishment_name", sa.String(length=255), nullable=True),
        sa.Column("addresses", JSONType, nullable=True),
        sa.Column("phone_numbers", JSONType, nullable=True),
        sa.Column("emails", JSONType, nullable=True),
        sa.Column("relations", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.item_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identity_id"),
    )
    op.create_index(op.f("ix_identities_item_id"), "identities", ["item_id"], unique=True)

    op.create_table(
        "investments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("investment_id", sa.String(length=255), nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("isin", sa.String(length=32), nullable=True),
        sa.Column("number", sa.String(length=64), nullable=True),
        sa.Column("owner", sa.String(length=255), nullable=True),
        sa.Column("currency_code", sa.String(length=3), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=True),
        sa.Column("subtype", sa.String(length=64), nullable=True),
        sa.Column("last_month_rate", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("last_twelve_months_rate", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("annual_rate", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("value", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=18, scale=8), nullable=True),
        sa.Column("amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("balance", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("taxes", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("taxes2", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("rate", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("rate_type", sa.String(length=32), nullable=True),
        sa.Column("fixed_annual_rate", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("issuer", sa.String(length=255), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("amount_profit", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("amount_withdrawal", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("amount_original", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("institution", JSONType, nullable=True),
        sa.Column("investment_metadata", JSONType, nullable=True),
        sa.Column("provider_id", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.item_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("investment_id"),
    )
    op.create_index(op.f("ix_investments_item_id"), "investments", ["item_id"], unique=False)

    op.create_table(
        "investment_transactions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("investment_id", sa.String(length=255), nullable=False),
        sa.Column("trade_date", sa.Date(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=18, scale=8), nullable=True),
        sa.Column("value", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("net_amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("brokerage_number", sa.String(length=64), nullable=True),
        sa.Column("expenses", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["investment_id"], ["investments.investment_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_id"),
    )
    op.create_index(op.f("ix_investment_transactions_investment_id"), "investment_transactions", ["investment_id"], unique=False)
    op.create_index(op.f("ix_investment_transactions_date"), "investment_transactions", ["date"], unique=False)

    op.create_table(
        "loans",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("loan_id", sa.String(length=255), nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("contract_number", sa.String(length=128), nullable=True),
        sa.Column("ipoc_code", sa.String(length=128), nullable=True),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("provider_id", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("contract_date", sa.Date(), nullable=True),
        sa.Column("disbursement_dates", JSONType, nullable=True),
        sa.Column("settlement_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("first_installment_due_date", sa.Date(), nullable=True),
        sa.Column("contract_amount", sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column("currency_code", sa.String(length=3), nullable=True),
        sa.Column("cet", sa.Numeric(precision=18, scale=6), nullable=True),
        sa.Column("installment_periodicity", sa.String(length=64), nullable=True),
        sa.Column("installment_periodicity_additional_info", sa.Text(), nullable=True),
        sa.Column("amortization_scheduled", sa.String(length=64), nullable=True),
        sa.Column("amortization_scheduled_additional_info", sa.Text(), nullable=True),
        sa.Column("cnpj_consignee", sa.String(length=32), nullable=True),
        sa.Column("interest_rates", JSONType, nullable=True),
        sa.Column("contracted_fees", JSONType, nullable=True),
        sa.Column("contracted_finance_charges", JSONType, nullable=True),
        sa.Column("warranties", JSONType, nullable=True),
        sa.Column("installments", JSONType, nullable=True),
        sa.Column("payments", JSONType, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.item_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("loan_id"),
    )
    op.create_index(op.f("ix_loans_item_id"), "loans", ["item_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_loans_item_id"), table_name="loans")
    op.drop_table("loans")
    op.drop_index(op.f("ix_investment_transactions_date"), table_name="investment_transactions")
    op.drop_index(op.f("ix_investment_transactions_investment_id"), table_name="investment_transactions")
    op.drop_table("investment_transactions")
    op.drop_index(op.f("ix_investments_item_id"), table_name="investments")
    op.drop_table("investments")
    op.drop_index(op.f("ix_identities_item_id"), table_name="identities")
    op.drop_table("identities")
    op.drop_index(op.f("ix_credit_card_bills_account_id"), table_name="credit_card_bills")
    op.drop_table("credit_card_bills")
    op.drop_index(op.f("ix_transactions_date"), table_name="transactions")
    op.drop_index(op.f("ix_transactions_account_id"), table_name="transactions")
    op.drop_table("transactions")
    op.drop_index(op.f("ix_accounts_item_id"), table_name="accounts")
    op.drop_table("accounts")
    op.drop_index(op.f("ix_items_user_id"), table_name="items")
    op.drop_table("items")
