"""Tables for Pluggy resources.

Every row carries a surrogate UUID ``id`` plus the provider-assigned natural key.
Upserts always resolve conflicts on the natural key (see ``NATURAL_KEY``).
"""
import uuid
from datetime import date as dt_date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Item(Base):
    """A single end-user connection to an institution."""
    __tablename__ = "items"
    NATURAL_KEY = "item_id"
    PARENT_KEY = "user_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    item_id: Mapped[str] = mapped_column(String(255), unique=True)
    user_id: Mapped[str | None] = mapped_column(String(255), index=True)
    connector_id: Mapped[str | None] = mapped_column(String(50))
    connector_name: Mapped[str | None] = mapped_column(String(255))
    connector_image_url: Mapped[str | None] = mapped_column(Text)
    # CREATED, UPDATING, UPDATED, WAITING_USER_INPUT, LOGIN_ERROR, OUTDATED
    status: Mapped[str | None] = mapped_column(String(32))
    webhook_url: Mapped[str | None] = mapped_column(Text)
    parameters: Mapped[Any | None] = mapped_column(JSONType)
    institution_name: Mapped[str | None] = mapped_column(String(255))
    institution_url: Mapped[str | None] = mapped_column(Text)
    primary_color: Mapped[str | None] = mapped_column(String(16))
    secondary_color: Mapped[str | None] = mapped_column(String(16))
    last_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Account(Base):
    __tablename__ = "accounts"
    NATURAL_KEY = "account_id"
    PARENT_KEY = "item_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[str] = mapped_column(String(255), unique=True)
    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), index=True
    )
    type: Mapped[str] = mapped_column(String(32))  # BANK, CREDIT, PAYMENT_ACCOUNT
    subtype: Mapped[str | None] = mapped_column(String(64))
    number: Mapped[str | None] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    marketing_name: Mapped[str | None] = mapped_column(String(255))
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    currency_code: Mapped[str | None] = mapped_column(String(3))
    owner: Mapped[str | None] = mapped_column(String(255))
    tax_number: Mapped[str | None] = mapped_column(String(32))
    bank_data: Mapped[Any | None] = mapped_column(JSONType)
    credit_data: Mapped[Any | None] = mapped_column(JSONType)
    disaggregated_credit_limits: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Transaction(Base):
    __tablename__ = "transactions"
    NATURAL_KEY = "transaction_id"
    PARENT_KEY = "account_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    transaction_id: Mapped[str] = mapped_column(String(255), unique=True)
    account_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("accounts.account_id"), index=True
    )
    date: Mapped[dt_date] = mapped_column(Date, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    description_raw: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    amount_in_account_currency: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    currency_code: Mapped[str | None] = mapped_column(String(3))
    category: Mapped[str | None] = mapped_column(String(255))
    category_id: Mapped[str | None] = mapped_column(String(64))
    provider_code: Mapped[str | None] = mapped_column(String(255))
    provider_id: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str | None] = mapped_column(String(16))  # POSTED, PENDING
    type: Mapped[str] = mapped_column(String(16))  # CREDIT, DEBIT
    operation_type: Mapped[str | None] = mapped_column(String(64))
    operation_category: Mapped[str | None] = mapped_column(String(64))
    payment_data: Mapped[Any | None] = mapped_column(JSONType)
    credit_card_metadata: Mapped[Any | None] = mapped_column(JSONType)
    merchant: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class CreditCardBill(Base):
    """Only produced for CREDIT accounts."""
    __tablename__ = "credit_card_bills"
    NATURAL_KEY = "bill_id"
    PARENT_KEY = "account_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    bill_id: Mapped[str] = mapped_column(String(255), unique=True)
    account_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("accounts.account_id"), index=True
    )
    due_date: Mapped[dt_date] = mapped_column(Date)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    total_amount_currency_code: Mapped[str | None] = mapped_column(String(3))
    minimum_payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    allows_installments: Mapped[bool | None] = mapped_column(Boolean)
    finance_charges: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Identity(Base):
    """Identification data for the owner of an item (at most one per item)."""
    __tablename__ = "identities"
    NATURAL_KEY = "identity_id"
    PARENT_KEY = "item_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    identity_id: Mapped[str] = mapped_column(String(255), unique=True)
    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), unique=True, index=True
    )
    full_name: Mapped[str | None] = mapped_column(String(255))
    company_name: Mapped[str | None] = mapped_column(String(255))
    document: Mapped[str | None] = mapped_column(String(64))
    document_type: Mapped[str | None] = mapped_column(String(32))
    tax_number: Mapped[str | None] = mapped_column(String(32))
    job_title: Mapped[str | None] = mapped_column(String(255))
    birth_date: Mapped[dt_date | None] = mapped_column(Date)
    investor_profile: Mapped[str | None] = mapped_column(String(64))
    establishment_code: Mapped[str | None] = mapped_column(String(64))
    establishment_name: Mapped[str | None] = mapped_column(String(255))
    addresses: Mapped[Any | None] = mapped_column(JSONType)
    phone_numbers: Mapped[Any | None] = mapped_column(JSONType)
    emails: Mapped[Any | None] = mapped_column(JSONType)
    relations: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Investment(Base):
    __tablename__ = "investments"
    NATURAL_KEY = "investment_id"
    PARENT_KEY = "item_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    investment_id: Mapped[str] = mapped_column(String(255), unique=True)
    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    code: Mapped[str | None] = mapped_column(String(64))
    isin: Mapped[str | None] = mapped_column(String(32))
    number: Mapped[str | None] = mapped_column(String(64))
    owner: Mapped[str | None] = mapped_column(String(255))
    currency_code: Mapped[str | None] = mapped_column(String(3))
    type: Mapped[str | None] = mapped_column(String(32))  # FIXED_INCOME, SECURITY, MUTUAL_FUND, EQUITY, ETF, COE
    subtype: Mapped[str | None] = mapped_column(String(64))
    last_month_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    last_twelve_months_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    annual_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    date: Mapped[dt_date | None] = mapped_column(Date)
    value: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 8))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    taxes: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    taxes2: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    due_date: Mapped[dt_date | None] = mapped_column(Date)
    rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    rate_type: Mapped[str | None] = mapped_column(String(32))  # CDI, IPCA, PRE_FIXADO, SELIC
    fixed_annual_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    issuer: Mapped[str | None] = mapped_column(String(255))
    issue_date: Mapped[dt_date | None] = mapped_column(Date)
    amount_profit: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    amount_withdrawal: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    amount_original: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    status: Mapped[str | None] = mapped_column(String(32))  # ACTIVE, PENDING, TOTAL_WITHDRAWAL
    institution: Mapped[Any | None] = mapped_column(JSONType)
    # "metadata" is reserved on declarative classes
    investment_metadata: Mapped[Any | None] = mapped_column(JSONType)
    provider_id: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class InvestmentTransaction(Base):
    __tablename__ = "investment_transactions"
    NATURAL_KEY = "transaction_id"
    PARENT_KEY = "investment_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    transaction_id: Mapped[str] = mapped_column(String(255), unique=True)
    investment_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("investments.investment_id"), index=True
    )
    trade_date: Mapped[dt_date] = mapped_column(Date)
    date: Mapped[dt_date] = mapped_column(Date, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 8))
    value: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    type: Mapped[str] = mapped_column(String(16))  # BUY, SELL, DIVIDEND, SPLIT, BONUS
    brokerage_number: Mapped[str | None] = mapped_column(String(64))
    expenses: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Loan(Base):
    __tablename__ = "loans"
    NATURAL_KEY = "loan_id"
    PARENT_KEY = "item_id"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    loan_id: Mapped[str] = mapped_column(String(255), unique=True)
    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), index=True
    )
    contract_number: Mapped[str | None] = mapped_column(String(128))
    ipoc_code: Mapped[str | None] = mapped_column(String(128))
    product_name: Mapped[str | None] = mapped_column(String(255))
    provider_id: Mapped[str | None] = mapped_column(String(255))
    type: Mapped[str | None] = mapped_column(String(64))
    date: Mapped[dt_date | None] = mapped_column(Date)
    contract_date: Mapped[dt_date | None] = mapped_column(Date)
    disbursement_dates: Mapped[Any | None] = mapped_column(JSONType)
    settlement_date: Mapped[dt_date | None] = mapped_column(Date)
    due_date: Mapped[dt_date | None] = mapped_column(Date)
    first_installment_due_date: Mapped[dt_date | None] = mapped_column(Date)
    contract_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    currency_code: Mapped[str | None] = mapped_column(String(3))
    cet: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    installment_periodicity: Mapped[str | None] = mapped_column(String(64))
    installment_periodicity_additional_info: Mapped[str | None] = mapped_column(Text)
    amortization_scheduled: Mapped[str | None] = mapped_column(String(64))
    amortization_scheduled_additional_info: Mapped[str | None] = mapped_column(Text)
    cnpj_consignee: Mapped[str | None] = mapped_column(String(32))
    interest_rates: Mapped[Any | None] = mapped_column(JSONType)
    contracted_fees: Mapped[Any | None] = mapped_column(JSONType)
    contracted_finance_charges: Mapped[Any | None] = mapped_column(JSONType)
    warranties: Mapped[Any | None] = mapped_column(JSONType)
    installments: Mapped[Any | None] = mapped_column(JSONType)
    payments: Mapped[Any | None] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
