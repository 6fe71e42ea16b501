"""Flat persistence records, one per table in ``app.models.pluggy``.

The mapper produces these from Pluggy resources; the store upserts them and
returns them again from rows. ``created_at``/``updated_at`` are filled by the
database unless a record sets them explicitly.
"""
from datetime import date as dt_date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel


class Record(BaseModel):
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ItemRecord(Record):
    item_id: str
    user_id: str | None = None
    connector_id: str | None = None
    connector_name: str | None = None
    connector_image_url: str | None = None
    status: str | None = None
    last_updated_at: datetime | None = None
    webhook_url: str | None = None
    parameters: Any = None
    institution_name: str | None = None
    institution_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None


class AccountRecord(Record):
    account_id: str
    item_id: str
    type: str
    subtype: str | None = None
    number: str | None = None
    name: str
    marketing_name: str | None = None
    balance: Decimal | None = None
    currency_code: str | None = None
    owner: str | None = None
    tax_number: str | None = None
    bank_data: Any = None
    credit_data: Any = None
    disaggregated_credit_limits: Any = None


class TransactionRecord(Record):
    transaction_id: str
    account_id: str
    date: dt_date
    description: str = ""
    description_raw: str | None = None
    amount: Decimal
    amount_in_account_currency: Decimal | None = None
    balance: Decimal | None = None
    currency_code: str | None = None
    category: str | None = None
    category_id: str | None = None
    provider_code: str | None = None
    provider_id: str | None = None
    status: str | None = None
    type: str
    operation_type: str | None = None
    operation_category: str | None = None
    payment_data: Any = None
    credit_card_metadata: Any = None
    merchant: Any = None


class CreditCardBillRecord(Record):
    bill_id: str
    account_id: str
    due_date: dt_date
    total_amount: Decimal | None = None
    total_amount_currency_code: str | None = None
    minimum_payment_amount: Decimal | None = None
    allows_installments: bool | None = None
    finance_charges: Any = None


class IdentityRecord(Record):
    identity_id: str
    item_id: str
    full_name: str | None = None
    company_name: str | None = None
    document: str | None = None
    document_type: str | None = None
    tax_number: str | None = None
    job_title: str | None = None
    birth_date: dt_date | None = None
    investor_profile: str | None = None
    establishment_code: str | None = None
    establishment_name: str | None = None
    addresses: Any = None
    phone_numbers: Any = None
    emails: Any = None
    relations: Any = None


class InvestmentRecord(Record):
    investment_id: str
    item_id: str
    name: str
    code: str | None = None
    isin: str | None = None
    number: str | None = None
    owner: str | None = None
    currency_code: str | None = None
    type: str | None = None
    subtype: str | None = None
    last_month_rate: Decimal | None = None
    last_twelve_months_rate: Decimal | None = None
    annual_rate: Decimal | None = None
    date: dt_date | None = None
    value: Decimal | None = None
    quantity: Decimal | None = None
    amount: Decimal | None = None
    balance: Decimal | None = None
    taxes: Decimal | None = None
    taxes2: Decimal | None = None
    due_date: dt_date | None = None
    rate: Decimal | None = None
    rate_type: str | None = None
    fixed_annual_rate: Decimal | None = None
    issuer: str | None = None
    issue_date: dt_date | None = None
    amount_profit: Decimal | None = None
    amount_withdrawal: Decimal | None = None
    amount_original: Decimal | None = None
    status: str | None = None
    institution: Any = None
    investment_metadata: Any = None
    provider_id: str | None = None


class InvestmentTransactionRecord(Record):
    transaction_id: str
    investment_id: str
    trade_date: dt_date
    date: dt_date
    description: str | None = None
    quantity: Decimal | None = None
    value: Decimal | None = None
    amount: Decimal | None = None
    net_amount: Decimal | None = None
    type: str
    brokerage_number: str | None = None
    expenses: Any = None


class LoanRecord(Record):
    loan_id: str
    item_id: str
    contract_number: str | None = None
    ipoc_code: str | None = None
    product_name: str | None = None
    provider_id: str | None = None
    type: str | None = None
    date: dt_date | None = None
    contract_date: dt_date | None = None
    disbursement_dates: Any = None
    settlement_date: dt_date | None = None
    due_date: dt_date | None = None
    first_installment_due_date: dt_date | None = None
    contract_amount: Decimal | None = None
    currency_code: str | None = None
    cet: Decimal | None = None
    installment_periodicity: str | None = None
    installment_periodicity_additional_info: str | None = None
    amortization_scheduled: str | None = None
    amortization_scheduled_additional_info: str | None = None
    cnpj_consignee: str | None = None
    interest_rates: Any = None
    contracted_fees: Any = None
    contracted_finance_charges: Any = None
    warranties: Any = None
    installments: Any = None
    payments: Any = None
