"""Pluggy API response shapes, validated when a response enters the service.

Field names follow Python conventions; the camelCase names Pluggy sends are
accepted through the alias generator. Unknown fields are kept (``extra="allow"``)
so new provider attributes never break validation.
"""
from datetime import date, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Pluggy sends ISO strings; SDK-style callers may hand over date objects
DateLike = str | datetime | date

ItemStatus = Literal[
    "CREATED", "UPDATING", "UPDATED", "WAITING_USER_INPUT", "LOGIN_ERROR", "OUTDATED"
]
AccountType = Literal["BANK", "CREDIT", "PAYMENT_ACCOUNT"]
TransactionType = Literal["CREDIT", "DEBIT"]
TransactionStatus = Literal["POSTED", "PENDING"]
InvestmentTransactionType = Literal["BUY", "SELL", "DIVIDEND", "SPLIT", "BONUS"]


class PluggyModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class PluggyConnector(PluggyModel):
    id: int | str | None = None
    name: str | None = None
    image_url: str | None = None
    institution_url: str | None = None
    url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None


class PluggyItem(PluggyModel):
    id: str
    connector: PluggyConnector | None = None
    connector_id: int | str | None = None
    connector_name: str | None = None
    connector_image_url: str | None = None
    status: ItemStatus | None = None
    client_user_id: str | None = None
    user_id: str | None = None
    created_at: DateLike | None = None
    updated_at: DateLike | None = None
    last_updated_at: DateLike | None = None
    webhook_url: str | None = None
    parameter: Any = None
    parameters: Any = None
    institution_name: str | None = None
    institution_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None


class PluggyAccount(PluggyModel):
    id: str
    item_id: str | None = None
    type: AccountType
    subtype: str | None = None
    number: str | None = None
    name: str
    marketing_name: str | None = None
    balance: float | None = None
    currency_code: str | None = None
    owner: str | None = None
    tax_number: str | None = None
    bank_data: Any = None
    credit_data: Any = None
    disaggregated_credit_limits: Any = None


class PluggyTransaction(PluggyModel):
    id: str
    account_id: str | None = None
    date: DateLike | None = None
    description: str | None = None
    description_raw: str | None = None
    amount: float
    amount_in_account_currency: float | None = None
    balance: float | None = None
    currency_code: str | None = None
    category: str | None = None
    category_id: str | None = None
    provider_code: str | None = None
    provider_id: str | None = None
    status: TransactionStatus | None = None
    type: TransactionType
    operation_type: str | None = None
    operation_category: str | None = None
    payment_data: Any = None
    credit_card_metadata: Any = None
    merchant: Any = None


class PluggyCreditCardBill(PluggyModel):
    id: str
    due_date: DateLike | None = None
    total_amount: float | None = None
    total_amount_currency_code: str | None = None
    minimum_payment_amount: float | None = None
    allows_installments: bool | None = None
    finance_charges: Any = None


class PluggyIdentity(PluggyModel):
    id: str
    item_id: str | None = None
    full_name: str | None = None
    company_name: str | None = None
    document: str | None = None
    document_type: str | None = None
    tax_number: str | None = None
    job_title: str | None = None
    birth_date: DateLike | None = None
    investor_profile: str | None = None
    establishment_code: str | None = None
    establishment_name: str | None = None
    addresses: Any = None
    phone_numbers: Any = None
    emails: Any = None
    relations: Any = None


class PluggyInvestment(PluggyModel):
    id: str
    item_id: str | None = None
    name: str
    code: str | None = None
    isin: str | None = None
    number: str | None = None
    owner: str | None = None
    currency_code: str | None = None
    type: str | None = None
    subtype: str | None = None
    last_month_rate: float | None = None
    last_twelve_months_rate: float | None = None
    annual_rate: float | None = None
    date: DateLike | None = None
    value: float | None = None
    quantity: float | None = None
    amount: float | None = None
    balance: float | None = None
    taxes: float | None = None
    taxes2: float | None = None
    due_date: DateLike | None = None
    rate: float | None = None
    rate_type: str | None = None
    fixed_annual_rate: float | None = None
    issuer: str | None = None
    issue_date: DateLike | None = None
    amount_profit: float | None = None
    amount_withdrawal: float | None = None
    amount_original: float | None = None
    status: str | None = None
    institution: Any = None
    metadata: Any = None
    provider_id: str | None = None


class PluggyInvestmentTransaction(PluggyModel):
    id: str
    trade_date: DateLike | None = None
    date: DateLike | None = None
    description: str | None = None
    quantity: float | None = None
    value: float | None = None
    amount: float | None = None
    net_amount: float | None = None
    type: InvestmentTransactionType
    brokerage_number: str | None = None
    expenses: Any = None


class PluggyLoan(PluggyModel):
    id: str
    item_id: str | None = None
    contract_number: str | None = None
    ipoc_code: str | None = None
    product_name: str | None = None
    provider_id: str | None = None
    type: str | None = None
    date: DateLike | None = None
    contract_date: DateLike | None = None
    disbursement_dates: Any = None
    settlement_date: DateLike | None = None
    due_date: DateLike | None = None
    first_installment_due_date: DateLike | None = None
    contract_amount: float | None = None
    currency_code: str | None = None
    cet: float | None = Field(default=None, alias="CET")
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


T = TypeVar("T", bound=PluggyModel)


class PluggyPage(PluggyModel, Generic[T]):
    """One page of a Pluggy list endpoint (``{total, totalPages, page, results}``)."""
    total: int | None = None
    total_pages: int | None = None
    page: int | None = None
    results: list[T] = []


class PluggyConnectTokenOptions(PluggyModel):
    """Options forwarded to ``POST /connect_token``; unknown keys pass through."""
    webhook_url: str | None = None
    client_user_id: str | None = None
    oauth_redirect_uri: str | None = None
    avoid_duplicates: bool | None = None


class PluggyConnectToken(PluggyModel):
    """Short-lived token the Pluggy Connect widget is opened with."""
    access_token: str
