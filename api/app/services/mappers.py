"""Pure conversions from Pluggy resources to persistence records.

No I/O happens here. Every function takes one validated provider resource plus
the parent keys it should hang under, and returns the record the store upserts.
"""

from datetime import date, datetime, timezone

from app.core.exceptions import ProviderPayloadError
from app.schemas.pluggy import (
    DateLike,
    PluggyAccount,
    PluggyCreditCardBill,
    PluggyIdentity,
    PluggyInvestment,
    PluggyInvestmentTransaction,
    PluggyItem,
    PluggyLoan,
    PluggyTransaction,
)
from app.schemas.records import (
    AccountRecord,
    CreditCardBillRecord,
    IdentityRecord,
    InvestmentRecord,
    InvestmentTransactionRecord,
    ItemRecord,
    LoanRecord,
    TransactionRecord,
)


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def to_iso_date(value: DateLike | None, default_today: bool = False) -> str | None:
    """Normalize a date-ish value to ``YYYY-MM-DD``.

    Strings keep the calendar day they were written with; no timezone
    conversion is applied. ``None`` stays ``None`` unless ``default_today``.
    """
    if value is None or value == "":
        return today_iso() if default_today else None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10]).isoformat()
        except ValueError:
            pass
    raise ProviderPayloadError(f"Unrecognized date value: {value!r}")


def to_datetime(value: DateLike | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ProviderPayloadError(f"Unrecognized timestamp value: {value!r}")


def _str_or_none(value) -> str | None:
    return str(value) if value is not None else None


def map_item(item: PluggyItem, client_user_id: str | None = None) -> ItemRecord:
    # Connector metadata may arrive nested or flattened depending on the endpoint
    connector = item.connector
    connector_id = connector.id if connector and connector.id is not None else item.connector_id
    connector_name = (connector.name if connector else None) or item.connector_name
    return ItemRecord(
        item_id=item.id,
        user_id=item.client_user_id or item.user_id or client_user_id,
        connector_id=_str_or_none(connector_id),
        connector_name=connector_name,
        connector_image_url=(connector.image_url if connector else None) or item.connector_image_url,
        status=item.status,
        created_at=to_datetime(item.created_at),
        updated_at=to_datetime(item.updated_at),
        last_updated_at=to_datetime(item.last_updated_at),
        webhook_url=item.webhook_url,
        parameters=item.parameter if item.parameter is not None else item.parameters,
        institution_name=connector_name or item.institution_name,
        institution_url=(
            (connector.institution_url or connector.url) if connector else None
        ) or item.institution_url,
        primary_color=(connector.primary_color if connector else None) or item.primary_color,
        secondary_color=(connector.secondary_color if connector else None) or item.secondary_color,
    )


def map_account(account: PluggyAccount, item_id: str) -> AccountRecord:
    return AccountRecord(
        account_id=account.id,
        item_id=item_id,
        type=account.type,
        subtype=account.subtype,
        number=account.number,
        name=account.name,
        marketing_name=account.marketing_name,
        balance=account.balance,
        currency_code=account.currency_code,
        owner=account.owner,
        tax_number=account.tax_number,
        bank_data=account.bank_data,
        credit_data=account.credit_data,
        disaggregated_credit_limits=account.disaggregated_credit_limits,
    )


def map_transaction(transaction: PluggyTransaction, account_id: str) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=transaction.id,
        account_id=account_id,
        date=to_iso_date(transaction.date, default_today=True),
        description=transaction.description or "",
        description_raw=transaction.description_raw,
        amount=transaction.amount,
        amount_in_account_currency=transaction.amount_in_account_currency,
        balance=transaction.balance,
        currency_code=transaction.currency_code,
        category=transaction.category,
        category_id=transaction.category_id,
        provider_code=transaction.provider_code,
        provider_id=transaction.provider_id,
        status=transaction.status,
        type=transaction.type,
        operation_type=transaction.operation_type,
        operation_category=transaction.operation_category,
        payment_data=transaction.payment_data,
        credit_card_metadata=transaction.credit_card_metadata,
        merchant=transaction.merchant,
    )


def map_bill(bill: PluggyCreditCardBill, account_id: str) -> CreditCardBillRecord:
    return CreditCardBillRecord(
        bill_id=bill.id,
        account_id=account_id,
        due_date=to_iso_date(bill.due_date, default_today=True),
        total_amount=bill.total_amount,
        total_amount_currency_code=bill.total_amount_currency_code,
        minimum_payment_amount=bill.minimum_payment_amount,
        allows_installments=bill.allows_installments,
        finance_charges=bill.finance_charges,
    )


def map_identity(identity: PluggyIdentity, item_id: str) -> IdentityRecord:
    return IdentityRecord(
        identity_id=identity.id,
        item_id=item_id,
        full_name=identity.full_name,
        company_name=identity.company_name,
        document=identity.document,
        document_type=identity.document_type,
        tax_number=identity.tax_number,
        job_title=identity.job_title,
        birth_date=to_iso_date(identity.birth_date),
        investor_profile=identity.investor_profile,
        establishment_code=identity.establishment_code,
        establishment_name=identity.establishment_name,
        addresses=identity.addresses,
        phone_numbers=identity.phone_numbers,
        emails=identity.emails,
        relations=identity.relations,
    )


def map_investment(investment: PluggyInvestment, item_id: str) -> InvestmentRecord:
    return InvestmentRecord(
        investment_id=investment.id,
        item_id=item_id,
        name=investment.name,
        code=investment.code,
        isin=investment.isin,
        number=investment.number,
        owner=investment.owner,
        currency_code=investment.currency_code,
        type=investment.type,
        subtype=investment.subtype,
        last_month_rate=investment.last_month_rate,
        last_twelve_months_rate=investment.last_twelve_months_rate,
        annual_rate=investment.annual_rate,
        date=to_iso_date(investment.date),
        value=investment.value if investment.value is not None else 0,
        quantity=investment.quantity,
        amount=investment.amount,
        balance=investment.balance,
        taxes=investment.taxes,
        taxes2=investment.taxes2,
        due_date=to_iso_date(investment.due_date),
        rate=investment.rate,
        rate_type=investment.rate_type,
        fixed_annual_rate=(
            investment.fixed_annual_rate
            if investment.fixed_annual_rate is not None
            else investment.annual_rate
        ),
        issuer=investment.issuer,
        issue_date=to_iso_date(investment.issue_date),
        amount_profit=investment.amount_profit,
        amount_withdrawal=investment.amount_withdrawal,
        amount_original=investment.amount_original,
        status=investment.status,
        institution=investment.institution,
        investment_metadata=investment.metadata,
        provider_id=investment.provider_id,
    )


def map_investment_transaction(
    transaction: PluggyInvestmentTransaction, investment_id: str
) -> InvestmentTransactionRecord:
    return InvestmentTransactionRecord(
        transaction_id=transaction.id,
        investment_id=investment_id,
        trade_date=to_iso_date(transaction.trade_date or transaction.date, default_today=True),
        date=to_iso_date(transaction.date, default_today=True),
        description=transaction.description,
        quantity=transaction.quantity,
        value=transaction.value,
        amount=transaction.amount,
        net_amount=transaction.net_amount,
        type=transaction.type,
        brokerage_number=transaction.brokerage_number,
        expenses=transaction.expenses,
    )


def map_loan(loan: PluggyLoan, item_id: str) -> LoanRecord:
    return LoanRecord(
        loan_id=loan.id,
        item_id=item_id,
        contract_number=loan.contract_number,
        ipoc_code=loan.ipoc_code,
        product_name=loan.product_name,
        provider_id=loan.provider_id,
        type=loan.type,
        date=to_iso_date(loan.date),
        contract_date=to_iso_date(loan.contract_date),
        disbursement_dates=loan.disbursement_dates,
        settlement_date=to_iso_date(loan.settlement_date),
        due_date=to_iso_date(loan.due_date),
        first_installment_due_date=to_iso_date(loan.first_installment_due_date),
        contract_amount=loan.contract_amount,
        currency_code=loan.currency_code,
        cet=loan.cet,
        installment_periodicity=loan.installment_periodicity,
        installment_periodicity_additional_info=loan.installment_periodicity_additional_info,
        amortization_scheduled=loan.amortization_scheduled,
        amortization_scheduled_additional_info=loan.amortization_scheduled_additional_info,
        cnpj_consignee=loan.cnpj_consignee,
        interest_rates=loan.interest_rates,
        contracted_fees=loan.contracted_fees,
        contracted_finance_charges=loan.contracted_finance_charges,
        warranties=loan.warranties,
        installments=loan.installments,
        payments=loan.payments,
    )
