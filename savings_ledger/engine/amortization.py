"""Simple-interest loan accounting.

Interest is charged once over the life of the loan:
``total_interest = principal * interest_rate / 100``. Repayments are tagged
as principal or interest and the two buckets are tracked separately.
"""

from dataclasses import dataclass
from decimal import Decimal

from savings_ledger.models.ledger import Loan, LoanPaymentType

ZERO = Decimal("0")


@dataclass
class LoanSummary:
    """Repayment position of a loan."""

    principal_paid: Decimal
    interest_paid: Decimal
    total_interest_expected: Decimal
    remaining_principal: Decimal
    remaining_interest: Decimal
    total_amount: Decimal
    total_paid: Decimal
    remaining_total: Decimal
    progress: Decimal  # Percentage of total_amount repaid


def total_interest_expected(loan: Loan) -> Decimal:
    return loan.principal * loan.interest_rate / 100


def total_amount(loan: Loan) -> Decimal:
    """Principal plus all interest due."""
    return loan.principal + total_interest_expected(loan)


def paid_by_type(loan: Loan, payment_type: LoanPaymentType) -> Decimal:
    return sum(
        (p.amount for p in loan.payments if p.payment_type == payment_type),
        ZERO,
    )


def summarize(loan: Loan) -> LoanSummary:
    """Compute the repayment summary of a loan.

    Parameters
    ----------
    loan : Loan
        Loan with its recorded payments.

    Returns
    -------
    LoanSummary
        Paid and remaining amounts per bucket, totals and progress.
    """
    principal_paid = paid_by_type(loan, LoanPaymentType.PRINCIPAL)
    interest_paid = paid_by_type(loan, LoanPaymentType.INTEREST)
    interest_expected = total_interest_expected(loan)

    remaining_principal = loan.principal - principal_paid
    remaining_interest = interest_expected - interest_paid
    amount = loan.principal + interest_expected
    paid = principal_paid + interest_paid

    return LoanSummary(
        principal_paid=principal_paid,
        interest_paid=interest_paid,
        total_interest_expected=interest_expected,
        remaining_principal=remaining_principal,
        remaining_interest=remaining_interest,
        total_amount=amount,
        total_paid=paid,
        remaining_total=remaining_principal + remaining_interest,
        progress=paid / amount * 100 if amount > 0 else ZERO,
    )


def remaining_for(loan: Loan, payment_type: LoanPaymentType) -> Decimal:
    """Amount still due in the given bucket."""
    summary = summarize(loan)
    if payment_type == LoanPaymentType.PRINCIPAL:
        return summary.remaining_principal
    return summary.remaining_interest


def is_fully_paid(loan: Loan) -> bool:
    """True once both principal and interest are repaid."""
    summary = summarize(loan)
    return summary.remaining_principal <= 0 and summary.remaining_interest <= 0
