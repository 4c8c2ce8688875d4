"""Prometheus metrics for monitoring the simulation clock, postings and reconciliation"""

from prometheus_client import Counter, Histogram

# Clock metrics
game_days_advanced_counter = Counter(
    "banksim_game_days_advanced_total",
    "Whole game days processed by the clock catch-up loop",
)

investment_event_counter = Counter(
    "banksim_investment_events_total",
    "Investment events recorded",
    ["type"],  # INVEST | DIVEST | GROWTH | DIVIDEND
)

# Scheduler metrics
payroll_payment_counter = Counter(
    "banksim_payroll_payments_total",
    "Payroll deposits posted",
)

rent_charge_counter = Counter(
    "banksim_rent_charges_total",
    "Rent charges posted",
    ["outcome"],  # paid | failed
)

repayment_counter = Counter(
    "banksim_repayments_total",
    "Loan and mortgage repayments posted",
    ["kind", "outcome"],  # loan | mortgage, paid | failed
)

spending_transaction_counter = Counter(
    "banksim_spending_transactions_total",
    "Discretionary spending installments posted",
)

# Batch jobs
reconciled_mortgage_counter = Counter(
    "banksim_reconciled_mortgages_total",
    "Mortgages whose total paid was recomputed from the ledger",
)

bankruptcy_discharge_counter = Counter(
    "banksim_bankruptcies_discharged_total",
    "Approved bankruptcies discharged by the sweep",
)

conflict_counter = Counter(
    "banksim_unit_of_work_conflicts_total",
    "Transactions rolled back because a concurrent writer won",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_rent_charge(paid_in_full: bool) -> None:
    """Record rent outcome for delinquency monitoring"""
    rent_charge_counter.labels(outcome="paid" if paid_in_full else "failed").inc()


def record_repayment(kind: str, paid_in_full: bool) -> None:
    repayment_counter.labels(kind=kind, outcome="paid" if paid_in_full else "failed").inc()
