"""
Prometheus metrics definitions for the API and the credit ledger.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Ledger metrics
credits_allocated_total = Counter(
    'credits_allocated_total',
    'Total credits granted through new batches',
    ['tier']
)

credits_deducted_total = Counter(
    'credits_deducted_total',
    'Total credits consumed by deductions'
)

credit_deductions_rejected_total = Counter(
    'credit_deductions_rejected_total',
    'Deductions refused because active batches could not cover them'
)

credit_deduction_shortfall_total = Counter(
    'credit_deduction_shortfall_total',
    'Paid operations delivered without their credits being charged'
)

ledger_retries_total = Counter(
    'ledger_retries_total',
    'Deduction attempts retried after a concurrent update'
)

# Analysis metrics
analysis_requests_total = Counter(
    'analysis_requests_total',
    'Grading analyses requested',
    ['operation', 'status']
)
