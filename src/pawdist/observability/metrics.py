"""Prometheus metrics for the Distributor.

Metrics:
- pawdist_distributions_total: Counter of distribution attempts by outcome
- pawdist_native_distributed_wei_total: Counter of native currency sent per destination
- pawdist_lp_minted_total: Counter of pool shares minted to the LP token holder
- pawdist_config_changes_total: Counter of owner configuration changes by field
- pawdist_rescues_total: Counter of rescue sweeps
- pawdist_native_balance_wei: Gauge of the native balance left after the last call
- pawdist_distribution_duration_seconds: Histogram of distribution duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
DISTRIBUTIONS = Counter(
    "pawdist_distributions_total",
    "Total number of distribution attempts",
    ["status"],
)

NATIVE_DISTRIBUTED = Counter(
    "pawdist_native_distributed_wei_total",
    "Native currency distributed in wei",
    ["destination"],
)

LP_MINTED = Counter(
    "pawdist_lp_minted_total",
    "Pool shares minted to the LP token holder",
)

CONFIG_CHANGES = Counter(
    "pawdist_config_changes_total",
    "Owner configuration changes",
    ["field"],
)

RESCUES = Counter(
    "pawdist_rescues_total",
    "Native currency rescue sweeps",
)

# Gauges
NATIVE_BALANCE = Gauge(
    "pawdist_native_balance_wei",
    "Native balance held by the Distributor after the last call",
)

# Histograms
DISTRIBUTION_DURATION = Histogram(
    "pawdist_distribution_duration_seconds",
    "Distribution processing duration",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 120.0),
)
