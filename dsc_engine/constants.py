"""Protocol constants: fixed-point scale and liquidation parameters."""

# Canonical fixed-point scale: every USD value and normalized price carries
# 18 fractional decimal digits.
PRECISION = 10**18

LIQUIDATION_THRESHOLD = 50  # collateral credited at 50% -> 200% overcollateralized
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10  # percent of the seized collateral
MIN_HEALTH_FACTOR = PRECISION

# Health factor reported for an account carrying no debt.
MAX_HEALTH_FACTOR = 2**256 - 1

STALENESS_WINDOW_SECONDS = 3 * 60 * 60

DSC_DECIMALS = 18
