"""
Protocol-level constants shared by the router, executor and distributor.
"""

# Null account; also the "none" profit asset in a zero outcome
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Sentinel asset for the chain's native coin
NATIVE_ASSET = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Reserved config id that selects the default revenue configuration
DEFAULT_CONFIG_ID = "0x" + "00" * 32

# Basis points denominator (100% = 10000 bps)
BPS_DENOMINATOR = 10_000

# Trigger amounts must fit the venues' uint112 amount encoding
MAX_UINT112 = 2**112 - 1

# Default share of the default config routed to the admin (20%)
DEFAULT_ADMIN_SHARE_BPS = 2_000

# Default venue fee (30 bps, Uniswap V2 style)
DEFAULT_VENUE_FEE_BPS = 30
