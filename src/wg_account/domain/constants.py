MAX_DESCRIPTION_LENGTH = 200

# Largest single credit (payouts are capped by MAX_STAKE * MAX_ODDS well below this)
MAX_CREDIT_AMOUNT = 1_000_000

# Entry types that count towards Account.lifetime_earned
EARNING_ENTRY_TYPES = frozenset({"GRANT", "SETTLEMENT_PAYOUT"})
