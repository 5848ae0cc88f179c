from __future__ import annotations

from decimal import Decimal
from typing import Callable

import pandas as pd


# Net external deposit (+) or redemption (-) for a month
CashFlowProvider = Callable[[pd.Period], Decimal]

# Receives human-readable progress / rate messages
MessageSink = Callable[[str], None]

# Ledger transaction type used for interest payments reinvested into the bond
INTEREST_TXN_TYPE = "DIVIDEND_REINVEST"
INTEREST_PAYEE = "US Dept. of the Treasury"
