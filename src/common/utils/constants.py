from datetime import timedelta
from decimal import Decimal

MAX_STAY = 30
CANCELLATION_WINDOW = timedelta(hours=24)
TAX_RATE = Decimal("0.13")
