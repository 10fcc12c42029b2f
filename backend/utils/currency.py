import logging
import threading
import time
from decimal import Decimal
from typing import Callable, Optional

from fastapi import Request

from config import DEFAULT_EXCHANGE_RATE, EXCHANGE_RATE_TTL_SECONDS
from .formatting import to_money

logger = logging.getLogger(__name__)


def fixed_rate_source(rate=DEFAULT_EXCHANGE_RATE) -> Callable[[], Decimal]:
    def source() -> Decimal:
        return Decimal(str(rate))
    return source


class ExchangeRateService:
    """
    Holds the single foreign-to-base conversion rate.

    The rate is read from `source` and cached for `ttl_seconds`; after that, or
    after an explicit ``refresh()``, the next lookup reads the source again.
    """

    def __init__(self, source: Optional[Callable[[], Decimal]] = None, ttl_seconds: int = EXCHANGE_RATE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self._source = source or fixed_rate_source()
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._rate: Optional[Decimal] = None
        self._expires_at = 0.0

    def refresh(self) -> Decimal:
        with self._lock:
            return self._load()

    def _load(self) -> Decimal:
        rate = Decimal(str(self._source()))
        if rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {rate}")
        self._rate = rate
        self._expires_at = self._clock() + self._ttl_seconds
        logger.info(f"Exchange rate loaded: {rate}")
        return rate

    def get_rate(self) -> Decimal:
        with self._lock:
            if self._rate is None or self._clock() >= self._expires_at:
                return self._load()
            return self._rate

    def convert(self, amount) -> Decimal:
        """Foreign amount to base currency, rounded to two places."""
        return to_money(Decimal(str(amount)) * self.get_rate())


def get_exchange_rates(request: Request) -> ExchangeRateService:
    """Dependency returning the service created at startup."""
    return request.app.state.exchange_rates
