"""Quote engine backed by the solver's calculateSwap."""

import logging
from decimal import Decimal
from typing import Any

from solverhub.backend.solver import SolverBackend
from solverhub.errors import ValidationError
from solverhub.swap.models import Quote, parse_amount

logger = logging.getLogger(__name__)


class QuoteEngine:
    """Produces exchange quotes for a token pair and amount."""

    def __init__(self, solver: SolverBackend):
        self.solver = solver

    async def quote(self, from_token: str, to_token: str, amount: Any) -> Quote:
        """Get a quote.

        Args:
            from_token: Source token symbol
            to_token: Destination token symbol
            amount: Positive amount of from_token

        Returns:
            Quote with the backend's amounts and rate

        Raises:
            InvalidAmount: amount is not a positive decimal
            QuoteRejected: backend refused to price the pair
            TransportError: backend unreachable or answered garbage
        """
        if not from_token or not to_token:
            raise ValidationError("from_token and to_token are required")
        value = parse_amount(amount)

        calc = await self.solver.calculate_swap(from_token, to_token, value)

        rate = calc.exchange_rate
        if not rate and calc.from_amount:
            rate = calc.to_amount / calc.from_amount

        quote = Quote(
            from_token=calc.from_token or from_token,
            to_token=calc.to_token or to_token,
            from_amount=calc.from_amount,
            to_amount=calc.to_amount,
            exchange_rate=Decimal(rate),
        )
        logger.info(
            f"Quote: {quote.from_amount} {quote.from_token} -> "
            f"{quote.to_amount} {quote.to_token} (rate {quote.exchange_rate})"
        )
        return quote
