"""Exception hierarchy for the swap pipeline.

Components raise these; the orchestrator wraps them with stage context and
aborts the remaining stages.
"""

from typing import Optional


class SolverHubError(Exception):
    """Base exception for all solverhub errors."""
    pass


# Transport: connection or decode failures, surfaced immediately.

class TransportError(SolverHubError):
    """HTTP/RPC connection or decode failure."""
    pass


class UpstreamError(TransportError):
    """A backend service could not be reached."""
    pass


class GatewayError(TransportError):
    """A chain node RPC call failed."""
    pass


class UnconfirmedTransaction(GatewayError):
    """A transaction was broadcast but no receipt arrived; it may still be mined."""

    def __init__(self, tx_hash: str, detail: str):
        super().__init__(f"transaction {tx_hash} broadcast but not confirmed: {detail}")
        self.tx_hash = tx_hash


class DecodeError(TransportError):
    """A response did not match the expected schema."""
    pass


# Application: the backend answered with a structured error list.

class ApplicationError(SolverHubError):
    """Backend returned an application-level error list."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class QuoteRejected(ApplicationError):
    """Pricing backend refused to quote."""
    pass


class SubmissionRejected(ApplicationError):
    """Chain node refused a signed transaction."""
    pass


# Validation: malformed input, never retried.

class ValidationError(SolverHubError):
    """Malformed request input."""
    pass


class UnsupportedChain(ValidationError):
    """No pipeline exists for the requested chain or token."""

    def __init__(self, chain: str):
        super().__init__(f"unsupported chain: {chain}")
        self.chain = chain


class InvalidAmount(ValidationError):
    """Amount is not a positive decimal number."""
    pass


class MalformedAddress(ValidationError):
    """Address is not valid for its chain."""
    pass


class MalformedTransaction(ValidationError):
    """Signed transaction bytes could not be decoded."""
    pass


# Pipeline

class KeyNotInitialized(SolverHubError):
    """Signing key for the required chain is not configured."""

    def __init__(self, chain: str, detail: Optional[str] = None):
        message = f"{chain} private key not initialized"
        super().__init__(f"{message}: {detail}" if detail else message)
        self.chain = chain


class PoolNotFound(SolverHubError):
    """No pool is registered for the requested chain."""

    def __init__(self, chain: str):
        super().__init__(f"pool not found for chain: {chain}")
        self.chain = chain


class PreconditionError(SolverHubError):
    """A stage was invoked before the stage it depends on."""
    pass


class TransactionNotFound(SolverHubError):
    """Transaction was not visible after the configured lookups."""

    def __init__(self, tx_hash: str, attempts: int):
        super().__init__(f"transaction {tx_hash} not found after {attempts} attempts")
        self.tx_hash = tx_hash
        self.attempts = attempts


class StageError(SolverHubError):
    """A pipeline stage failed.

    The message is the innermost cause so callers see the original error.
    """

    def __init__(self, stage: str, cause: BaseException, state: Optional[object] = None):
        super().__init__(str(cause))
        self.stage = stage
        self.cause = cause
        self.state = state


class PartialCoordinationFailure(SolverHubError):
    """A multi-step workflow failed after some steps already took effect.

    Nothing is compensated automatically; the journal entry identifies what
    needs reconciliation.
    """

    def __init__(
        self,
        message: str,
        completed_steps: list[str],
        sale_tx_hash: Optional[str] = None,
        journal_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.completed_steps = completed_steps
        self.sale_tx_hash = sale_tx_hash
        self.journal_id = journal_id
