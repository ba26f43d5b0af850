"""
dabridge errors.

Typed exception hierarchy with structured metadata, shaped like the DA
package's errors so API layers and callers can render them uniformly.

Two families:

- Assembly errors (`NetworkError`, `NotFoundError`, `ProofExtractionError`)
  are raised while gathering proofs from the DA layer. They carry the name of
  the failing sub-query in `.query` ("shares", "data_root", "merkle", ...).

- Submission stage errors (`SimulationError`, `GasEstimationError`,
  `SubmissionError`, `ConfirmationError`, `RevertedError`) are produced by the
  settlement submitter. They carry `.stage` and `.funds_at_risk` so callers can
  tell "never sent" from "sent but reverted" from "sent, outcome unknown".

Usage:

    from dabridge.errors import NotFoundError

    raise NotFoundError("no blob at height", query="merkle", data={"height": h})

All errors expose:
- .code   : stable machine-readable code (snake_case)
- .data   : optional structured payload (dict)
- .to_problem() : RFC 7807-compatible dict
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class DABridgeError(Exception):
    """
    Base class for dabridge errors.

    Subclasses should set `default_code`.
    """

    default_code = "dabridge_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        query: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.query = query
        self.data: Dict[str, Any] = dict(data) if data else {}

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f"[{self.query}] " if self.query else ""
        if self.message:
            return f"{self.code}: {where}{self.message}"
        return f"{self.code}{' ' + where.strip() if where else ''}"

    def to_problem(self) -> Dict[str, Any]:
        """
        Render as an RFC 7807 "problem detail" object.
        """
        data = dict(self.data)
        if self.query:
            data.setdefault("query", self.query)
        return {
            "type": f"urn:dabridge:{self.code}",
            "title": self.code.replace("_", " ").title(),
            "detail": self.message or None,
            "data": data or None,
        }


class ConfigError(DABridgeError):
    """Missing or malformed configuration."""

    default_code = "config_error"


# --------------------------------------------------------------------------- #
# Assembly (DA layer)
# --------------------------------------------------------------------------- #


class NetworkError(DABridgeError):
    """The collaborator was unreachable, timed out, or answered with a transport-level error."""

    default_code = "network_error"


class NotFoundError(DABridgeError):
    """No header, blob, or proof exists for the requested height + namespace."""

    default_code = "not_found"


class ProofExtractionError(DABridgeError):
    """A header or proof came back in an unexpected hash/proof variant."""

    default_code = "proof_extraction_error"


# --------------------------------------------------------------------------- #
# Submission (settlement chain)
# --------------------------------------------------------------------------- #


class SubmissionStageError(DABridgeError):
    """
    Failure of one stage of the settlement submission state machine.

    `funds_at_risk` is False for stages that fail before anything is broadcast.
    """

    default_code = "submission_stage_error"
    stage = "unknown"
    funds_at_risk = False

    def __init__(
        self,
        message: str = "",
        *,
        tx_hash: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, data=data)
        self.tx_hash = tx_hash

    def to_problem(self) -> Dict[str, Any]:
        problem = super().to_problem()
        problem["stage"] = self.stage
        problem["funds_at_risk"] = self.funds_at_risk
        if self.tx_hash:
            problem["tx_hash"] = self.tx_hash
        return problem


class SimulationError(SubmissionStageError):
    """Dry-run call reverted; nothing was sent."""

    default_code = "simulation_failed"
    stage = "simulate"


class GasEstimationError(SubmissionStageError):
    """Gas estimation failed; nothing was sent."""

    default_code = "gas_estimation_failed"
    stage = "estimate_gas"


class SubmissionError(SubmissionStageError):
    """Signing or broadcasting the transaction failed."""

    default_code = "submission_failed"
    stage = "send"


class ConfirmationError(SubmissionStageError):
    """The transaction was sent but no receipt could be obtained; outcome unknown."""

    default_code = "confirmation_failed"
    stage = "confirm"
    funds_at_risk = True


class RevertedError(SubmissionStageError):
    """A receipt was observed with failure status."""

    default_code = "reverted"
    stage = "confirm"
    funds_at_risk = True


__all__ = [
    "DABridgeError",
    "ConfigError",
    "NetworkError",
    "NotFoundError",
    "ProofExtractionError",
    "SubmissionStageError",
    "SimulationError",
    "GasEstimationError",
    "SubmissionError",
    "ConfirmationError",
    "RevertedError",
]
