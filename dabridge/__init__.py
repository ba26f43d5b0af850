"""
dabridge: DA-layer to L1 settlement proof pipeline.

Public responsibilities:
- Post rollup data as a namespaced blob and locate its share range.
- Assemble the inclusion proof bundle (shares proof, data root tuple, Merkle
  proof) for a (height, namespace).
- Pack the bundle into the settlement contract's ProofData and submit it
  through a simulate -> estimate -> send -> confirm state machine.

Heavier adapters (httpx JSON-RPC client, web3 chain client, CLI) live in
submodules and are not imported here.
"""

from __future__ import annotations

from .errors import (ConfigError, ConfirmationError, DABridgeError,
                     GasEstimationError, NetworkError, NotFoundError,
                     ProofExtractionError, RevertedError, SimulationError,
                     SubmissionError, SubmissionStageError)
from .packer import ProofData, pack, pack_path, unpack_path
from .prover import ProofAssembler
from .share_range import calculate_share_range
from .submitter import (SettlementRequest, SettlementSubmitter, Stage,
                        SubmissionResult)
from .types import (BinaryMerkleProof, DataRootTuple, Namespace, SharesProof,
                    VerificationData)
from .version import __version__, get_version

__all__ = [
    "__version__",
    "get_version",
    "Namespace",
    "SharesProof",
    "DataRootTuple",
    "BinaryMerkleProof",
    "VerificationData",
    "calculate_share_range",
    "ProofAssembler",
    "ProofData",
    "pack",
    "pack_path",
    "unpack_path",
    "SettlementRequest",
    "SettlementSubmitter",
    "SubmissionResult",
    "Stage",
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
