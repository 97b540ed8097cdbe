"""certforge: ARC-19 content references and resumable certification flows.

- Codec between CIDv1/raw/sha2-256 identifiers and 58-character reserve
  addresses (``certforge.core.arc19``)
- Version history resolution from an object's reserve address chain
  (``certforge.core.versions``)
- Step-by-step certification and versioning flows with per-step retry
  (``certforge.core.flow``)
"""

__version__ = "0.1.0"
__description__ = "ARC-19 CID/address codec, version history and certification flows"

from certforge.core.arc19 import address_to_cid, cid_to_address
from certforge.core.flow import CertificationOrchestrator, FlowSession
from certforge.core.versions import resolve, resolve_object_history

__all__ = [
    "CertificationOrchestrator",
    "FlowSession",
    "address_to_cid",
    "cid_to_address",
    "resolve",
    "resolve_object_history",
    "__version__",
]
