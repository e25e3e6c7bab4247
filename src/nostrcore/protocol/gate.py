"""
Signature gate: the only path by which a candidate becomes a trusted event.

[SignatureGate.verify][nostrcore.protocol.gate.SignatureGate.verify] is a total
classification. It recomputes the id first and only consults the (expensive)
Schnorr verifier when the id matches, so a tampered event costs one hash.

Verification is CPU-bound. Relays verify off the event loop with
[verify_async][nostrcore.protocol.gate.SignatureGate.verify_async], which
hands the check to an executor.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from concurrent.futures import Executor
from enum import StrEnum
from typing import Any

from nostrcore.core.exceptions import MalformedEventError
from nostrcore.core.metrics import VERIFICATION_SECONDS, VERIFICATIONS_TOTAL
from nostrcore.crypto.schnorr import SchnorrVerifier, Verifier
from nostrcore.models.constants import MachineReadablePrefix
from nostrcore.models.event import Event
from nostrcore.models.messages import format_reason

from .codec import EventCodec


class VerificationResult(StrEnum):
    """Outcome of passing a candidate through the gate."""

    VALID = "valid"
    INVALID_ID = "invalid_id"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED_EVENT = "malformed_event"

    @property
    def is_valid(self) -> bool:
        return self is VerificationResult.VALID

    @property
    def reason(self) -> str:
        """``OK`` message text for this outcome (empty when valid)."""
        return _REASONS[self]


_REASONS: dict[VerificationResult, str] = {
    VerificationResult.VALID: "",
    VerificationResult.INVALID_ID: format_reason(
        MachineReadablePrefix.INVALID, "event id does not match"
    ),
    VerificationResult.INVALID_SIGNATURE: format_reason(
        MachineReadablePrefix.INVALID, "signature verification failed"
    ),
    VerificationResult.MALFORMED_EVENT: format_reason(
        MachineReadablePrefix.INVALID, "malformed event"
    ),
}


class SignatureGate:
    """Classifies candidate events as valid or rejected.

    Args:
        codec: Id computation; defaults to SHA-256.
        verifier: Schnorr verifier; defaults to coincurve.
    """

    def __init__(self, codec: EventCodec | None = None, verifier: Verifier | None = None) -> None:
        self._codec = codec or EventCodec()
        self._verifier = verifier or SchnorrVerifier()

    @property
    def codec(self) -> EventCodec:
        return self._codec

    def verify(self, candidate: Event | Mapping[str, Any]) -> VerificationResult:
        """Classify *candidate*.

        Raises:
            CryptoError: Only when the hashing collaborator itself faults.
        """
        started = time.perf_counter()
        result = self._classify(candidate)
        VERIFICATION_SECONDS.observe(time.perf_counter() - started)
        VERIFICATIONS_TOTAL.labels(result=result.value).inc()
        return result

    def _classify(self, candidate: Event | Mapping[str, Any]) -> VerificationResult:
        if not isinstance(candidate, Event):
            try:
                candidate = Event.from_dict(candidate)
            except (TypeError, ValueError):
                return VerificationResult.MALFORMED_EVENT
        try:
            digest = self._codec.digest(candidate)
        except MalformedEventError:
            return VerificationResult.MALFORMED_EVENT

        if digest.hex() != candidate.id:
            return VerificationResult.INVALID_ID

        pubkey, sig = bytes.fromhex(candidate.pubkey), bytes.fromhex(candidate.sig)
        if self._verifier.verify(pubkey, digest, sig):
            return VerificationResult.VALID
        return VerificationResult.INVALID_SIGNATURE

    async def verify_async(
        self,
        candidate: Event | Mapping[str, Any],
        executor: Executor | None = None,
    ) -> VerificationResult:
        """Run [verify][nostrcore.protocol.gate.SignatureGate.verify] in *executor*."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, self.verify, candidate)
