"""Read-back verification of uploaded chunks."""

from verifier.check import VerificationReport, verify
from verifier.ledger import ErrorLedger

__all__ = ["ErrorLedger", "VerificationReport", "verify"]
