"""AttestCheck - insurance attestation consistency verification service."""

__version__ = "1.0.0"
