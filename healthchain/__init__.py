"""In-memory state machine for health records, IPFS pinning, access control and encryption keys."""

__version__ = "0.1.0"
__all__ = ["__version__"]