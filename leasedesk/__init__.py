"""Back-office gateway for the lease management stored-procedure API."""

__version__ = "0.1.0"
