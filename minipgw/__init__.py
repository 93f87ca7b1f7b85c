"""A minimal packet gateway: UDP session creation by IMSI, CDR logging and an HTTP control API."""

__version__ = "0.1.0"