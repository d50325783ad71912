"""condoauth - authorization and session security for condominium management."""

__version__ = "0.1.0"
