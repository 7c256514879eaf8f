"""Email delivery adapters."""

from bizplan.adapters.email.resend_client import ResendClient

__all__ = ["ResendClient"]
