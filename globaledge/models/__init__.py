"""
Database model registry.

Importing this module registers every table with SQLModel's metadata, which
must happen before ``create_all()``.
"""

from globaledge.models.asset import Asset  # noqa: F401
from globaledge.models.investment import Investment  # noqa: F401
from globaledge.models.kyc import KycApplication  # noqa: F401
from globaledge.models.security_form import SecurityForm  # noqa: F401
from globaledge.models.user import User  # noqa: F401
from globaledge.models.waitlist import WaitlistSubmission  # noqa: F401
