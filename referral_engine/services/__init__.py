"""Commission engine services."""

from referral_engine.services.commission_service import CommissionService

__all__ = ["CommissionService"]
