"""
Onboarding module.

Sign-up draft, form validation and the flow controller behind the
welcome/sign-in/sign-up/verification screens.

Public API:
- OnboardingFlow: Flow controller
- SignupDraft, SignupStep: Form state
- validation: Pure predicates for form fields
"""

from .models import SignupDraft, SignupStep
from .flow import OnboardingFlow
from . import validation

__all__ = [
    "OnboardingFlow",
    "SignupDraft",
    "SignupStep",
    "validation",
]
