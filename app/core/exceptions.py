"""
Identity error taxonomy.

Credential errors come straight from the auth provider and are shown to the user
verbatim. Signup step errors mean the auth user exists but its profile chain was
only partly written; nothing is rolled back.
"""

from enum import Enum
from typing import Optional


UNIQUE_VIOLATION = "23505"


class IdentityError(Exception):
    """Base class for identity/profile errors"""


class CredentialError(IdentityError):
    """Sign up / sign in rejected by the auth provider (duplicate email, weak password, bad credentials)"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SignupStep(str, Enum):
    PROFILE = "profile"
    ROLE = "role"
    ROLE_PROFILE = "role_profile"


class SignupStepError(IdentityError):
    """A bookkeeping write failed after the auth user was created."""

    def __init__(self, step: SignupStep, user_id: str, cause: Optional[BaseException] = None):
        self.step = step
        self.user_id = user_id
        self.cause = cause
        detail = str(cause) if cause is not None else "no row returned"
        super().__init__(f"Signup failed at step '{step.value}' for user {user_id}: {detail}")


class RoleRequiredError(IdentityError):
    def __init__(self, required_role: str):
        self.required_role = required_role
        super().__init__(f"This action requires the '{required_role}' role")


def is_unique_violation(exc: BaseException) -> bool:
    return getattr(exc, "code", None) == UNIQUE_VIOLATION
