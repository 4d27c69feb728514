from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Annotated, Any, Literal, Optional, Union

UserRole = Literal["supplier", "vendor"]

SUPPORTED_CITIES = (
    "casablanca", "rabat", "marrakech", "fes",
    "tangier", "agadir", "meknes", "oujda",
)

MIN_PASSWORD_LENGTH = 6


class Principal(BaseModel):
    id: str
    email: Optional[str] = None
    expires_at: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, user: Any, expires_at: Optional[int] = None) -> "Principal":
        return cls(id=str(user.id), email=getattr(user, "email", None), expires_at=expires_at)

    @classmethod
    def from_session(cls, session: Any) -> "Principal":
        return cls.from_user(session.user, getattr(session, "expires_at", None))


class BaseProfile(BaseModel):
    id: Optional[str] = None
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    show_phone: Optional[bool] = False
    show_email: Optional[bool] = False
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
        extra = "ignore"


class SupplierProfile(BaseModel):
    id: Optional[str] = None
    user_id: str
    company_name: str
    company_description: Optional[str] = None
    category: Optional[str] = None
    rating_average: Optional[float] = 0
    rating_count: Optional[int] = 0
    is_verified: Optional[bool] = False

    class Config:
        from_attributes = True
        extra = "ignore"


class VendorProfile(BaseModel):
    id: Optional[str] = None
    user_id: str
    store_name: str
    store_description: Optional[str] = None

    class Config:
        from_attributes = True
        extra = "ignore"


class SupplierRoleProfile(BaseModel):
    role: Literal["supplier"] = "supplier"
    profile: SupplierProfile


class VendorRoleProfile(BaseModel):
    role: Literal["vendor"] = "vendor"
    profile: VendorProfile


# Tagged on `role`: a supplier identity can only ever carry a SupplierProfile.
RoleProfile = Annotated[Union[SupplierRoleProfile, VendorRoleProfile], Field(discriminator="role")]


class Identity(BaseModel):
    """Composite identity for one principal. Any suffix of the chain may be missing."""
    profile: Optional[BaseProfile] = None
    role: Optional[UserRole] = None
    role_profile: Optional[RoleProfile] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_role_pairing(self):
        if self.role_profile is not None and self.role_profile.role != self.role:
            raise ValueError(
                f"role profile of type '{self.role_profile.role}' cannot belong to role '{self.role}'"
            )
        return self

    @property
    def degraded(self) -> bool:
        return self.profile is None or self.role is None or self.role_profile is None


class IdentitySnapshot(BaseModel):
    """One immutable published state of an IdentityContext."""
    principal: Optional[Principal] = None
    profile: Optional[BaseProfile] = None
    role: Optional[UserRole] = None
    role_profile: Optional[RoleProfile] = None
    loading: bool = True

    model_config = ConfigDict(frozen=True)

    @property
    def degraded(self) -> bool:
        return self.principal is not None and (
            self.profile is None or self.role is None or self.role_profile is None
        )


class IdentityResponse(BaseModel):
    principal: Principal
    profile: Optional[BaseProfile] = None
    role: Optional[UserRole] = None
    role_profile: Optional[RoleProfile] = None
    degraded: bool


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None
    role: UserRole
    full_name: str
    city: str
    phone: Optional[str] = None
    # supplier only
    company_name: Optional[str] = None
    category: Optional[str] = None
    # vendor only
    store_name: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @field_validator("full_name")
    @classmethod
    def full_name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value

    @field_validator("city")
    @classmethod
    def city_supported(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in SUPPORTED_CITIES:
            raise ValueError(f"Unsupported city: {value}")
        return value

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        if self.role == "supplier" and not (self.company_name or "").strip():
            raise ValueError("Company name is required for suppliers")
        if self.role == "vendor" and not (self.store_name or "").strip():
            raise ValueError("Store name is required for vendors")
        return self
