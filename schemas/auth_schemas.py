from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from datetime import datetime
from models.users import Permission
import phonenumbers
import re


def _validate_password_strength(value: str) -> str:
    """
    Password must be at least 8 characters and contain:
    - At least one letter
    - At least one digit
    """
    if len(value) < 8:
        raise ValueError('Password must be at least 8 characters')

    if not re.search(r'[A-Za-z]', value):
        raise ValueError('Password must contain at least one letter')

    if not re.search(r'\d', value):
        raise ValueError('Password must contain at least one digit')

    return value


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    permissions: list[Permission]
    created_at: datetime | None = None


class SignupRequest(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    password: str
    phone_number: str | None = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return _validate_password_strength(value)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, value):
        """
        Optional. When given it must be a valid international number,
        e.g. +201234567890; it is stored in E.164 form.
        """
        if value is None:
            return value
        try:
            parsed = phonenumbers.parse(value, None)
            if not phonenumbers.is_valid_number(parsed):
                raise ValueError('Invalid phone number')

            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)

        except phonenumbers.NumberParseException:
            raise ValueError('Phone number must include country code (e.g.: +966xxxxxxxxx, +20xxxxxxxxxx)')


class SigninRequest(BaseModel):
    email: EmailStr
    password: str


class RequestResetRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    reset_token: str
    password: str
    # Compared in the service so a mismatch is reported as MISMATCH, not 422
    confirm_password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return _validate_password_strength(value)

    @field_validator('reset_token')
    @classmethod
    def validate_token(cls, value):
        if not value or not value.strip():
            raise ValueError('Reset token cannot be empty')
        return value


class UpdatePermissionsRequest(BaseModel):
    permissions: list[Permission]


class MessageResponse(BaseModel):
    message: str
