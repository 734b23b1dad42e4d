from pydantic import BaseModel, EmailStr, Field
from zxcvbn import zxcvbn

# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_PASSWORD_SCORE = 3


def check_password_strength(password: str) -> str:
    """Validate password strength using zxcvbn entropy estimation."""
    result = zxcvbn(password)
    if result["score"] >= MIN_PASSWORD_SCORE:
        return password

    feedback = result.get("feedback", {})
    warning = feedback.get("warning", "")
    suggestions = feedback.get("suggestions", [])
    if warning:
        raise ValueError(f"Weak password: {warning}")
    if suggestions:
        raise ValueError(f"Weak password: {suggestions[0]}")
    raise ValueError("Password is too weak. Use a longer password with a mix of characters.")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
