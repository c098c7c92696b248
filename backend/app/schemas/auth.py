from pydantic import BaseModel, Field, model_validator


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str

    @model_validator(mode="after")
    def _one_principal(self):
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class PasswordChangeRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=1, max_length=200)
