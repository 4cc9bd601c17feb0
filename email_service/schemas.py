from pydantic import BaseModel, EmailStr, Field


class SendEmailMessage(BaseModel):
    """Payload задачи send_email"""

    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=998)
    message: str
