"""
Pydantic schemas for lead capture forms

Every field is optional at parse time; required-field and email checks live
in ``require`` so the routes can answer with their own error messages.
"""

import re
from typing import ClassVar, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from alexzo.core.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_EMAIL_MESSAGE = "Invalid email format"


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


class LeadForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    required_fields: ClassVar[Tuple[str, ...]] = ()
    missing_message: ClassVar[str] = MISSING_FIELDS_MESSAGE

    @classmethod
    def parse(cls, body):
        """Validated form from a JSON object body (None counts as empty)"""
        try:
            form = cls.model_validate(body or {})
        except PydanticValidationError as e:
            raise ValidationError(cls.missing_message) from e
        form.require()
        return form

    def require(self) -> None:
        """
        Raise ValidationError for a missing required field or bad email
        """
        for field in self.required_fields:
            if not getattr(self, field):
                raise ValidationError(self.missing_message)
        if not is_valid_email(self.email):
            raise ValidationError(INVALID_EMAIL_MESSAGE)


class ContactForm(LeadForm):
    required_fields: ClassVar[Tuple[str, ...]] = (
        "name", "email", "subject", "category", "message"
    )

    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    subject: Optional[str] = None
    category: Optional[str] = None
    message: Optional[str] = None


class NewsletterForm(LeadForm):
    required_fields: ClassVar[Tuple[str, ...]] = ("email",)
    missing_message: ClassVar[str] = "Email is required"

    email: Optional[str] = None


class WaitlistForm(LeadForm):
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "email", "product")

    name: Optional[str] = None
    email: Optional[str] = None
    product: Optional[str] = None
    company: Optional[str] = None
    use_case: Optional[str] = Field(default=None, alias="useCase")
