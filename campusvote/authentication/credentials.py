# campusvote/authentication/credentials.py

import re
import bleach

from campusvote.election.errors import ValidationError
from campusvote.election.models import VoterIdentity

# Format checks for university login details and sanitizing of free text.
# Roll numbers look like R<year><branch><number>, e.g. R23CS001 or R24ME055.

DEFAULT_EMAIL_DOMAIN = 'reva.edu.in'
MIN_PHONE_LENGTH = 10


class CredentialValidator:
    def __init__(self, email_domain=DEFAULT_EMAIL_DOMAIN):
        self.email_domain = email_domain
        self.allowed_html_tags = []
        self.allowed_html_attributes = {}

        self.patterns = {
            'roll_number': re.compile(r'^R\d{2}[A-Z0-9]{2,4}\d{3,4}$', re.IGNORECASE),
            'email': re.compile(r'^[a-zA-Z0-9._%+-]+@' + re.escape(email_domain) + r'$'),
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValidationError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]
        sanitized = bleach.clean(input_str, tags=self.allowed_html_tags,
                                 attributes=self.allowed_html_attributes, strip=True)
        return sanitized.strip()

    def validate_roll_number(self, roll_number):
        return isinstance(roll_number, str) and bool(self.patterns['roll_number'].match(roll_number))

    def validate_email(self, email):
        return isinstance(email, str) and bool(self.patterns['email'].match(email))

    def validate_phone(self, phone):
        return isinstance(phone, str) and len(phone.strip()) >= MIN_PHONE_LENGTH

    def validate_login_details(self, details) -> VoterIdentity:
        """Check the login form and build the voter identity from it.

        Raises ValidationError with a user-facing message on the first failed rule.
        """
        if not isinstance(details, dict):
            raise ValidationError("All fields are required.")

        fields = {}
        for name in ('name', 'studentId', 'email', 'phone'):
            value = details.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("All fields are required.")
            fields[name] = value.strip()

        if not self.validate_roll_number(fields['studentId']):
            raise ValidationError(
                "Invalid Student ID format. Format: R[Year][Branch][Number] (e.g., R23CS001)")

        if not self.validate_email(fields['email']):
            raise ValidationError(f"Please use your verified @{self.email_domain} email address.")

        if not self.validate_phone(fields['phone']):
            raise ValidationError("Please enter a valid contact number.")

        name = self.sanitize_string(fields['name'], max_length=100)
        if not name:
            raise ValidationError("All fields are required.")

        # the student id doubles as the roll number
        roll_number = fields['studentId'].upper()
        return VoterIdentity(
            name=name,
            roll_number=roll_number,
            student_id=roll_number,
            email=fields['email'],
            phone=fields['phone'],
        )
