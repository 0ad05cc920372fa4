import re

import attrs


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PHONE_MAX_LENGTH = 20
NOTES_MAX_LENGTH = 500


@attrs.define(frozen=True)
class Volunteer:
    """Normalized contact data: trimmed fields, lower-case email, empty optionals as None."""

    name: str
    email: str
    phone: str | None = None
    notes: str | None = None

    @classmethod
    def normalize(
        cls, *, name: str, email: str, phone: str | None = None, notes: str | None = None
    ) -> 'Volunteer':
        return cls(
            name=(name or '').strip(),
            email=(email or '').strip().lower(),
            phone=(phone or '').strip() or None,
            notes=(notes or '').strip() or None,
        )

    def validation_error(self) -> str | None:
        if not NAME_MIN_LENGTH <= len(self.name) <= NAME_MAX_LENGTH:
            return f'Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters'
        if not EMAIL_PATTERN.match(self.email):
            return 'Email address is not valid'
        if self.phone and len(self.phone) > PHONE_MAX_LENGTH:
            return f'Phone must be at most {PHONE_MAX_LENGTH} characters'
        if self.notes and len(self.notes) > NOTES_MAX_LENGTH:
            return f'Notes must be at most {NOTES_MAX_LENGTH} characters'
        return None
