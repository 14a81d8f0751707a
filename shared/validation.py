"""Input validation utilities."""
import re
import bleach


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class Validator:
    """Input validation utilities."""

    # Common validation patterns (pre-compiled for performance)
    USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')
    # Loose phone pattern: optional leading +, then digits with spaces or dashes
    PHONE_PATTERN = re.compile(r'^\+?[0-9][0-9\s-]{5,19}$')
    COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')

    @staticmethod
    def validate_required(value, field_name):
        """Validate that a required field is not empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field_name} is required")
        return value

    @staticmethod
    def validate_string_length(value, field_name, min_length=0, max_length=None):
        """Validate string length constraints."""
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")

        value = value.strip()
        if len(value) < min_length:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")

        if max_length and len(value) > max_length:
            raise ValidationError(f"{field_name} must be no more than {max_length} characters")

        return value

    @staticmethod
    def validate_choice(value, field_name, valid_choices):
        """Validate that value is in list of valid choices."""
        if value not in valid_choices:
            raise ValidationError(f"{field_name} must be one of: {', '.join(str(c) for c in valid_choices)}")
        return value

    @staticmethod
    def validate_username(username, min_length=3):
        """Validate username format and length."""
        username = Validator.validate_string_length(username, 'Username', min_length, 80)
        if not Validator.USERNAME_PATTERN.match(username):
            raise ValidationError("Username may only contain letters, digits, '.', '_' and '-'")
        return username

    @staticmethod
    def validate_password(password, min_length=6):
        """Validate password length. The password itself is never stripped."""
        if not isinstance(password, str) or not password:
            raise ValidationError("Password is required")
        if len(password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters")
        return password

    @staticmethod
    def validate_phone(phone):
        """Validate phone number format (optional field)."""
        if phone is None:
            return ""
        phone = phone.strip()
        if phone and not Validator.PHONE_PATTERN.match(phone):
            raise ValidationError("Invalid phone number format")
        return phone

    @staticmethod
    def validate_color(color):
        """Validate a hex color such as #3B82F6."""
        color = color.strip()
        if not Validator.COLOR_PATTERN.match(color):
            raise ValidationError("Color must be a hex value like #3B82F6")
        return color

    @staticmethod
    def clean_options(options):
        """Strip option labels and drop blank entries, keeping order."""
        if options is None:
            return []
        if not isinstance(options, (list, tuple)):
            raise ValidationError("Options must be a list")
        cleaned = []
        for option in options:
            if not isinstance(option, str):
                raise ValidationError("Options must be strings")
            option = option.strip()
            if option:
                cleaned.append(option)
        return cleaned

    @staticmethod
    def validate_options(options, field_name='Options'):
        """Validate choice options: at least two non-empty, distinct labels."""
        cleaned = Validator.clean_options(options)
        if len(cleaned) < 2:
            raise ValidationError(f"{field_name} must contain at least 2 non-empty entries")
        if len(set(cleaned)) != len(cleaned):
            raise ValidationError(f"{field_name} must not contain duplicates")
        return cleaned

    @staticmethod
    def validate_checklist_limits(min_selections, max_selections, option_count):
        """Validate checklist selection limits against the number of options.

        Either bound may be None. When set, bounds must satisfy
        0 < min <= max <= option_count.
        """
        if min_selections is not None:
            if min_selections <= 0:
                raise ValidationError("Minimum selections must be greater than 0")
            if min_selections > option_count:
                raise ValidationError("Minimum selections cannot exceed the number of options")
        if max_selections is not None:
            if max_selections <= 0:
                raise ValidationError("Maximum selections must be greater than 0")
            if max_selections > option_count:
                raise ValidationError("Maximum selections cannot exceed the number of options")
        if min_selections is not None and max_selections is not None and min_selections > max_selections:
            raise ValidationError("Minimum selections cannot exceed maximum selections")
        return min_selections, max_selections

    @staticmethod
    def validate_mandatory_subset(question_ids, mandatory_ids):
        """Validate that every mandatory question id is part of the group."""
        unknown = [qid for qid in mandatory_ids if qid not in question_ids]
        if unknown:
            raise ValidationError(f"Mandatory questions must belong to the group: {', '.join(unknown)}")
        return mandatory_ids

    @staticmethod
    def sanitize_html(text):
        """Secure HTML sanitization using bleach library.

        Optimized with early returns for simple cases to avoid expensive
        HTML parsing when not needed.
        """
        if not text:
            return text

        # Fast path: plain text needs no parsing
        if '<' not in text and '>' not in text and '&' not in text:
            return text

        # Allow only safe tags and attributes, no CSS or JavaScript
        allowed_tags = ['p', 'br', 'strong', 'em', 'u', 'ul', 'ol', 'li', 'blockquote']
        allowed_attributes = {}

        return bleach.clean(text, tags=allowed_tags, attributes=allowed_attributes, strip=True)


def format_pydantic_errors(exc):
    """Flatten a pydantic ValidationError into a single readable message."""
    errors = []
    for error in exc.errors():
        field = '.'.join(str(x) for x in error['loc'])
        msg = error['msg']
        errors.append(f"{field}: {msg}" if field else msg)
    return '; '.join(errors)
