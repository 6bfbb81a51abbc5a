"""Input validation utilities."""
import bleach


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


def join_field_names(names):
    """Render field names the way error messages list them.

    ``['a']`` -> ``a``; ``['a', 'b']`` -> ``a and b``;
    ``['a', 'b', 'c']`` -> ``a, b, and c``.
    """
    names = list(names)
    if len(names) <= 1:
        return ''.join(names)
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def format_pydantic_errors(error):
    """Flatten a pydantic ValidationError into a single message."""
    errors = []
    for item in error.errors():
        field = '.'.join(str(x) for x in item['loc'])
        errors.append(f"{field}: {item['msg']}" if field else item['msg'])
    return '; '.join(errors)


class Validator:
    """Input validation utilities."""

    @staticmethod
    def is_blank(value):
        return value is None or (isinstance(value, str) and not value.strip())

    @staticmethod
    def validate_required(value, field_name):
        """Validate that a required field is not empty."""
        if Validator.is_blank(value):
            raise ValidationError(f"{field_name} is required")
        return value

    @staticmethod
    def validate_required_fields(data, field_names):
        """Validate that every named field is present and non-empty.

        Numeric zero and False count as present. The error names every
        missing field at once, e.g. ``user_id and name are required``.
        """
        missing = [name for name in field_names if Validator.is_blank(data.get(name))]
        if len(missing) == 1:
            raise ValidationError(f"{missing[0]} is required")
        if missing:
            raise ValidationError(f"{join_field_names(missing)} are required")
        return data

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
    def sanitize_html(text):
        """Secure HTML sanitization using bleach library.

        Plain text without markup characters is returned untouched.
        """
        if not text:
            return text

        if '<' not in text and '>' not in text and '&' not in text:
            return text

        allowed_tags = ['p', 'br', 'strong', 'em', 'u', 'ul', 'ol', 'li', 'blockquote']
        return bleach.clean(text, tags=allowed_tags, attributes={}, strip=True)
