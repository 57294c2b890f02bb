class FieldError(ValueError):
    """A JSON body field has the wrong type."""


def text_field(data: dict, key: str):
    """Stripped string at data[key]; None when missing or blank.

    Raises FieldError when the value is present but not a string.
    """
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise FieldError(f"{key} must be a string")
    return value.strip() or None
