"""Phone numbers: E.164 normalization and click-to-chat links."""

import phonenumbers


def normalize_phone(raw: str | None, default_region: str | None = None) -> str | None:
    """Parse and return E.164 form of the number, or None if invalid.

    default_region applies when the input has no leading + (e.g. "082 555 1234"
    with default_region "ZA"). A number that carries its country code ignores it.
    """
    if not raw or not str(raw).strip():
        return None
    raw = str(raw).strip()
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def whatsapp_link(raw: str | None, default_region: str | None = None) -> str | None:
    """https://wa.me/<digits> for a valid number, or None.

    WhatsApp wants the international number without '+' or separators.
    """
    e164 = normalize_phone(raw, default_region)
    if e164 is None:
        return None
    return f"https://wa.me/{e164.lstrip('+')}"
