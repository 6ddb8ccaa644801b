"""Credential redaction for logs and rendered requests."""

PLACEHOLDER = "YOUR_API_KEY"

# Keys at least this long show 8 leading and 4 trailing characters
_LONG_KEY_LENGTH = 24


def redact_credential(credential: str | None) -> str:
    """Return a short prefix/suffix view of a credential.

    Long keys show the first 8 and last 4 characters. Shorter keys show a
    quarter at each end, so at least half of any key is always hidden.
    """
    if not credential:
        return PLACEHOLDER
    length = len(credential)
    if length >= _LONG_KEY_LENGTH:
        head, tail = 8, 4
    else:
        head = tail = length // 4
    suffix = credential[length - tail :] if tail else ""
    return f"{credential[:head]}...{suffix}"


def redact_text(text: str, credential: str | None) -> str:
    """Replace every occurrence of ``credential`` in ``text`` with its redacted form."""
    if not credential:
        return text
    return text.replace(credential, redact_credential(credential))
