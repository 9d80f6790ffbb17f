import secrets
import string

_BASE36 = string.digits + string.ascii_lowercase


def new_live_channel(owner_id: int, suffix_length: int = 5) -> str:
    """Channel name for a new live stream: ``live_<random base36>_<owner id>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(suffix_length))
    return f"live_{suffix}_{owner_id}"
