"""
Shared comparison normalization for draft fields.
Used wherever two drafts are compared so equality means the same thing everywhere.
"""


def normalize_field(value) -> str:
    """
    Lowercases and strips a field value for comparison.
    None becomes "" so a missing unit equals an empty one.
    """
    if value is None:
        return ""
    return str(value).strip().lower()
