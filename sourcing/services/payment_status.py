# sourcing/services/payment_status.py
"""
Payment status vocabulary.

The payments table holds historically mixed casing ("Accepted",
"Pending", "approved", ...). Every comparison goes through this module:
  - normalize()    stored value  -> display label
  - to_stored()    display label -> value written to the datastore
  - is_accepted()  accepted-equivalent check (invoice, metrics, shipping)
"""

# stored (lower-cased) -> display label
STORED_TO_LABEL: dict[str, str] = {
    "pending": "pending",
    "accepted": "approved",
    "approved": "approved",
    "rejected": "rejected",
    "processing": "processing",
    "completed": "completed",
    "failed": "failed",
}

# display label -> stored casing expected by the datastore constraint
LABEL_TO_STORED: dict[str, str] = {
    "pending": "pending",
    "approved": "Accepted",
    "rejected": "Rejected",
    "processing": "processing",
    "completed": "completed",
    "failed": "failed",
}

PAYMENT_LABELS = tuple(LABEL_TO_STORED)

ACCEPTED_LABELS = frozenset({"approved", "completed"})

# Staff-driven transitions, on display labels
PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "approved", "rejected", "failed"},
    "processing": {"approved", "rejected", "completed", "failed"},
    "approved": {"completed"},
    "rejected": set(),
    "completed": set(),
    "failed": set(),
}


def normalize(status: str | None) -> str:
    """
    Map any stored or display status to its display label.

    Unknown values are lower-cased and returned as-is so they still
    render; normalize(normalize(s)) == normalize(s) for every input.
    """
    key = (status or "").strip().lower()
    if not key:
        return "pending"
    return STORED_TO_LABEL.get(key, key)


def to_stored(label: str) -> str:
    """
    Translate a status chosen by staff to the datastore value.

    Raises:
        ValueError: if the label is not a known payment status.
    """
    key = normalize(label)
    try:
        return LABEL_TO_STORED[key]
    except KeyError:
        raise ValueError(
            "Invalid status. Must be one of: " + ", ".join(PAYMENT_LABELS)
        ) from None


def stored_keys_for(label: str) -> set[str]:
    """Lower-cased stored values that display as `label`."""
    target = normalize(label)
    return {key for key, value in STORED_TO_LABEL.items() if value == target}


def is_accepted(status: str | None) -> bool:
    return normalize(status) in ACCEPTED_LABELS


def is_allowed_transition(current: str | None, new: str) -> bool:
    return normalize(new) in PAYMENT_TRANSITIONS.get(normalize(current), set())
