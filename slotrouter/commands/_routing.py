from __future__ import annotations

from slotrouter._utils import hash_slot
from slotrouter.commands._key_spec import KeySpec
from slotrouter.exceptions import CrossSlotError
from slotrouter.typing import Command, Final, Iterable, Sequence, ValueT

#: Slot used for calls that don't address any key
KEYLESS_SLOT: Final = 1


def same_slot(slots: Sequence[int | None], keys: Sequence[ValueT] | None = None) -> int:
    """
    Returns the one slot all of ``slots`` agree on.

    :raises CrossSlotError: if the slots differ
    """
    if not slots:
        return KEYLESS_SLOT
    first = slots[0]
    if first is None or any(slot != first for slot in slots):
        raise CrossSlotError(slots, keys)
    return first


def slot_for_pipeline(commands: Iterable[Command]) -> int:
    """
    Extracts the keys of ``commands`` and returns the single slot they
    all hash to.
    """
    keys = KeySpec.extract_pipeline_keys(commands)
    return same_slot([hash_slot(key) for key in keys], keys)
