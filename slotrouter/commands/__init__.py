from __future__ import annotations

from ._key_spec import KeySpec
from ._routing import KEYLESS_SLOT, same_slot, slot_for_pipeline

__all__ = ["KEYLESS_SLOT", "KeySpec", "same_slot", "slot_for_pipeline"]
