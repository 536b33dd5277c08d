"""Advisory radio-compatibility checks for an export."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from omnibus.models.frequency import Frequency
from omnibus.models.radio import Radio


def _get(item: Union[Frequency, Mapping[str, Any]], key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def validate_export(frequencies: Iterable[Union[Frequency, Mapping[str, Any]]], radio: Radio) -> list[str]:
    """
    Return one message per out-of-range frequency, then one per unsupported
    mode.  An empty list means every frequency fits the radio.  The export is
    never blocked by these messages.
    """
    items = list(frequencies)
    errors: list[str] = []
    for item in items:
        freq = _get(item, "frequency")
        if freq is not None and (freq < radio.min_frequency or freq > radio.max_frequency):
            errors.append(f"Frequency {freq} MHz is outside the supported range for {radio.name}")
    supported = radio.modes
    for item in items:
        mode = _get(item, "mode")
        if mode not in supported:
            errors.append(f"Mode {mode} is not supported by {radio.name}")
    return errors
