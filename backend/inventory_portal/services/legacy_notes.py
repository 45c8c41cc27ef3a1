"""
Lifts structured attributes out of the old line-per-key notes encoding.

Older add/edit forms stored room type, computer type, brand, peripheral
serials and remarks inside ``notes`` as ``"Key: value"`` lines. Those values
now live in their own columns; this module reads the old format so existing
records and clients keep working.
"""
import re
from typing import Dict, Optional

# notes key -> InventoryItem attribute
NOTE_KEYS = {
    "Room Type": "room_type",
    "Computer Type": "computer_type",
    "Brand": "computer_brand",
    "Monitor SN": "monitor_sn",
    "Monitor": "monitor_model",
    "UPS SN": "ups_sn",
    "UPS": "ups_model",
    "Printer SN": "printer_sn",
    "Printer": "printer_model",
    "Remarks": "remarks",
}

_LINE_RE = re.compile(r"^\s*([A-Za-z ]+?)\s*:\s*(.*?)\s*$")


def parse_notes(notes: Optional[str]) -> Dict[str, str]:
    """Return the non-empty ``Key: value`` pairs found in ``notes``, keyed by attribute."""
    if not notes:
        return {}
    found: Dict[str, str] = {}
    for line in notes.splitlines():
        m = _LINE_RE.match(line)
        if not m:
            continue
        attr = NOTE_KEYS.get(m.group(1))
        if attr and m.group(2) and attr not in found:
            found[attr] = m.group(2)
    return found


def _join(model: Optional[str], serial: Optional[str]) -> Optional[str]:
    if model and serial:
        return f"{model} / {serial}"
    return model or serial


def extract_note_fields(notes: Optional[str]) -> Dict[str, str]:
    """Map encoded notes onto InventoryItem column names.

    Monitor/UPS/printer model and serial pairs collapse into the single
    ``*_model_sn`` columns the item model uses.
    """
    raw = parse_notes(notes)
    fields: Dict[str, str] = {}
    for attr in ("room_type", "computer_type", "computer_brand", "remarks"):
        if attr in raw:
            fields[attr] = raw[attr]
    for prefix in ("monitor", "ups", "printer"):
        combined = _join(raw.get(f"{prefix}_model"), raw.get(f"{prefix}_sn"))
        if combined:
            fields[f"{prefix}_model_sn"] = combined
    return fields
