from inventory_portal.services.legacy_notes import extract_note_fields, parse_notes

NOTES = """Room Type: Office
Computer Type: Laptop
Brand: Lenovo
Monitor: Dell P2419H
Monitor SN: CN-123
Printer SN: PR-9
UPS:
Remarks: screen flickers
Purchased from: local vendor"""


def test_parse_notes_keeps_known_non_empty_keys():
    assert parse_notes(NOTES) == {
        "room_type": "Office",
        "computer_type": "Laptop",
        "computer_brand": "Lenovo",
        "monitor_model": "Dell P2419H",
        "monitor_sn": "CN-123",
        "printer_sn": "PR-9",
        "remarks": "screen flickers",
    }


def test_extract_note_fields_joins_model_and_serial():
    assert extract_note_fields(NOTES) == {
        "room_type": "Office",
        "computer_type": "Laptop",
        "computer_brand": "Lenovo",
        "remarks": "screen flickers",
        "monitor_model_sn": "Dell P2419H / CN-123",
        "printer_model_sn": "PR-9",
    }


def test_plain_notes_yield_nothing():
    assert extract_note_fields("Replaced keyboard last week.") == {}
    assert extract_note_fields(None) == {}
    assert extract_note_fields("") == {}


def test_first_occurrence_wins():
    assert parse_notes("Brand: HP\nBrand: Acer") == {"computer_brand": "HP"}
