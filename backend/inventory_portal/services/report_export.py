"""
CSV and PDF renderings of the inventory.
"""
import csv
import io
from datetime import datetime
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from inventory_portal.clock import as_utc
from inventory_portal.models.inventory_item import InventoryItem

CSV_HEADERS = [
    "Computer Name/ID",
    "Model",
    "Status",
    "Building",
    "Floor",
    "Room",
    "Category",
    "Serial Number",
    "Purchase Date",
    "Warranty Expiry",
    "Cost",
    "Created At",
    "Updated At",
]


def _date(value: Optional[datetime]) -> str:
    return as_utc(value).strftime("%Y-%m-%d") if value else ""


def _timestamp(value: Optional[datetime]) -> str:
    return as_utc(value).isoformat() if value else ""


def csv_row(item: InventoryItem) -> List[str]:
    return [
        item.computer_name_or_id or "",
        item.computer_model or "",
        item.status or "",
        item.building or "",
        item.floor or "",
        item.room_name_or_number or "",
        item.category or "",
        item.serial_number or "",
        _date(item.purchase_date),
        _date(item.warranty_expiry),
        item.cost or "",
        _timestamp(item.created_at),
        _timestamp(item.updated_at),
    ]


def render_csv(items: Iterable[InventoryItem]) -> str:
    """Every field quoted; embedded quotes are doubled by the csv module."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in items:
        writer.writerow(csv_row(item))
    return output.getvalue()


def render_pdf(snapshot: dict, generated_at: datetime) -> bytes:
    """Flowing report; page breaks are left to the document template."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, topMargin=0.75 * inch, bottomMargin=0.75 * inch,
                            title="Inventory Report")
    styles = getSampleStyleSheet()

    content = [
        Paragraph("Inventory Report", styles["Title"]),
        Paragraph(f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M UTC')}", styles["Normal"]),
        Spacer(1, 18),
        Paragraph("Summary", styles["Heading2"]),
        Paragraph(f"Total Items: {snapshot['summary']['totalItems']}", styles["Normal"]),
        Spacer(1, 12),
        Paragraph("Items by Status:", styles["Heading3"]),
    ]
    for status, count in snapshot["statusBreakdown"].items():
        content.append(Paragraph(f"{escape(status)}: {count}", styles["Normal"]))

    content += [Spacer(1, 12), Paragraph("Items by Building:", styles["Heading3"])]
    for building, count in snapshot["buildingBreakdown"]:
        content.append(Paragraph(f"{escape(building)}: {count}", styles["Normal"]))

    content += [Spacer(1, 12), Paragraph("Recent Items:", styles["Heading3"])]
    for item in snapshot["recentItems"][:10]:
        line = (
            f"{item.computer_name_or_id or 'Unnamed'} - "
            f"{item.computer_model or 'Unknown Model'} ({item.status})"
        )
        content.append(Paragraph(escape(line), styles["Normal"]))

    doc.build(content)
    buffer.seek(0)
    return buffer.getvalue()
