# app/utils/pdf_generators/delivery_note_pdf.py
import os
from xml.sax.saxutils import escape  # Paragraph text is parsed as markup

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet
from sqlalchemy import select

from app.core.config import DELIVERY_NOTE_DIR
from app.models.catalog.branch_models import Branch
from app.models.catalog.item_models import Item
from app.models.logistics.movement_models import Movement
from app.models.logistics.request_models import TransferRequest
from app.models.users.user_models import User
from app.utils.ids import display_id


async def _user_name(db, user_id: str | None) -> str:
    if not user_id:
        return "N/A"
    user = await db.get(User, user_id)
    return escape(user.name if user else user_id)


async def _branch_name(db, branch_id: str) -> str:
    branch = await db.get(Branch, branch_id)
    return escape(f"{branch.name} ({branch.id})" if branch else branch_id)


def _fmt(value) -> str:
    return value.strftime("%d-%m-%Y %H:%M") if value else "N/A"


async def generate_delivery_note_pdf(db, request: TransferRequest) -> str:
    """
    Generate a delivery note for a delivered transfer request, listing the
    item, both branches, the people involved and the paired ledger entries.
    """

    item = await db.get(Item, (request.item_id, request.from_branch_id))
    movements = (
        await db.scalars(
            select(Movement)
            .where(Movement.reference_id == request.id)
            .order_by(Movement.type.desc())
        )
    ).all()

    os.makedirs(DELIVERY_NOTE_DIR, exist_ok=True)
    file_path = os.path.join(DELIVERY_NOTE_DIR, f"DeliveryNote_{request.id}.pdf")

    styles = getSampleStyleSheet()
    story = []

    # -----------------------------
    # HEADER
    # -----------------------------
    story.append(Paragraph(f"<b>DELIVERY NOTE {escape(display_id(request.id))}</b>", styles["Title"]))
    story.append(Spacer(1, 8))
    story.append(Paragraph(f"Status: {request.status.value.upper()}", styles["Normal"]))
    story.append(Paragraph(f"Priority: {request.priority.value.upper()}", styles["Normal"]))
    story.append(Paragraph(f"Requested: {_fmt(request.created_at)}", styles["Normal"]))
    story.append(Paragraph(f"Delivered: {_fmt(request.delivered_at)}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # ROUTE
    # -----------------------------
    story.append(Paragraph("<b>Route:</b>", styles["Heading3"]))
    story.append(Paragraph(f"From: {await _branch_name(db, request.from_branch_id)}", styles["Normal"]))
    story.append(Paragraph(f"To: {await _branch_name(db, request.to_branch_id)}", styles["Normal"]))
    story.append(Paragraph(f"Driver: {await _user_name(db, request.driver_user_id)}", styles["Normal"]))
    story.append(Paragraph(f"Received by: {await _user_name(db, request.received_by_user_id)}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # ITEM
    # -----------------------------
    story.append(Paragraph("<b>Goods:</b>", styles["Heading3"]))
    data = [["Item", "Name", "Qty", "Unit Cost"]]
    data.append([
        request.item_id,
        item.name if item else "N/A",
        str(request.qty),
        f"{float(item.unit_cost):.2f}" if item else "N/A",
    ])

    table = Table(data, colWidths=[90, 200, 60, 90])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
        ("ALIGN", (2, 1), (-1, -1), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
    ]))
    story.append(table)
    story.append(Spacer(1, 20))

    # -----------------------------
    # LEDGER ENTRIES
    # -----------------------------
    story.append(Paragraph("<b>Ledger Entries:</b>", styles["Heading3"]))
    for m in movements:
        story.append(
            Paragraph(
                f"{m.type.value} {m.qty} at {escape(m.branch_id)} ({escape(display_id(m.id))})",
                styles["Normal"],
            )
        )

    if request.note:
        story.append(Spacer(1, 15))
        story.append(Paragraph(f"Note: {escape(request.note)}", styles["Italic"]))

    doc = SimpleDocTemplate(file_path, pagesize=A4)
    doc.build(story)

    return file_path
