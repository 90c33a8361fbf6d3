import io

from django.utils import timezone

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader

import qrcode

# built-in Type1 faces; no TTF registration needed for latin text
_FONT_REGULAR = "Helvetica"
_FONT_BOLD = "Helvetica-Bold"


def _format_dt(dt):
    if not dt:
        return ""
    dt = timezone.localtime(dt)
    return dt.strftime("%d %b %Y %H:%M")


def qr_payload(ticket) -> str:
    return f"TICKET:{ticket.ticket_code}|HASH:{ticket.qr_hash}|EVENT:{ticket.event_id}"


def build_ticket_pdf(ticket):
    """
    Renders a one-page PDF ticket with a QR code and the booking details.
    Returns bytes.
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    margin_left = 20 * mm
    margin_top = height - 20 * mm

    c.setFont(_FONT_BOLD, 20)
    c.drawString(margin_left, margin_top, "E-Ticket")

    y = margin_top - 15 * mm
    c.setFont(_FONT_BOLD, 14)
    c.drawString(margin_left, y, ticket.event.title)
    y -= 7 * mm

    c.setFont(_FONT_REGULAR, 11)
    c.drawString(margin_left, y, f"Starts: {_format_dt(ticket.event.starts_at)}")
    y -= 6 * mm
    if ticket.event.ends_at:
        c.drawString(margin_left, y, f"Ends: {_format_dt(ticket.event.ends_at)}")
        y -= 6 * mm
    c.drawString(margin_left, y, f"Venue: {ticket.event.location}")
    y -= 10 * mm

    c.setFont(_FONT_BOLD, 12)
    c.drawString(margin_left, y, "Ticket details")
    y -= 7 * mm

    c.setFont(_FONT_REGULAR, 11)
    c.drawString(margin_left, y, f"Ticket ID: {ticket.ticket_code}")
    y -= 6 * mm
    payment = getattr(ticket.purchase, 'payment', None)
    if payment is not None:
        c.drawString(margin_left, y, f"Payment reference: {payment.reference}")
        y -= 6 * mm
    c.drawString(margin_left, y, f"Attendee: {ticket.attendee_name}")
    y -= 6 * mm
    c.drawString(margin_left, y, f"Ticket type: {ticket.ticket_type.name}")
    y -= 6 * mm
    c.drawString(margin_left, y, f"Price: NGN {ticket.ticket_type.price:,.2f}")

    qr = qrcode.QRCode(version=1, box_size=8, border=2)
    qr.add_data(qr_payload(ticket))
    qr.make(fit=True)

    # reportlab wants PNG bytes
    qr_img = qr.make_image(fill_color="black", back_color="white").get_image()
    qr_buffer = io.BytesIO()
    qr_img.save(qr_buffer, format="PNG")
    qr_buffer.seek(0)

    qr_size = 50 * mm
    c.drawImage(
        ImageReader(qr_buffer),
        width - qr_size - 20 * mm,
        margin_top - qr_size,
        qr_size,
        qr_size,
        mask='auto'
    )

    c.setFont(_FONT_REGULAR, 9)
    footer_y = 15 * mm
    c.drawString(margin_left, footer_y, "Present this QR code at the entrance. One code admits one person.")
    c.drawString(margin_left, footer_y - 5 * mm, "The organizer can verify the ticket by its ID and QR code.")

    c.showPage()
    c.save()
    pdf = buffer.getvalue()
    buffer.close()
    return pdf
