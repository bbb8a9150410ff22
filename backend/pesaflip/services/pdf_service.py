"""
PDF Invoice Generation Service
Renders an invoice with its line items, VAT breakdown and payment status
"""
from io import BytesIO
from datetime import datetime
from decimal import Decimal
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from pesaflip.core.config import settings
from pesaflip.models.invoice import Invoice
from pesaflip.models.user import User
from pesaflip.services.invoice_service import amount_paid, balance_due


def _money(value) -> str:
    return f"{settings.CURRENCY} {Decimal(str(value)):,.2f}"


def _text(value) -> str:
    """Paragraph() parses markup, so user-entered text must be escaped."""
    return escape(str(value)) if value else ""


def _terms_label(payment_terms: str) -> str:
    return f"Net {payment_terms} days" if payment_terms.isdigit() else payment_terms


def generate_invoice_pdf(invoice: Invoice, owner: User) -> BytesIO:
    """
    Generate PDF for an invoice

    Args:
        invoice: Invoice with items and payments loaded
        owner: the business issuing the invoice

    Returns:
        BytesIO buffer containing PDF data
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=f"Invoice {invoice.invoice_number}",
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#1a56db'),
        alignment=TA_CENTER,
        spaceAfter=12
    )
    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )
    normal_style = ParagraphStyle(
        'InvoiceNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("INVOICE", title_style))
    elements.append(Paragraph(_text(invoice.title), heading_style))
    elements.append(Spacer(1, 0.2 * inch))

    business_name = owner.business_name or owner.name
    business_lines = [f"<b>{_text(business_name)}</b>"]
    if owner.email:
        business_lines.append(_text(owner.email))
    business_lines.append(_text(owner.phone_number))

    info_table = Table([[
        Paragraph("<br/>".join(business_lines), normal_style),
        Paragraph(
            f"<b>Invoice #:</b> {_text(invoice.invoice_number)}<br/>"
            f"<b>Issued:</b> {invoice.issue_date.strftime('%d %b %Y')}<br/>"
            f"<b>Due:</b> {invoice.due_date.strftime('%d %b %Y')}<br/>"
            f"<b>Status:</b> {invoice.status.upper()}",
            normal_style,
        ),
    ]], colWidths=[3.5 * inch, 3 * inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3 * inch))

    elements.append(Paragraph("<b>Bill To:</b>", heading_style))
    client_lines = [f"<b>{_text(invoice.client_name)}</b>", _text(invoice.client_email)]
    if invoice.client_address:
        client_lines.append(_text(invoice.client_address))
    elements.append(Paragraph("<br/>".join(client_lines), normal_style))
    if invoice.description:
        elements.append(Spacer(1, 0.1 * inch))
        elements.append(Paragraph(_text(invoice.description), normal_style))
    elements.append(Spacer(1, 0.3 * inch))

    items_data = [[
        Paragraph("<b>Description</b>", normal_style),
        Paragraph("<b>Quantity</b>", normal_style),
        Paragraph("<b>Unit Price</b>", normal_style),
        Paragraph("<b>Amount</b>", normal_style),
    ]]
    for item in invoice.items:
        items_data.append([
            Paragraph(_text(item.description), normal_style),
            f"{Decimal(str(item.quantity)).normalize():f}",
            _money(item.unit_price),
            _money(item.amount),
        ])

    items_table = Table(items_data, colWidths=[3 * inch, 1 * inch, 1.2 * inch, 1.3 * inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#1f2937')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 1), (-1, -1), 10),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2 * inch))

    tax_rate = Decimal(str(invoice.tax_rate)).normalize()
    total_data = [
        ['', '', "Subtotal:", _money(invoice.subtotal)],
        ['', '', f"VAT ({tax_rate:f}%):", _money(invoice.tax_amount)],
        ['', '', "TOTAL:", _money(invoice.total)],
    ]
    paid = amount_paid(invoice)
    if paid > 0:
        total_data.append(['', '', "Paid:", _money(paid)])
        total_data.append(['', '', "Balance Due:", _money(balance_due(invoice))])

    total_table = Table(total_data, colWidths=[3 * inch, 1 * inch, 1.2 * inch, 1.3 * inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (2, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (2, 2), (-1, 2), 'Helvetica-Bold'),
        ('LINEABOVE', (2, 2), (-1, 2), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(total_table)
    elements.append(Spacer(1, 0.4 * inch))

    elements.append(Paragraph("<b>Payment Terms:</b>", heading_style))
    elements.append(Paragraph(
        f"{_text(_terms_label(invoice.payment_terms))}. Pay via M-PESA or card before "
        f"{invoice.due_date.strftime('%d %b %Y')}.",
        normal_style,
    ))
    if invoice.notes:
        elements.append(Spacer(1, 0.2 * inch))
        elements.append(Paragraph("<b>Notes:</b>", heading_style))
        elements.append(Paragraph(_text(invoice.notes), normal_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.5 * inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))
    elements.append(Paragraph(f"Generated on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
