import csv
import io

import openpyxl
import qrcode
from openpyxl.styles import Font, PatternFill, Alignment
from django.http import HttpResponse


class BaseGenerator:
    """
    Shared declarative column handling.
    Columns are dicts: {'header': 'Label', 'field': 'attr.path' | callable, 'formatter': callable}
    """

    def _get_value(self, obj, field):
        """Helper to get value from object, supporting dot notation (shipment.sender_name)"""
        if callable(field):
            return field(obj)

        value = obj
        for attr in field.split('.'):
            value = getattr(value, attr, '')
            if value is None:
                break
        return value

    def _row(self, obj, columns):
        row = []
        for col_def in columns:
            value = self._get_value(obj, col_def['field'])
            if 'formatter' in col_def and callable(col_def['formatter']):
                value = col_def['formatter'](value)
            row.append(value)
        return row

    @staticmethod
    def _iterate(rows):
        # QuerySets are streamed; plain lists are walked as-is
        return rows.iterator() if hasattr(rows, 'iterator') else iter(rows)


class CSVGenerator(BaseGenerator):
    """Every cell quoted, newline separated, header row first."""

    def generate(self, rows, columns) -> str:
        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
        output.write(','.join(col_def['header'] for col_def in columns) + '\n')
        for obj in self._iterate(rows):
            writer.writerow(self._row(obj, columns))
        return output.getvalue().rstrip('\n')


class ExcelGenerator(BaseGenerator):
    """
    Write-only workbook generator.
    Uses 'write_only=True' so large exports stay flat in memory.
    """

    def __init__(self, title="Export", creator="Movemate System"):
        self.workbook = openpyxl.Workbook(write_only=True)
        self.worksheet = self.workbook.create_sheet(title=title)
        self.workbook.properties.creator = creator

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1E3A8A", end_color="1E3A8A", fill_type="solid")
        self.header_alignment = Alignment(horizontal="center", vertical="center")

    def generate(self, rows, columns) -> io.BytesIO:
        header_row = []
        for col_def in columns:
            cell = openpyxl.cell.WriteOnlyCell(self.worksheet, value=col_def['header'])
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.header_alignment
            header_row.append(cell)
        self.worksheet.append(header_row)

        for obj in self._iterate(rows):
            self.worksheet.append(self._row(obj, columns))

        output = io.BytesIO()
        self.workbook.save(output)
        output.seek(0)
        return output


def csv_response(content: str, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def excel_response(stream: io.BytesIO, filename: str) -> HttpResponse:
    response = HttpResponse(
        stream.read(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def text_response(content: str, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type='text/plain; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# ==================== DATES ====================

def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(day % 10, 'th')
    return f"{day}{suffix}"


def long_date(value) -> str:
    """June 10th, 2024"""
    return f"{value.strftime('%B')} {_ordinal(value.day)}, {value.year}"


def full_date(value) -> str:
    """Monday, June 10th, 2024"""
    return f"{value.strftime('%A')}, {long_date(value)}"


# ==================== RECEIPT & QR ====================

def build_receipt(shipment, site) -> str:
    """Plain-text receipt handed to the sender after a tracking request."""
    from django.utils import timezone

    created = timezone.localtime(shipment.created_at)
    if shipment.estimated_delivery is None:
        estimated = 'Not scheduled'
    else:
        estimated = full_date(timezone.localtime(shipment.estimated_delivery))
    brand = site.site_name.upper()

    lines = [
        brand,
        '=' * len(brand),
        'SHIPMENT RECEIPT',
        '',
        f"Tracking ID: {shipment.tracking_id}",
        f"Date: {long_date(created)}",
        '',
        'SENDER DETAILS',
        '--------------',
        f"Name: {shipment.sender_name}",
        f"Phone: {shipment.sender_phone}",
        f"Pickup: {shipment.pickup_location}",
        '',
        'RECEIVER DETAILS',
        '----------------',
        f"Name: {shipment.receiver_name}",
        f"Phone: {shipment.receiver_phone}",
        f"Delivery: {shipment.delivery_location}",
        '',
        'PACKAGE DETAILS',
        '---------------',
        f"Description: {shipment.package_description}",
        f"Weight: {shipment.weight} kg",
        f"Category: {shipment.category}",
        '',
        'ESTIMATED DELIVERY',
        '------------------',
        estimated,
        '',
        f"Track your shipment at: {site.tracking_url(shipment.tracking_id)}",
        '',
        f"Thank you for choosing {site.site_name}!",
    ]
    return '\n'.join(lines) + '\n'


def make_qr_png(data: str) -> bytes:
    """PNG bytes of a QR code encoding `data`."""
    img = qrcode.make(data)
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()
