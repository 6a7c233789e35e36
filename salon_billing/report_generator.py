"""Report generation for Salon Billing"""
from datetime import date
from pathlib import Path
from typing import List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

from .aggregator import commission_breakdown
from .models import BillTaxSummary, ItemType, StaffCommissionResult
from .tax_calculator import format_tax_breakdown
from config import BUSINESS_NAME, CURRENCY_SYMBOL, EXCEL_STYLES


def _money(value: float) -> str:
    return f"{CURRENCY_SYMBOL}{value:,.2f}"


class _ExcelStyles:
    """openpyxl styles built from config.EXCEL_STYLES"""

    def __init__(self):
        self.header_fill = PatternFill(start_color=EXCEL_STYLES['header_bg_color'],
                                       end_color=EXCEL_STYLES['header_bg_color'],
                                       fill_type='solid')
        self.summary_fill = PatternFill(start_color=EXCEL_STYLES['summary_bg_color'],
                                        end_color=EXCEL_STYLES['summary_bg_color'],
                                        fill_type='solid')
        self.header_font = Font(name=EXCEL_STYLES['font_name'],
                                size=EXCEL_STYLES['font_size'],
                                bold=True)
        self.title_font = Font(name=EXCEL_STYLES['font_name'], size=14, bold=True)
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def write_table(self, ws, df: pd.DataFrame, start_row: int, numeric_from: int,
                    summary: Optional[dict] = None) -> int:
        """Write a header, data rows and an optional summary row; return the next free row."""
        for col_idx, col_name in enumerate(df.columns, 1):
            cell = ws.cell(row=start_row, column=col_idx, value=col_name)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.border = self.border
            cell.alignment = Alignment(horizontal='center')

        for row_offset, (_, row) in enumerate(df.iterrows(), 1):
            for col_idx, value in enumerate(row, 1):
                cell = ws.cell(row=start_row + row_offset, column=col_idx, value=value)
                cell.border = self.border
                if col_idx >= numeric_from:
                    cell.alignment = Alignment(horizontal='right')
                    if isinstance(value, float):
                        cell.number_format = '#,##0.00'

        next_row = start_row + len(df) + 1
        if summary is not None:
            for col_idx, col_name in enumerate(df.columns, 1):
                cell = ws.cell(row=next_row, column=col_idx, value=summary.get(col_name, ''))
                cell.fill = self.summary_fill
                cell.font = Font(bold=True)
                cell.border = self.border
                if col_idx >= numeric_from:
                    cell.alignment = Alignment(horizontal='right')
                    if isinstance(summary.get(col_name), float):
                        cell.number_format = '#,##0.00'
            next_row += 1
        return next_row


class CommissionReportGenerator:
    """
    Generates Excel reports of staff commission summaries.
    """

    def __init__(self, results: List[StaffCommissionResult],
                 start: Optional[date] = None, end: Optional[date] = None):
        self.results = results
        self.start = start
        self.end = end

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per staff member, in ranking order.
        """
        data = []
        for rank, r in enumerate(self.results, 1):
            data.append({
                'Rank': rank,
                'Staff': r.staff_name,
                'Mode': 'Flat rate' if r.mode == 'flat_rate' else 'Profiles',
                'Transactions': r.total_transactions,
                'Service Revenue': r.service_revenue,
                'Product Revenue': r.product_revenue,
                'Total Revenue': r.total_revenue,
                'Service Commission': r.service_commission,
                'Product Commission': r.product_commission,
                'Total Commission': r.total_commission,
                'Avg / Transaction': r.average_commission_per_transaction,
                'Effective %': r.effective_commission_rate,
            })

        return pd.DataFrame(data, columns=[
            'Rank', 'Staff', 'Mode', 'Transactions', 'Service Revenue', 'Product Revenue',
            'Total Revenue', 'Service Commission', 'Product Commission', 'Total Commission',
            'Avg / Transaction', 'Effective %',
        ])

    def profile_breakdown_dataframe(self) -> pd.DataFrame:
        """One row per staff member and contributing profile."""
        data = []
        for r in self.results:
            for p in r.profile_breakdown:
                data.append({
                    'Staff': r.staff_name,
                    'Profile': p.profile_name,
                    'Items': p.item_count,
                    'Revenue': p.revenue,
                    'Commission': p.commission,
                })
        return pd.DataFrame(data, columns=['Staff', 'Profile', 'Items', 'Revenue', 'Commission'])

    def item_type_dataframe(self) -> pd.DataFrame:
        """Revenue and commission per staff member and item type."""
        data = []
        for r in self.results:
            for item_type, row in commission_breakdown(r).items():
                if item_type == 'total':
                    continue
                data.append({
                    'Staff': r.staff_name,
                    'Item Type': ItemType(item_type).label,
                    'Count': row['count'],
                    'Revenue': row['revenue'],
                    'Commission': row['commission'],
                    'Rate %': row['rate'],
                })
        return pd.DataFrame(data, columns=['Staff', 'Item Type', 'Count', 'Revenue', 'Commission', 'Rate %'])

    def get_summary_row(self) -> dict:
        """Get summary row data."""
        df = self.to_dataframe()
        row = {'Rank': f"{len(self.results)} Staff"}
        for column in ['Transactions', 'Service Revenue', 'Product Revenue', 'Total Revenue',
                       'Service Commission', 'Product Commission', 'Total Commission']:
            total = df[column].sum() if not df.empty else 0
            row[column] = int(total) if column == 'Transactions' else round(float(total), 2)
        return row

    def export_excel(self, filepath: str) -> None:
        """
        Export report to Excel file.

        Args:
            filepath: Path to save the Excel file
        """
        styles = _ExcelStyles()
        wb = Workbook()
        ws = wb.active
        ws.title = "Commission Summary"

        # Title section
        ws['A1'] = BUSINESS_NAME
        ws['A1'].font = styles.title_font
        ws['A2'] = "Staff Commission Report"
        ws['A2'].font = Font(size=12, bold=True)
        if self.start and self.end:
            ws['A3'] = f"Period: {self.start.strftime('%d/%m/%Y')} - {self.end.strftime('%d/%m/%Y')}"

        # Data starts at row 5
        styles.write_table(ws, self.to_dataframe(), 5, numeric_from=4, summary=self.get_summary_row())

        column_widths = [8, 25, 12, 14, 16, 16, 14, 18, 18, 16, 16, 12]
        for idx, width in enumerate(column_widths, 1):
            ws.column_dimensions[chr(64 + idx)].width = width

        profiles_ws = wb.create_sheet("Profile Breakdown")
        styles.write_table(profiles_ws, self.profile_breakdown_dataframe(), 1, numeric_from=3)

        types_ws = wb.create_sheet("Item Types")
        styles.write_table(types_ws, self.item_type_dataframe(), 1, numeric_from=3)

        # Save
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        wb.save(filepath)


class BillReport:
    """
    Tax breakdown of a single bill, in billed order.
    """

    def __init__(self, summary: BillTaxSummary):
        self.summary = summary

    def to_dataframe(self) -> pd.DataFrame:
        data = []
        for r in self.summary.items:
            data.append({
                'Item': r.item.name,
                'Type': r.item.kind.value,
                'Category': r.tax_category,
                'Qty': r.item.quantity,
                'Base': r.base_amount,
                'Rate %': r.tax_rate,
                'CGST': r.cgst,
                'SGST': r.sgst,
                'Tax': r.tax_amount,
                'Total': r.total_amount,
                'Breakdown': format_tax_breakdown(r),
            })
        return pd.DataFrame(data, columns=[
            'Item', 'Type', 'Category', 'Qty', 'Base', 'Rate %', 'CGST', 'SGST', 'Tax', 'Total', 'Breakdown',
        ])

    def get_summary_row(self) -> dict:
        s = self.summary
        return {
            'Item': f"{s.item_count} Items",
            'Base': s.total_base,
            'CGST': s.total_cgst,
            'SGST': s.total_sgst,
            'Tax': s.total_tax_amount,
            'Total': s.total_amount,
        }

    def summary_lines(self) -> List[str]:
        s = self.summary
        return [
            f"Items: {s.item_count}",
            f"Subtotal: {_money(s.total_base)}",
            f"CGST: {_money(s.total_cgst)}",
            f"SGST: {_money(s.total_sgst)}",
            f"Total Tax: {_money(s.total_tax_amount)}",
            f"Grand Total: {_money(s.total_amount)}",
        ]

    def export_excel(self, filepath: str) -> None:
        styles = _ExcelStyles()
        wb = Workbook()
        ws = wb.active
        ws.title = "Tax Breakdown"
        ws['A1'] = BUSINESS_NAME
        ws['A1'].font = styles.title_font
        styles.write_table(ws, self.to_dataframe(), 3, numeric_from=4, summary=self.get_summary_row())

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        wb.save(filepath)
