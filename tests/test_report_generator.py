"""Tests for commission and bill reports"""
import json
import pytest
import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from main import main
from salon_billing.aggregator import aggregate_staff_commission, profiles_by_staff
from salon_billing.models import (
    BillItem,
    Sale,
    SaleItem,
    StaffMember,
    TaxSettings,
    DEFAULT_COMMISSION_PROFILES,
)
from salon_billing.report_generator import BillReport, CommissionReportGenerator
from salon_billing.tax_calculator import calculate_bill_tax
from config import BUSINESS_NAME


def commission_results():
    sales = [
        Sale(id='A', sale_date=datetime(2024, 1, 5), items=[
            SaleItem(id='a1', name='Haircut', item_type='service', price=1000, staff_id='s1'),
            SaleItem(id='a2', name='Serum', item_type='product', price=2000, staff_id='s1'),
            SaleItem(id='a3', name='Facial', item_type='service', price=500, staff_id='s2'),
        ]),
    ]
    staff = [
        StaffMember(id='s1', name='Asha', commission_profile_ids=['1', '2']),
        StaffMember(id='s2', name='Ravi', commission_profile_ids=['2']),
    ]
    return aggregate_staff_commission(sales, staff, profiles_by_staff(staff, DEFAULT_COMMISSION_PROFILES))


class TestCommissionReportGenerator:
    def setup_method(self):
        self.generator = CommissionReportGenerator(commission_results(), date(2024, 1, 1), date(2024, 1, 31))

    def test_dataframe(self):
        df = self.generator.to_dataframe()

        assert list(df['Staff']) == ['Asha', 'Ravi']
        assert list(df['Rank']) == [1, 2]
        assert df.loc[0, 'Total Commission'] == 170
        assert df.loc[1, 'Total Commission'] == 35

    def test_summary_row(self):
        summary = self.generator.get_summary_row()

        assert summary['Rank'] == '2 Staff'
        assert summary['Transactions'] == 2
        assert summary['Total Revenue'] == 3500
        assert summary['Total Commission'] == 205

    def test_profile_breakdown_dataframe(self):
        df = self.generator.profile_breakdown_dataframe()

        assert list(df['Profile']) == ['Product Incentive', 'Service Incentive', 'Service Incentive']

    def test_empty_report(self):
        generator = CommissionReportGenerator([])

        assert generator.to_dataframe().empty
        assert generator.get_summary_row()['Total Commission'] == 0

    def test_export_excel(self, tmp_path):
        path = tmp_path / 'reports' / 'commission.xlsx'

        self.generator.export_excel(str(path))

        wb = load_workbook(path)
        assert wb.sheetnames == ['Commission Summary', 'Profile Breakdown', 'Item Types']
        ws = wb['Commission Summary']
        assert ws['A1'].value == BUSINESS_NAME
        assert ws['A3'].value == 'Period: 01/01/2024 - 31/01/2024'
        assert ws.cell(row=5, column=2).value == 'Staff'
        assert ws.cell(row=6, column=2).value == 'Asha'
        assert ws.cell(row=8, column=1).value == '2 Staff'


class TestBillReport:
    def setup_method(self):
        items = [
            BillItem(id='1', name='Haircut', kind='service', price=500),
            BillItem(id='2', name='Perfume', kind='product', price=500, tax_category='luxury'),
        ]
        self.report = BillReport(calculate_bill_tax(items, TaxSettings()))

    def test_dataframe(self):
        df = self.report.to_dataframe()

        assert list(df['Item']) == ['Haircut', 'Perfume']
        assert list(df['Tax']) == [25, 140]
        assert df.loc[1, 'Breakdown'] == 'CGST (14.0%): ₹70.00 + SGST (14.0%): ₹70.00'

    def test_summary_lines(self):
        assert self.report.summary_lines() == [
            'Items: 2',
            'Subtotal: ₹1,000.00',
            'CGST: ₹82.50',
            'SGST: ₹82.50',
            'Total Tax: ₹165.00',
            'Grand Total: ₹1,165.00',
        ]

    def test_export_excel(self, tmp_path):
        path = tmp_path / 'bill.xlsx'

        self.report.export_excel(str(path))

        ws = load_workbook(path)['Tax Breakdown']
        assert ws.cell(row=3, column=1).value == 'Item'
        assert ws.cell(row=6, column=1).value == '2 Items'


class TestMain:
    def test_tax_command(self, tmp_path, capsys):
        bill = tmp_path / 'bill.csv'
        pd.DataFrame([
            {'Item': 'Haircut', 'Type': 'service', 'Price': 500},
            {'Item': 'Shampoo', 'Type': 'product', 'Price': 200, 'Tax Category': 'essential'},
        ]).to_csv(bill, index=False)

        assert main(['tax', str(bill)]) == 0

        out = capsys.readouterr().out
        assert 'Total Tax: ₹35.00' in out

    def test_commission_command(self, tmp_path, capsys):
        sales = tmp_path / 'sales.csv'
        pd.DataFrame([
            {'Receipt': 'R1', 'Date': '2024-01-05', 'Item': 'Serum', 'Type': 'product',
             'Price': 7000, 'Staff ID': 's1'},
        ]).to_csv(sales, index=False)
        staff = tmp_path / 'staff.json'
        staff.write_text(json.dumps([{'id': 's1', 'name': 'Asha', 'commissionProfileIds': ['1']}]))
        output = tmp_path / 'report.xlsx'

        code = main(['commission', str(sales), '--staff', str(staff), '--output', str(output),
                     '--by-period', 'monthly'])

        assert code == 0
        assert output.exists()
        out = capsys.readouterr().out
        assert '1. Asha: ₹410.00' in out
        assert '2024-01: ₹410.00' in out

    def test_commission_period_totals_respect_date_range(self, tmp_path, capsys):
        """
        Test: product sales in January (1000 -> 50) and February (7000 -> 410),
        report limited to January
        Expected: only the January period is printed, matching the summary
        """
        sales = tmp_path / 'sales.csv'
        pd.DataFrame([
            {'Receipt': 'R1', 'Date': '2024-01-10', 'Item': 'Shampoo', 'Type': 'product',
             'Price': 1000, 'Staff ID': 's1'},
            {'Receipt': 'R2', 'Date': '2024-02-10', 'Item': 'Serum', 'Type': 'product',
             'Price': 7000, 'Staff ID': 's1'},
        ]).to_csv(sales, index=False)
        staff = tmp_path / 'staff.json'
        staff.write_text(json.dumps([{'id': 's1', 'name': 'Asha', 'commissionProfileIds': ['1']}]))

        code = main(['commission', str(sales), '--staff', str(staff),
                     '--output', str(tmp_path / 'report.xlsx'),
                     '--start', '2024-01-01', '--end', '2024-01-31', '--by-period', 'monthly'])

        assert code == 0
        out = capsys.readouterr().out
        assert '2024-01: ₹50.00 across 1 staff' in out
        assert '2024-02' not in out
        assert '1. Asha: ₹50.00' in out

    def test_commission_range_needs_both_bounds(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(['commission', str(tmp_path / 'sales.csv'), '--staff', str(tmp_path / 'staff.json'),
                  '--start', '2024-01-01'])

        assert exc.value.code == 2

    def test_missing_file(self, tmp_path, capsys):
        code = main(['tax', str(tmp_path / 'missing.csv')])

        assert code == 1
