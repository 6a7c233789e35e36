"""Tests for loading sales, bills and settings"""
import json
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from salon_billing.data_loader import DataLoader, DataLoadError
from salon_billing.models import (
    CalculateBy,
    ItemBasedProfile,
    ItemType,
    TargetBasedProfile,
)

SALE_ROWS = [
    {'Receipt': 'R1', 'Date': '2024-01-05', 'Time': '10:30', 'Item': 'Haircut', 'Type': 'service',
     'Quantity': 1, 'Price': 500, 'Staff ID': 's1', 'Staff': 'Asha', 'Tax': 25, 'Client': 'Priya'},
    {'Receipt': 'R1', 'Date': '2024-01-05', 'Time': '10:30', 'Item': 'Shampoo', 'Type': 'product',
     'Quantity': 2, 'Price': 200, 'Staff ID': 's1', 'Staff': 'Asha', 'Tax': 20, 'Client': 'Priya'},
    {'Receipt': 'R2', 'Date': '20/01/2024', 'Time': '', 'Item': 'Gift', 'Type': 'voucher',
     'Quantity': 1, 'Price': 100, 'Staff ID': 's2', 'Staff': 'Ravi', 'Tax': 0, 'Client': ''},
]


class TestSalesLoading:
    def test_rows_grouped_into_sales(self, tmp_path):
        path = tmp_path / 'sales.csv'
        pd.DataFrame(SALE_ROWS).to_csv(path, index=False)

        sales = DataLoader.load_sales(str(path))

        assert [s.receipt_number for s in sales] == ['R1', 'R2']
        first = sales[0]
        assert first.sale_date == datetime(2024, 1, 5, 10, 30)
        assert first.client_name == 'Priya'
        assert len(first.items) == 2
        shampoo = first.items[1]
        assert shampoo.item_type is ItemType.PRODUCT
        assert shampoo.total == 400
        assert shampoo.tax_amount == 20
        assert shampoo.staff_id == 's1'
        assert shampoo.staff_name == 'Asha'

    def test_unknown_type_is_kept_without_type(self, tmp_path):
        path = tmp_path / 'sales.csv'
        pd.DataFrame(SALE_ROWS).to_csv(path, index=False)

        sales = DataLoader.load_sales(str(path))

        assert sales[1].sale_date == datetime(2024, 1, 20)
        assert sales[1].items[0].item_type is None

    def test_excel(self, tmp_path):
        path = tmp_path / 'sales.xlsx'
        pd.DataFrame(SALE_ROWS[:1]).to_excel(path, index=False)

        sales = DataLoader.load_sales(str(path))

        assert len(sales) == 1
        assert sales[0].items[0].total == 500

    def test_missing_receipt(self):
        df = pd.DataFrame([{'Date': '2024-01-05', 'Item': 'Haircut', 'Type': 'service', 'Price': 500}])

        with pytest.raises(DataLoadError, match='row 2'):
            DataLoader.sales_from_dataframe(df, 'sales.csv')

    def test_bad_date(self):
        df = pd.DataFrame([{'Receipt': 'R1', 'Date': 'yesterday', 'Item': 'Haircut',
                            'Type': 'service', 'Price': 500}])

        with pytest.raises(DataLoadError, match='unparseable date'):
            DataLoader.sales_from_dataframe(df)

    def test_date_column_with_time(self, tmp_path):
        path = tmp_path / 'sales.csv'
        pd.DataFrame([{'Receipt': 'R1', 'Date': '2024-01-05 14:45:00', 'Item': 'Haircut',
                       'Type': 'service', 'Price': 500}]).to_csv(path, index=False)

        sales = DataLoader.load_sales(str(path))

        assert sales[0].sale_date == datetime(2024, 1, 5, 14, 45)

    def test_bad_amount(self):
        df = pd.DataFrame([{'Receipt': 'R1', 'Date': '2024-01-05', 'Item': 'Haircut',
                            'Type': 'service', 'Price': 'five hundred'}])

        with pytest.raises(DataLoadError, match='invalid amount'):
            DataLoader.sales_from_dataframe(df)


class TestBillLoading:
    def test_bill_items(self, tmp_path):
        path = tmp_path / 'bill.csv'
        pd.DataFrame([
            {'Item': 'Haircut', 'Type': 'service', 'Price': 500, 'Quantity': 1, 'Tax Category': ''},
            {'Item': 'Perfume', 'Type': 'product', 'Price': 500, 'Quantity': 2, 'Tax Category': 'luxury'},
        ]).to_csv(path, index=False)

        items = DataLoader.load_bill_items(str(path))

        assert [i.name for i in items] == ['Haircut', 'Perfume']
        assert items[0].tax_category is None
        assert items[1].kind.value == 'product'
        assert items[1].quantity == 2
        assert items[1].tax_category == 'luxury'


class TestSettingsLoading:
    def test_tax_settings_from_store_fields(self, tmp_path):
        path = tmp_path / 'tax.json'
        path.write_text(json.dumps({'enableTax': False, 'serviceTaxRate': 18, 'luxuryProductRate': 40}))

        settings = DataLoader.load_tax_settings(str(path))

        assert settings.enable_tax is False
        assert settings.service_tax_rate == 18
        assert settings.luxury_product_rate == 40
        assert settings.standard_product_rate == 18

    def test_profiles(self, tmp_path):
        path = tmp_path / 'profiles.json'
        path.write_text(json.dumps([
            {'id': '1', 'name': 'Product Incentive', 'type': 'target_based',
             'calculationInterval': 'monthly', 'qualifyingItems': ['Product'],
             'includeTax': False, 'isActive': True, 'cascadingCommission': True,
             'targetTiers': [{'from': 0, 'to': 5000, 'calculateBy': 'percent', 'value': 5}]},
            {'id': '2', 'name': 'Per Item', 'type': 'item_based',
             'calculationInterval': 'daily', 'qualifyingItems': ['Service', 'Package'],
             'itemRates': [{'itemType': 'Service', 'rate': 10, 'calculateBy': 'fixed'}]},
        ]))

        target, item_based = DataLoader.load_profiles(str(path))

        assert isinstance(target, TargetBasedProfile)
        assert target.cascading_commission is True
        assert target.target_tiers[0].to_amount == 5000
        assert isinstance(item_based, ItemBasedProfile)
        assert item_based.qualifying_items == frozenset({ItemType.SERVICE, ItemType.PACKAGE})
        assert item_based.item_rates[0].calculate_by is CalculateBy.FIXED
        assert item_based.calculation_interval.value == 'daily'

    def test_invalid_profile(self, tmp_path):
        path = tmp_path / 'profiles.json'
        path.write_text(json.dumps([{'id': '1', 'name': 'Bad', 'type': 'mystery'}]))

        with pytest.raises(DataLoadError, match='invalid commission profile'):
            DataLoader.load_profiles(str(path))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'staff.json'
        path.write_text('{not json')

        with pytest.raises(DataLoadError, match='invalid JSON'):
            DataLoader.load_staff(str(path))

    def test_staff(self, tmp_path):
        path = tmp_path / 'staff.json'
        path.write_text(json.dumps([
            {'_id': 's1', 'name': 'Asha', 'commissionProfileIds': ['1', 2]},
            {'id': 's2', 'name': 'Ravi', 'serviceCommissionRate': 12},
        ]))

        staff = DataLoader.load_staff(str(path))

        assert staff[0].id == 's1'
        assert staff[0].commission_profile_ids == ['1', '2']
        assert staff[1].service_commission_rate == 12
        assert staff[1].product_commission_rate is None

    def test_commission_config(self):
        config = DataLoader.commission_config_from_dict({'serviceCommissionRate': 8, 'maximumCommission': 500})

        assert config.service_commission_rate == 8
        assert config.product_commission_rate == 3
        assert config.minimum_commission is None
        assert config.maximum_commission == 500
