"""Configuration settings for Salon Billing"""
import os

# Business Information
BUSINESS_NAME = "Salon Billing"
CURRENCY_SYMBOL = "₹"

# Currency precision used at every aggregation boundary
CURRENCY_DECIMALS = 2

# Default GST rates (percent)
DEFAULT_TAX_RATES = {
    'service': 5.0,
    'essential': 5.0,
    'intermediate': 12.0,
    'standard': 18.0,
    'luxury': 28.0,
    'exempt': 0.0,
    'cgst': 9.0,
    'sgst': 9.0,
}

# Legacy flat-rate commission defaults (percent)
DEFAULT_SERVICE_COMMISSION_RATE = 5.0
DEFAULT_PRODUCT_COMMISSION_RATE = 3.0

# Logging
LOG_LEVEL = os.environ.get('SALON_BILLING_LOG_LEVEL', 'INFO')
LOG_FORMAT = os.environ.get('SALON_BILLING_LOG_FORMAT', 'text')  # 'text' or 'json'

# Excel styling
EXCEL_STYLES = {
    'header_bg_color': 'D3D3D3',  # Light gray
    'summary_bg_color': '00FFFF',  # Cyan
    'font_name': 'Arial',
    'font_size': 10
}
