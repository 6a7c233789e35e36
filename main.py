"""Main entry point for Salon Billing reports"""
import argparse
import logging
import sys
from datetime import datetime

from salon_billing.aggregator import (
    CommissionAggregator,
    filter_sales_by_date_range,
    group_sales_by_interval,
    profiles_by_staff,
)
from salon_billing.calculator import validate_commission_config
from salon_billing.data_loader import DataLoader, DataLoadError
from salon_billing.logger import init_logging
from salon_billing.models import DEFAULT_COMMISSION_PROFILES, TaxSettings
from salon_billing.profile_evaluator import validate_profile
from salon_billing.report_generator import BillReport, CommissionReportGenerator
from salon_billing.tax_calculator import calculate_bill_tax, validate_tax_settings
from config import CURRENCY_SYMBOL

logger = logging.getLogger(__name__)


def _parse_day(value: str):
    return datetime.strptime(value, '%Y-%m-%d').date()


def run_commission(args) -> int:
    sales = DataLoader.load_sales(args.sales_file)
    staff = DataLoader.load_staff(args.staff)
    profiles = DataLoader.load_profiles(args.profiles) if args.profiles else list(DEFAULT_COMMISSION_PROFILES)

    for profile in profiles:
        validation = validate_profile(profile)
        for error in validation.errors:
            logger.warning("Profile %s: %s", profile.id, error)

    default_config = None
    if args.flat_rate_config:
        default_config = DataLoader.load_commission_config(args.flat_rate_config)
        validation = validate_commission_config(default_config)
        if not validation.is_valid:
            for error in validation.errors:
                print(f"Invalid flat-rate config: {error}")
            return 1

    aggregator = CommissionAggregator(default_config)
    staff_profiles = profiles_by_staff(staff, profiles)

    if args.start and args.end:
        sales = filter_sales_by_date_range(sales, args.start, args.end)
    results = aggregator.aggregate(sales, staff, staff_profiles)

    if args.by_period:
        for period, period_sales in group_sales_by_interval(sales, args.by_period).items():
            period_results = aggregator.aggregate(period_sales, staff, staff_profiles)
            total = sum(r.total_commission for r in period_results)
            print(f"{period}: {CURRENCY_SYMBOL}{total:,.2f} across {len(period_results)} staff")

    # Output path
    if args.output:
        output_path = args.output
    else:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_path = f"output/reports/commission_{timestamp}.xlsx"

    generator = CommissionReportGenerator(results, args.start, args.end)
    generator.export_excel(output_path)
    print(f"Report saved to: {output_path}")

    # Print summary
    print(f"\n=== Commission Summary ===")
    for rank, r in enumerate(results, 1):
        print(f"{rank}. {r.staff_name}: {CURRENCY_SYMBOL}{r.total_commission:,.2f} "
              f"on {CURRENCY_SYMBOL}{r.total_revenue:,.2f} ({r.effective_commission_rate:.2f}%)")
    return 0


def run_tax(args) -> int:
    settings = DataLoader.load_tax_settings(args.settings) if args.settings else TaxSettings()
    validation = validate_tax_settings(settings)
    for error in validation.errors:
        logger.warning("Tax settings: %s", error)

    items = DataLoader.load_bill_items(args.bill_file)
    report = BillReport(calculate_bill_tax(items, settings))

    if args.output:
        report.export_excel(args.output)
        print(f"Bill saved to: {args.output}")

    print(f"\n=== Bill ===")
    for line in report.summary_lines():
        print(line)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Salon billing: GST breakdowns and staff commission reports')
    parser.add_argument('--log-level', default=None, help='Logging level (DEBUG, INFO, ...)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    commission = subparsers.add_parser('commission', help='Generate a staff commission report')
    commission.add_argument('sales_file', help='Path to Excel/CSV file with one row per sold item')
    commission.add_argument('--staff', '-s', required=True, help='Staff members JSON file')
    commission.add_argument('--profiles', '-p', default=None,
                            help='Commission profiles JSON file (default: built-in profiles)')
    commission.add_argument('--flat-rate-config', '-f', default=None,
                            help='Flat-rate commission JSON for staff without profiles')
    commission.add_argument('--start', type=_parse_day, default=None, help='First day (YYYY-MM-DD)')
    commission.add_argument('--end', type=_parse_day, default=None, help='Last day (YYYY-MM-DD)')
    commission.add_argument('--by-period', choices=['daily', 'monthly'], default=None,
                            help='Also print totals per period')
    commission.add_argument('--output', '-o', default=None, help='Output file path')
    commission.set_defaults(handler=run_commission)

    tax = subparsers.add_parser('tax', help='Calculate the GST breakdown of a bill')
    tax.add_argument('bill_file', help='Path to Excel/CSV file with one row per bill item')
    tax.add_argument('--settings', default=None, help='Tax settings JSON file (default: standard GST slabs)')
    tax.add_argument('--output', '-o', default=None, help='Output file path')
    tax.set_defaults(handler=run_tax)

    args = parser.parse_args(argv)
    if args.command == 'commission' and (args.start is None) != (args.end is None):
        parser.error('--start and --end must be given together')
    init_logging(getattr(logging, args.log_level.upper(), None) if args.log_level else None)

    try:
        return args.handler(args)
    except (DataLoadError, FileNotFoundError) as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
