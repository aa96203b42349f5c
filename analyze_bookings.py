"""
Cancellation Analysis of the Hotel Bookings Dataset
Prints every summary table of the cancellation report

Usage: python analyze_bookings.py [path/to/hotel_bookings.csv] [status|arrival] [year]
"""
import logging
import os
import sys

from booking_eda.aggregator import NO_DATA
from booking_eda.loader import DEFAULT_DATA_PATH, load_raw_records
from booking_eda.report import CancellationReport, ReportConfig

logging.basicConfig(level=logging.INFO, format='%(message)s')

data_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DATA_PATH
date_field = 'reservation_status_date' if len(sys.argv) > 2 and sys.argv[2] == 'status' else 'arrival_date'
year = int(sys.argv[3]) if len(sys.argv) > 3 else None

report = CancellationReport(ReportConfig(date_field=date_field, year=year))
result = report.build(load_raw_records(data_path))


def section(number, title):
    print('\n' + '=' * 75)
    print(f'{number}. {title}')
    print('=' * 75)


def show(name):
    table = result.tables[name]
    print(f'\n{name} ({table.mode}, ordered by {result.orderings[name]}):')
    print('-' * 75)
    largest = max([a.count for a in table.rows.values()], default=0)
    for key, agg in table.ordered(result.orderings[name]):
        label = ' | '.join(str(k) for k in key)
        if agg.value is NO_DATA:
            value = 'no data'
        elif table.mode == 'count':
            value = f'{agg.count:>8,}'
        elif table.mode == 'mean':
            value = f'{agg.value:>8.2f}'
        elif table.mode == 'row_percentage':
            value = f'{agg.value:>7.1f}%'
        else:
            value = f'{100 * agg.value:>7.1f}%'
        bar = '#' * int(agg.count * 50 / max(1, largest))
        print(f'  {label:<35} {value:>10} (n={agg.count:,}) {bar}')
    if table.excluded:
        print(f'  [{table.excluded:,} records excluded: invalid arrival date]')


print('=' * 75)
print('HOTEL BOOKINGS - CANCELLATION ANALYSIS')
print('=' * 75)

# ============================================================================
# SECTION 1: DATA OVERVIEW
# ============================================================================
section(1, 'DATA OVERVIEW')
summary = result.summary()
print(f'''
Dataset Summary:
  Total records: {summary["total_records"]:,}
  Valid records: {summary["valid_records"]:,}
  Excluded (schema errors): {summary["excluded_records"]:,}
  Records with unrecognized categories: {summary["flagged_records"]:,}
  Temporal tables driven by: {summary["date_field"]}{f" (year {year})" if year else ""}
''')
for error in summary['sample_errors']:
    print(f'  ! {error}')
show('reservation_status')

# ============================================================================
# SECTION 2: WHO CANCELS
# ============================================================================
section(2, 'CANCELLATION BY HOTEL AND CUSTOMER')
for name in ('hotel_cancellation', 'customer_type_cancellation', 'children_cancellation_rate'):
    show(name)

# ============================================================================
# SECTION 3: COMMERCIAL ATTRIBUTES
# ============================================================================
section(3, 'CANCELLATION BY COMMERCIAL ATTRIBUTES')
for name in ('deposit_type_cancellation', 'market_segment_cancellation',
             'distribution_channel_cancellation', 'special_requests_cancellation_rate',
             'parking_cancellation_rate', 'country_cancellation_rate'):
    show(name)

# ============================================================================
# SECTION 4: LEAD TIME
# ============================================================================
section(4, 'LEAD TIME')
show('lead_time_cancellation_rate')
show('cancellation_lead_time')

# ============================================================================
# SECTION 5: TEMPORAL PATTERNS
# ============================================================================
section(5, 'TEMPORAL PATTERNS')
for name in ('monthly_cancellations', 'monthly_cancellation_rate',
             'weekday_cancellations', 'season_cancellations'):
    show(name)

# ============================================================================
# SECTION 6: AVERAGE DAILY RATE
# ============================================================================
section(6, 'AVERAGE DAILY RATE')
show('monthly_adr')
show('adr_cancellation_rate')

# Save tables to CSV for the chart renderer
os.makedirs('data/tables', exist_ok=True)
for name in result.table_names:
    result.frame(name).to_csv(f'data/tables/{name}.csv', index=False)
print(f'\n✓ {len(result.table_names)} tables saved to data/tables/')
