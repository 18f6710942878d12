"""
SCF handler for the large benchmark package.

The package bundles readings.csv so the upload is noticeably bigger; the
handler summarises one column of it.
"""
import csv
import json
from pathlib import Path

BASE = Path(__file__).resolve().parent
DATA = BASE / 'readings.csv'


def _summary(column):
    total = 0.0
    count = 0
    with open(DATA, newline='', encoding='utf-8') as f:
        for row in csv.DictReader(f):
            total += float(row[column])
            count += 1
    return {'column': column, 'count': count, 'mean': total / count if count else None}


def main_handler(event, context):
    column = (event or {}).get('column') or 'value'
    try:
        body = _summary(column)
        status = 200
    except KeyError:
        body, status = {'error': f'unknown column: {column}'}, 400
    return {
        'isBase64Encoded': False,
        'statusCode': status,
        'headers': {'Content-Type': 'application/json; charset=utf-8'},
        'body': json.dumps(body),
    }
