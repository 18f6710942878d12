"""
SCF handler for the medium benchmark package.

Loads messages.json (bundled next to this file) and answers with one of the
templates, picked by the `template` key of the event.
"""
import json
from pathlib import Path

BASE = Path(__file__).resolve().parent
MESSAGES = json.loads((BASE / 'messages.json').read_text(encoding='utf-8'))


def _resp_json(data, status=200):
    return {
        'isBase64Encoded': False,
        'statusCode': status,
        'headers': {'Content-Type': 'application/json; charset=utf-8'},
        'body': json.dumps(data, ensure_ascii=False),
    }


def main_handler(event, context):
    name = (event or {}).get('template') or 'default'
    msg = MESSAGES.get(name)
    if msg is None:
        return _resp_json({'error': f'unknown template: {name}'}, 404)
    return _resp_json(msg)
