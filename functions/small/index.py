import json


def main_handler(event, context):
    return {
        'isBase64Encoded': False,
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json; charset=utf-8'},
        'body': json.dumps({'message': 'Hello World'}),
    }
