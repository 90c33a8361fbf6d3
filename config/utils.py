import json


def read_json(request):
    """Body of a JSON request as a dict, or None when it is not a JSON object."""
    try:
        data = json.loads(request.body.decode('utf-8') or '{}')
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None
