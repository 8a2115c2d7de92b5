import time

from itsdangerous import BadSignature, URLSafeSerializer

from config import get_settings

CSRF_HEADER = "X-CSRF-Token"


def _serializer() -> URLSafeSerializer:
    settings = get_settings()
    return URLSafeSerializer(settings.csrf_secret, salt="csrf-token")


def generate_csrf_token(max_age_hours: int = 2) -> str:
    timestamp = int(time.time())
    token_data = {"ts": timestamp, "exp": timestamp + max_age_hours * 3600}
    return _serializer().dumps(token_data)


def validate_csrf_token(token: str) -> bool:
    if not token:
        return False
    try:
        data = _serializer().loads(token)
    except BadSignature:
        return False
    return int(time.time()) <= int(data.get("exp", 0))
