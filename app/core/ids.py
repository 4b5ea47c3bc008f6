import secrets
import string
import uuid

REQUEST_ID_ALPHABET = string.ascii_letters + string.digits
REQUEST_ID_LENGTH = 10


def gen_id() -> str:
    return str(uuid.uuid4())


def gen_request_id(length: int = REQUEST_ID_LENGTH) -> str:
    # 62^10 ids: collisions are negligible at any realistic request volume
    return "".join(secrets.choice(REQUEST_ID_ALPHABET) for _ in range(length))
