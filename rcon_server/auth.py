import secrets


def check_password(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode(), expected.encode())
