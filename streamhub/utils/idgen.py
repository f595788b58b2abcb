from ulid import ULID


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_stream_id() -> str:
    return new_ulid("st_")


def new_attendee_id() -> str:
    return new_ulid("sa_")


def new_notification_id() -> str:
    return new_ulid("nt_")


def new_request_id() -> str:
    return new_ulid("rq_")
