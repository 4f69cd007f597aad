import time


def now_ms() -> int:
    return int(time.time() * 1000)


def now_unix() -> int:
    return int(time.time())
