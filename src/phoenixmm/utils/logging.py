import json
import logging
import logging.handlers
import sys
from typing import Optional


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line. json_msg() payloads are embedded as-is."""

    def format(self, record):
        msg = record.getMessage()
        if not msg.startswith('{'):
            msg = json.dumps(msg)
        line = '{"ts":%s,"level":"%s","logger":"%s","msg":%s' % (
            json.dumps(self.formatTime(record)), record.levelname, record.name, msg
        )
        if record.exc_info:
            line += ',"exc":%s' % json.dumps(self.formatException(record.exc_info))
        return line + '}'


def setup_logging(level=logging.INFO, log_file: Optional[str] = None):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLineFormatter())
    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB per file
            backupCount=10,
        )
        file_handler.setFormatter(JsonLineFormatter())
        root.addHandler(file_handler)
    root.setLevel(level)


def json_msg(d: dict) -> str:
    return json.dumps(d, default=str)
