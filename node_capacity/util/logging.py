from __future__ import annotations
import json, sys, time
from typing import Any, Optional, TextIO
_LEVELS = {'DEBUG': 0, 'INFO': 1, 'WARN': 2, 'WARNING': 2, 'ERROR': 3}
_LOG_LEVEL = 'WARN'
_LOG_FORMAT = 'text'
_STREAM: Optional[TextIO] = None

def configure_logging(level: str = 'WARN', format: str = 'text', stream: Optional[TextIO] = None):
    """Set the level threshold and output format (``json`` or ``text``).

    Records always go to stderr unless a stream is given, so report output on
    stdout stays clean.
    """
    global _LOG_LEVEL, _LOG_FORMAT, _STREAM
    _LOG_LEVEL = level.upper()
    _LOG_FORMAT = format.lower()
    _STREAM = stream

def _should_log(level: str) -> bool:
    return _LEVELS.get(level.upper(), 1) >= _LEVELS.get(_LOG_LEVEL, 2)

def log(level: str, message: str, **fields: Any):
    if not _should_log(level):
        return
    out = _STREAM or sys.stderr
    ts = time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())
    lvl = level.upper()
    if _LOG_FORMAT == 'json':
        rec = {'ts': ts, 'level': lvl, 'msg': message}
        if fields: rec.update(fields)
        print(json.dumps(rec, sort_keys=True, default=str), file=out)
    else:
        extra = ' '.join(f'{k}={v}' for k,v in fields.items()) if fields else ''
        line = f"{ts} [{lvl}] {message}" + (f" {extra}" if extra else '')
        print(line, file=out)

def debug(message: str, **fields: Any): log('debug', message, **fields)

def info(message: str, **fields: Any): log('info', message, **fields)

def warn(message: str, **fields: Any): log('warn', message, **fields)

def error(message: str, **fields: Any): log('error', message, **fields)
