# bashwrap/utils/log.py
import datetime
import json
import sys
import traceback
from functools import wraps

PREFIX = "[BASHWRAP]"


def log(message: str) -> None:
    # stdout은 wrapper 출력용으로 비워둠
    print(f"{PREFIX} {message}", file=sys.stderr)


def _now() -> datetime.datetime:
    return datetime.datetime.now()


def _fmt(ts: datetime.datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S")


class Logger:
    """
    Decorator timing a build step.

      [2024-01-01 12:00:00] ▶ build_component START
      [2024-01-01 12:00:01] ▶ build_component END (Process Time : 0.1234s)

    Every call is kept in `records` and can be appended to a JSON-lines file.
    """

    def __init__(self, func=None, *, label=None):
        self.func = func
        self.label = label
        self.records = []
        if func is not None:
            wraps(func)(self)

    def __call__(self, *args, **kwargs):
        tag = f" ▶ {self.label}" if self.label is not None else ""
        name = self.func.__name__
        start = _now()
        print(f"[{_fmt(start)}]{tag} ▶ {name} START", file=sys.stderr)
        try:
            result = self.func(*args, **kwargs)
        except Exception as e:
            end = _now()
            duration = (end - start).total_seconds()
            print(f"[{_fmt(end)}]{tag} ▶ {name} ERROR (Process Time : {duration:.4f}s Log : {e})", file=sys.stderr)
            self.record(start, end, args, kwargs, error=str(e), tb=traceback.format_exc())
            raise  # CLI에서 처리
        end = _now()
        duration = (end - start).total_seconds()
        print(f"[{_fmt(end)}]{tag} ▶ {name} END (Process Time : {duration:.4f}s)", file=sys.stderr)
        self.record(start, end, args, kwargs, result=result)
        return result

    def record(self, start, end, args, kwargs, result=None, error=None, tb=None):
        self.records.append({
            "label": self.label,
            "function": self.func.__name__,
            "start_time": _fmt(start),
            "end_time": _fmt(end),
            "duration_sec": (end - start).total_seconds(),
            "args": [repr(a) for a in args],
            "kwargs": {k: repr(v) for k, v in kwargs.items()},
            "result": None if result is None else repr(result),
            "error": error,
            "traceback": tb,
        })

    def save_records(self, path, mode: str = "a"):
        with open(path, mode, encoding="utf-8") as f:
            for rec in self.records:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")


def logger(func):
    return Logger(func)
