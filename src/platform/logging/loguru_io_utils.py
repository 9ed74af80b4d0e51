from inspect import FullArgSpec, getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    DEPTH_LINE,
    MAX_CONTENT_LENGTH,
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


_SENSITIVE_PATTERN = re.compile(
    r"(\b(?:" + '|'.join(sorted(SENSITIVE_KEYWORDS)) + r"))(\s*[=:]\s*)'[^']*'(,?)",
    re.IGNORECASE,
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def fetch_layer_depth() -> str:
    return DEPTH_LINE * max(call_depth_var.get() - 1, 0)


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    target = getattr(func, '__func__', func)
    try:
        lineno = getsourcelines(target)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{basename(getfile(target))}::{func.__qualname__}:{lineno}'


def reset_call_depth() -> None:
    layer = call_depth_var.get() - 1
    call_depth_var.set(layer)
    if layer <= 0:
        call_depth_var.set(0)
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    """Drop arguments the wrapped function cannot accept (FastAPI may pass extras)."""
    if hasattr(func, '__wrapped__'):
        func = func.__wrapped__  # type: ignore
    full_arg_spec: FullArgSpec = getfullargspec(func)
    spec_args: list[str] = full_arg_spec.args

    if not full_arg_spec.varkw:
        kw_list: list[str] = spec_args + full_arg_spec.kwonlyargs
        kwargs = {k: v for k, v in kwargs.items() if k in kw_list}

    if not full_arg_spec.varargs:
        positional = [name for name in spec_args if name not in kwargs]
        args = args[: len(positional)]

    return args, kwargs


def mask_sensitive(data: Any) -> Any:
    try:
        data_str = str(data)
    except Exception:
        return data
    masked = _SENSITIVE_PATTERN.sub(r"\1\2'********'\3", data_str)
    return data if masked == data_str else masked


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return '********' if str(keyword).lower() in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any) -> Any:
    text = data if isinstance(data, str) else repr(data)
    if len(text) <= MAX_CONTENT_LENGTH:
        return data
    return f'{text[:MAX_CONTENT_LENGTH]}...<{len(text) - MAX_CONTENT_LENGTH} more chars>'


_BOOKING_REF_KEYS = ('event_id', 'registration_id')


def extract_booking_ref(kwargs: dict[str, Any]) -> str:
    """`event=3 registration=17` from a call's kwargs (or its `instruction`), else ''."""
    sources: list[Any] = [kwargs]
    if (instruction := kwargs.get('instruction')) is not None:
        sources.append(instruction)

    refs: dict[str, Any] = {}
    for source in sources:
        for key in _BOOKING_REF_KEYS:
            value = source.get(key) if isinstance(source, dict) else getattr(source, key, None)
            if value is not None and key not in refs:
                refs[key] = value
    return ' '.join(
        f'{key.removesuffix("_id")}={refs[key]}' for key in _BOOKING_REF_KEYS if key in refs
    )
