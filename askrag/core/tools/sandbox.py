"""
Restricted Python sandbox.

Code is compiled with RestrictedPython and executed in a separate spawned
process; the parent enforces a hard timeout and terminates the child. Any
failure in the child, including a crash, reaches the caller as a
ToolExecutionError and never propagates into the server process.

Dependencies: RestrictedPython, multiprocessing
System role: Executor for the python and exec_code tools
"""

import logging
import multiprocessing
import operator

from RestrictedPython import compile_restricted, limited_builtins, safe_builtins, utility_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

from askrag.core.exceptions import ToolExecutionError

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 20000
NO_OUTPUT = "(no output)"

_INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
}


def _inplacevar(op: str, target, value):
    return _INPLACE_OPERATORS[op](target, value)


def restricted_globals() -> dict:
    """Globals for executing restricted byte code."""
    builtins = dict(safe_builtins)
    builtins.update(limited_builtins)
    builtins.update(utility_builtins)
    return {
        "__builtins__": builtins,
        "__name__": "sandbox",
        "__metaclass__": type,
        "_print_": PrintCollector,
        "_getattr_": safer_getattr,
        "_getitem_": default_guarded_getitem,
        "_getiter_": default_guarded_getiter,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
        "_inplacevar_": _inplacevar,
    }


def execute_restricted(code: str) -> str:
    """
    Compile and run code in the current process; returns printed output.

    Raises:
        SyntaxError: If the code is invalid or uses forbidden constructs
    """
    byte_code = compile_restricted(code, filename="<sandbox>", mode="exec")
    namespace = restricted_globals()
    exec(byte_code, namespace)
    collector = namespace.get("_print")
    output = collector() if collector is not None else ""
    return output[:MAX_OUTPUT_CHARS]


def _child_main(code: str, connection) -> None:
    try:
        connection.send(("ok", execute_restricted(code)))
    except Exception as e:
        connection.send(("error", f"{type(e).__name__}: {e}"))
    finally:
        connection.close()


def run_sandboxed(code: str, timeout: float, tool: str = "python") -> str:
    """
    Run code in a supervised child process.

    Blocking; call it from a worker thread.

    Args:
        code: Python source
        timeout: Wall-clock limit in seconds, including process start
        tool: Tool name for error context

    Returns:
        str: Printed output, or '(no output)'

    Raises:
        ToolExecutionError: On compile errors, runtime errors, crashes or timeout
    """
    context = multiprocessing.get_context("spawn")
    receiver, sender = context.Pipe(duplex=False)
    process = context.Process(target=_child_main, args=(code, sender), daemon=True)
    process.start()
    sender.close()
    try:
        if not receiver.poll(timeout):
            raise ToolExecutionError(f"execution timed out after {timeout:g}s", tool=tool)
        status, payload = receiver.recv()
    except EOFError as e:
        raise ToolExecutionError(
            f"sandbox exited unexpectedly (exit code {process.exitcode})", tool=tool
        ) from e
    finally:
        if process.is_alive():
            process.terminate()
        process.join(1)
        receiver.close()

    if status != "ok":
        logger.info(f"{__name__}:run_sandboxed - Code failed: {payload}")
        raise ToolExecutionError(payload, tool=tool)
    return payload.strip() or NO_OUTPUT
