"""
Static code check.

Parses the code and compiles it under the restricted policy without running
it, reporting syntax errors, policy violations and warnings.

Dependencies: RestrictedPython, ast
System role: Non-executing substitute for the exec_code tool
"""

import ast

from RestrictedPython import compile_restricted_exec


def static_check(code: str) -> str:
    """
    Report on code without executing it.

    Returns:
        str: Multi-line report
    """
    lines = ["Static check (code was not executed):"]
    try:
        tree = ast.parse(code)
    except SyntaxError as e:
        lines.append(f"syntax: error at line {e.lineno}: {e.msg}")
        return "\n".join(lines)

    lines.append("syntax: ok")
    functions = [node.name for node in ast.walk(tree) if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))]
    imports = sorted(
        {alias.name for node in ast.walk(tree) if isinstance(node, (ast.Import, ast.ImportFrom)) for alias in node.names}
    )
    if functions:
        lines.append(f"functions: {', '.join(functions)}")
    if imports:
        lines.append(f"imports: {', '.join(imports)}")

    result = compile_restricted_exec(code)
    if result.errors:
        lines.append("sandbox policy: rejected")
        lines.extend(f"  - {error}" for error in result.errors)
    else:
        lines.append("sandbox policy: ok")
    lines.extend(f"  warning: {warning}" for warning in result.warnings)
    return "\n".join(lines)
