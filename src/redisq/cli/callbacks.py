import importlib

import typer


def module_callback(ctx: typer.Context, value: str):
    if ctx.resilient_parsing:
        return
    try:
        importlib.import_module(value)
    except ImportError:
        raise typer.BadParameter(
            message=f"module '{value}' could not be imported",
            param_hint="--module, -m",
        ) from None
    return value
