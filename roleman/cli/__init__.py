# roleman/cli - Click CLI 진입점, i18n, UI
"""
CLI 모듈

Usage:
    from roleman.cli import cli

    cli()
"""

__all__ = ["cli", "main"]


def __getattr__(name: str):
    if name in __all__:
        from roleman.cli import app

        return getattr(app, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
