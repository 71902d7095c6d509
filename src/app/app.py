from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from dependency_injector import containers, providers
from rich.console import Console

from pianomorph import (
    INITIAL_ABC,
    ArrangementConfig,
    ArrangementController,
    LiteLLMArrangementClient,
    SessionState,
)
from pianomorph.config import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_TITLE
from pianomorph.logging_utils import log_exception

from .branding import APP_NAME
from .loop import install_uvloop_policy
from .textual_app import PianoMorphApp

_LOGGER = logging.getLogger("app.launcher")
_CONSOLE = Console(stderr=True)


class Container(containers.DeclarativeContainer):
    config = providers.Configuration()

    client = providers.Singleton(
        LiteLLMArrangementClient,
        model=config.model,
        timeout=config.timeout,
    )
    arrangement_config = providers.Factory(ArrangementConfig, title=config.title)
    state = providers.Factory(
        SessionState,
        original_notation=config.notation,
        config=arrangement_config,
    )
    controller = providers.Singleton(ArrangementController, client=client, state=state)


def build_container(
    *,
    model: str = DEFAULT_MODEL,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    title: str = DEFAULT_TITLE,
    notation: str = INITIAL_ABC,
) -> Container:
    container = Container()
    container.config.from_dict(
        {"model": model, "timeout": timeout, "title": title, "notation": notation}
    )
    return container


def build_app(
    container: Container,
    *,
    export_dir: Path | None = None,
    initial_image: Path | None = None,
) -> PianoMorphApp:
    client = container.client()
    return PianoMorphApp(
        container.controller(),
        on_api_key=client.set_api_key,
        export_dir=export_dir,
        initial_image=initial_image,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pianomorph", description=f"Launch {APP_NAME}.")
    parser.add_argument("--model", default=DEFAULT_MODEL, help="LiteLLM model name.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="Seconds to wait for one arrangement before giving up.",
    )
    parser.add_argument("--title", default=DEFAULT_TITLE, help="Title of the arrangement.")
    parser.add_argument("--abc", type=Path, default=None, help="ABC file to load as the original.")
    parser.add_argument("--image", type=Path, default=None, help="Sheet music image to load.")
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=None,
        help="Directory exported .abc files are written to (default: cwd).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        notation = INITIAL_ABC
        if args.abc is not None:
            notation = args.abc.expanduser().read_text(encoding="utf-8")
        container = build_container(
            model=args.model,
            timeout=args.timeout,
            title=args.title,
            notation=notation,
        )
        app = build_app(container, export_dir=args.export_dir, initial_image=args.image)
        install_uvloop_policy()
        app.run()
        return 0
    except Exception as exc:
        debug = bool(os.environ.get("PIANOMORPH_DEBUG"))
        _LOGGER.warning("%s launcher failed: %s", APP_NAME, exc, exc_info=debug)
        path = log_exception(f"{APP_NAME} launcher", exc)
        _CONSOLE.print(f"[bold red]{APP_NAME} failed:[/] {exc}")
        if path is not None:
            _CONSOLE.print(f"Details logged to {path}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
