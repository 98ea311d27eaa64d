"""chat-core 命令行入口。

在终端里与本地推理后端对话；通过 pyproject.toml 注册为 `chat-core` 脚本。
"""

import asyncio
from pathlib import Path
from typing import Dict, Optional

import click

from chat_core.agents.chat_session import ChatSession
from chat_core.config.settings import settings
from chat_core.domain.conversation import StoreEvent
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import MessageRole, MessageState
from chat_core.infrastructure.model_files import discover_model_files
from chat_core.providers import create_backend


class StreamPrinter:
    """消息存储监听器：助手片段写入时立即输出到终端。"""

    def __init__(self) -> None:
        self._printed: Dict[str, int] = {}

    def __call__(self, event: StoreEvent) -> None:
        msg = event.message
        if msg.role is not MessageRole.ASSISTANT:
            return
        if event.kind == "appended":
            self._printed[msg.id] = 0
            click.secho("assistant> ", fg="green", nl=False)
            return
        if msg.state is MessageState.FAILED:
            click.echo()
            click.secho(msg.content, fg="red")
            self._printed.pop(msg.id, None)
            return
        done = self._printed.get(msg.id, 0)
        if len(msg.content) > done:
            click.echo(msg.content[done:], nl=False)
            self._printed[msg.id] = len(msg.content)
        if msg.state is MessageState.COMPLETE:
            click.echo()
            self._printed.pop(msg.id, None)


def _load(session: ChatSession, model_path: str) -> None:
    try:
        loaded = asyncio.run(session.load_model(model_path))
    except BusinessError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        return
    if loaded:
        click.secho("Model loaded successfully", fg="green")
    else:
        err = session.gate.last_error
        detail = f": {err.message}" if err else ""
        click.secho(f"Model failed to load{detail}", fg="red", err=True)


def _print_history(session: ChatSession) -> None:
    for m in session.messages():
        color = "cyan" if m.role is MessageRole.USER else "green"
        click.secho(f"{m.role.value}> ", fg=color, nl=False)
        click.echo(m.content)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="local-chat-core")
def cli() -> None:
    """与本地加载的语言模型对话。"""


@cli.command()
@click.option("--model", "model_path", type=click.Path(dir_okay=False), help="Model file to load on start.")
@click.option("--backend-url", default=None, help="Inference backend RPC base URL.")
def chat(model_path: Optional[str], backend_url: Optional[str]) -> None:
    """启动交互式对话。

    可用命令：/load <path>、/eject、/history、/quit。
    """
    session = ChatSession(backend=create_backend(backend_url))
    session.subscribe(StreamPrinter())
    click.secho(f"Backend: {backend_url or settings.backend_url}", dim=True)
    if model_path:
        _load(session, model_path)

    while True:
        try:
            line = click.prompt("you", prompt_suffix="> ", default="", show_default=False)
        except (EOFError, click.Abort):
            click.echo()
            break
        text = line.strip()
        if not text:
            continue
        if text in ("/quit", "/exit"):
            break
        if text == "/eject":
            session.eject()
            click.secho("Model ejected", fg="yellow")
            continue
        if text == "/history":
            _print_history(session)
            continue
        if text.startswith("/load"):
            arg = text[len("/load"):].strip()
            if not arg:
                click.secho("Usage: /load <path-to-model>", fg="yellow", err=True)
                continue
            _load(session, arg)
            continue
        try:
            asyncio.run(session.submit(line))
        except BusinessError as e:
            click.secho(f"Error: {e.message}", fg="yellow", err=True)


@cli.command()
@click.argument("directory", required=False, type=click.Path(file_okay=False))
def models(directory: Optional[str]) -> None:
    """列出 DIRECTORY 下的模型文件（默认使用配置的模型目录）。"""
    root = Path(directory or settings.models_dir)
    found = discover_model_files(root)
    if not found:
        click.secho(f"No model files found under {root}", fg="yellow")
        return
    for path in found:
        click.echo(str(path))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
