"""模型文件路径校验与探索。

文件选择对话框不在本包范围内；这里只负责确认用户给出的路径
确实是一个可加载的模型文件，以及在目录下列出候选文件。
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ValidationError
from chat_core.infrastructure.logging.logger import logger

_EXCLUDE_PARTS = {".cache", ".locks", "__pycache__"}


def _looks_excluded(path: Path) -> bool:
    return any(part in _EXCLUDE_PARTS for part in path.parts)


def validate_model_path(model_path: str | Path, extensions: Sequence[str] | None = None) -> Path:
    """校验模型路径并返回解析后的绝对路径。"""

    allowed = [e.lower() for e in (extensions or settings.allowed_model_suffixes)]
    raw = str(model_path or "").strip()
    if not raw:
        raise ValidationError(code="MODEL_PATH_EMPTY", message="Model path is empty")
    path = Path(raw).expanduser()
    if path.suffix.lower() not in allowed:
        raise ValidationError(
            code="MODEL_PATH_EXTENSION",
            message=f"Unsupported model file {path.name!r}; expected one of {', '.join(allowed)}",
            model_path=str(path),
        )
    if not path.is_file():
        raise ValidationError(
            code="MODEL_PATH_NOT_FOUND",
            message=f"Model file not found: {path}",
            model_path=str(path),
        )
    return path.resolve()


def discover_model_files(
    root: str | Path | None = None,
    extensions: Iterable[str] | None = None,
) -> list[Path]:
    """递归列出 root 下所有模型文件，按路径排序。"""

    base = Path(root or settings.models_dir).expanduser()
    if not base.is_dir():
        logger.info("Models directory not found", extra={"extra": {"models_dir": str(base)}})
        return []
    allowed = {e.lower() for e in (extensions or settings.allowed_model_suffixes)}
    found = [
        p
        for p in base.rglob("*")
        if p.is_file() and p.suffix.lower() in allowed and not _looks_excluded(p.relative_to(base))
    ]
    found.sort()
    logger.debug("Discovered model files", extra={"extra": {"models_dir": str(base), "count": len(found)}})
    return found
