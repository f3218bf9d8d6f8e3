from __future__ import annotations

"""``result.json`` artifact written by the agent host on exit.

The file lives on the data volume and is the run's only detailed record; the
controller never reads it. Keys: ``status``, ``iterations``, ``toolCalls``,
``tokensIn``, ``tokensOut``, ``response`` and, when present, ``error`` (the
host-level failure) and ``agentError`` (the loop's own failure text).
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field

from ..apis.base import BaseSchema
from .models import LoopResult, LoopStatus, ToolCallRecord

logger = logging.getLogger(__name__)

RESULT_FILENAME = "result.json"


class ResultArtifact(BaseSchema):
    status: str
    iterations: int = 0
    tool_calls: List[ToolCallRecord] = Field(default_factory=list, alias="toolCalls")
    tokens_in: int = Field(default=0, alias="tokensIn")
    tokens_out: int = Field(default=0, alias="tokensOut")
    response: str = ""
    error: Optional[str] = None
    agent_error: Optional[str] = Field(default=None, alias="agentError")

    @classmethod
    def from_loop_result(cls, result: LoopResult, *, error: Optional[str] = None) -> "ResultArtifact":
        status = result.status.value if result.status is not None else LoopStatus.failed.value
        return cls(
            status=status,
            iterations=result.iterations,
            tool_calls=list(result.tool_calls),
            tokens_in=result.tokens_in,
            tokens_out=result.tokens_out,
            response=result.response,
            error=error,
            agent_error=result.agent_error,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def save_result(data_path: str | Path, result: LoopResult, *, error: Optional[str] = None) -> Path:
    """
    Write ``result.json`` under ``data_path``.

    Args:
        data_path: Directory of the writable data volume.
        result: The loop result to persist.
        error: Optional host-level error recorded as ``error``.

    Returns:
        The path of the written file.
    """
    artifact = ResultArtifact.from_loop_result(result, error=error)
    path = Path(data_path) / RESULT_FILENAME
    path.write_text(artifact.to_json(), encoding="utf-8")
    logger.info("Result saved to %s", path)
    return path


def load_result(path: str | Path) -> ResultArtifact:
    """Read a ``result.json`` file (or the data directory that holds it)."""
    p = Path(path)
    if p.is_dir():
        p = p / RESULT_FILENAME
    return ResultArtifact.model_validate_json(p.read_text(encoding="utf-8"))
