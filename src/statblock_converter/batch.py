"""
Batch parsing of several stat blocks pasted together.

Blocks are separated by lines made only of three or more dashes. Each
block is parsed and converted on its own; a failing block is reported in
its result and never stops the rest.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from .config import ConversionOptions, ParseOptions
from .conversion import convert
from .exceptions import StatblockError
from .models import CanonicalCreature, TargetStatBlock
from .registry import ParserRegistry, build_default_registry

logger = logging.getLogger("statblock-converter.batch")

SEPARATOR_RE = re.compile(r"^-{3,}[ \t]*$", re.MULTILINE)


@dataclass
class BatchResult:
    """Outcome for one block of a batch."""
    index: int
    success: bool
    creature: CanonicalCreature | None = None
    adversary: TargetStatBlock | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"index": self.index, "success": self.success}
        if self.creature is not None:
            result["creature"] = self.creature.model_dump(by_alias=True, mode="json")
        if self.adversary is not None:
            result["adversary"] = self.adversary.model_dump(by_alias=True, mode="json")
        if self.error:
            result["error"] = self.error
        return result


def split_blocks(text: str) -> list[str]:
    """Split on ``---`` separator lines, dropping empty blocks."""
    if not text:
        return []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return [block.strip() for block in SEPARATOR_RE.split(normalized) if block.strip()]


def parse_batch(
    text: str,
    options: ParseOptions | dict | str | None = None,
    convert_options: ConversionOptions | dict | None = None,
    registry: ParserRegistry | None = None,
) -> list[BatchResult]:
    """Parse and convert every block in ``text``.

    Args:
        text: One or more stat blocks separated by ``---`` lines
        options: Parse options applied to every block
        convert_options: Conversion options applied to every block
        registry: Registry to parse with (defaults to a fresh default one)

    Returns:
        One result per non-empty block, in input order
    """
    registry = registry or build_default_registry()
    limit = registry.settings.max_input_chars
    results = []
    for index, block in enumerate(split_blocks(text)):
        if len(block) > limit:
            logger.warning(f"Block {index} is {len(block)} characters (limit {limit}); skipped")
            results.append(BatchResult(index, False, error=f"Block exceeds {limit} characters"))
            continue
        try:
            creature = registry.parse(block, options)
            adversary = convert(creature, convert_options)
        except StatblockError as e:
            logger.warning(f"Block {index} failed: {e.message}")
            results.append(BatchResult(index, False, error=e.message))
            continue
        results.append(BatchResult(index, True, creature=creature, adversary=adversary))

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Batch complete: {succeeded}/{len(results)} blocks converted")
    return results


__all__ = [
    "BatchResult",
    "split_blocks",
    "parse_batch",
]
