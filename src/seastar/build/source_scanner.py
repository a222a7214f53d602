"""
Source file discovery for Seastar builds.

Walks a source tree and collects files by extension. Extension matching is
case-insensitive and extensions are given without the leading dot
("c", "cpp"). Results are sorted so that compile order, and therefore the
order of objects on the link line, is stable between runs.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from .language import LanguageDescriptor, route_source

logger = logging.getLogger(__name__)


def get_source_files(directory: Path, extensions: Iterable[str]) -> List[Path]:
    """Recursively collect files under `directory` whose extension matches.

    Args:
        directory: Root of the tree to walk
        extensions: Extensions without leading dot

    Returns:
        Sorted list of matching file paths (empty if directory is missing)
    """
    directory = Path(directory)
    wanted = {ext.lower().lstrip(".") for ext in extensions}
    if not directory.is_dir():
        logger.debug(f"Source directory not found: {directory}")
        return []

    files = [p for p in directory.rglob("*") if p.is_file() and p.suffix[1:].lower() in wanted]
    return sorted(files)


@dataclass
class SourceCollection:
    """Sources found in one build unit, grouped by language name."""

    sources: Dict[str, List[Path]] = field(default_factory=dict)

    def all_sources(self) -> List[Path]:
        result: List[Path] = []
        for files in self.sources.values():
            result.extend(files)
        return sorted(result)

    def for_language(self, name: str) -> List[Path]:
        return self.sources.get(name, [])

    def __len__(self) -> int:
        return sum(len(files) for files in self.sources.values())


class SourceScanner:
    """Groups the sources of one directory tree by language."""

    def __init__(self, src_dir: Path, languages: Sequence[LanguageDescriptor]):
        """
        Args:
            src_dir: Directory containing the sources (e.g. project/src)
            languages: Language descriptors used to route each file
        """
        self.src_dir = Path(src_dir)
        self.languages = tuple(languages)

    def scan(self) -> SourceCollection:
        extensions = set()
        for lang in self.languages:
            extensions.update(lang.extensions)

        collection = SourceCollection(sources={lang.name: [] for lang in self.languages})
        for path in get_source_files(self.src_dir, extensions):
            lang = route_source(path, self.languages)
            if lang is not None:
                collection.sources[lang.name].append(path)

        logger.debug(f"Scanned {self.src_dir}: {len(collection)} sources")
        return collection
