# src/promptpacker/processor.py
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from promptpacker.config import IGNORE_FILE_NAME, PackConfig
from promptpacker.core.budget import select_within_budget
from promptpacker.core.classifier import ContentClassifier
from promptpacker.core.filters import InclusionDecider
from promptpacker.core.formatter import OutputFormatter
from promptpacker.core.ignore import load_ignore_spec
from promptpacker.core.scanner import ProjectScanner
from promptpacker.core.structure import build_context_map, build_overview
from promptpacker.models import Diagnostics, FileCandidate, ProcessingResult
from promptpacker.utils.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def infer_project_root(paths: List[Path]) -> Path:
    """The directory itself for whole-project mode, otherwise the selection's common parent."""
    if len(paths) == 1 and paths[0].is_dir():
        return paths[0]
    parents = [str(p if p.is_dir() else p.parent) for p in paths]
    return Path(os.path.commonpath(parents))


class CodebaseProcessor:
    """
    Runs the whole pipeline: walk, decide, classify, budget, structure, render, count.

    The configuration is validated here, so a bad size string or format fails
    before any file is touched. Everything that goes wrong afterwards lands in
    the run's Diagnostics instead of being raised.

    A Diagnostics given to the constructor is shared by every call to
    `process`; pass one to `process` instead to collect a single run.
    """

    def __init__(
        self,
        config: Optional[PackConfig] = None,
        diagnostics: Optional[Diagnostics] = None,
        classifier: Optional[ContentClassifier] = None,
    ):
        self.config = (config or PackConfig()).check()
        self.diagnostics = diagnostics
        self.classifier = classifier or ContentClassifier()
        self.formatter = OutputFormatter(self.config)

    def collect(
        self,
        paths: List[Path],
        project_root: Path,
        diagnostics: Diagnostics,
        cancel: Optional[threading.Event] = None,
    ) -> List[FileCandidate]:
        ignore_spec = None
        if self.config.respect_ignore_file:
            ignore_spec = load_ignore_spec(project_root / IGNORE_FILE_NAME)
        decider = InclusionDecider(self.config, ignore_spec)
        scanner = ProjectScanner(project_root, decider, self.config.max_depth, diagnostics, cancel)

        seen = set()
        candidates: List[FileCandidate] = []
        for path in paths:
            if cancel is not None and cancel.is_set():
                diagnostics.cancelled = True
                break
            found = scanner.walk(path) if path.is_dir() else filter(None, [scanner.evaluate(path)])
            for candidate in found:
                if candidate.path in seen:
                    continue
                seen.add(candidate.path)
                candidates.append(candidate)
        return candidates

    def process(
        self,
        root_paths: Union[PathLike, Iterable[PathLike]],
        project_root: Optional[PathLike] = None,
        cancel: Optional[threading.Event] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> ProcessingResult:
        if isinstance(root_paths, (str, os.PathLike)):
            root_paths = [root_paths]
        paths = [Path(p).resolve() for p in root_paths]
        if not paths:
            raise ValueError("No paths given to process")
        root = Path(project_root).resolve() if project_root is not None else infer_project_root(paths)
        if diagnostics is None:
            diagnostics = self.diagnostics if self.diagnostics is not None else Diagnostics()

        logger.info("Scanning %d path(s) under %s", len(paths), root)
        candidates = self.collect(paths, root, diagnostics, cancel)

        included = [c for c in candidates if c.included]
        logger.info("Classifying %d of %d candidates", len(included), len(candidates))
        classified = self.classifier.classify_all(included, self.config.max_workers, cancel)
        if cancel is not None and cancel.is_set():
            diagnostics.cancelled = True
        for candidate in classified:
            if candidate.read_error:
                diagnostics.record_error(candidate.relative_path, f"Failed to read content: {candidate.read_error}")
            elif candidate.relevance_score is not None and not candidate.content:
                # Classified but nothing to render
                diagnostics.record_excluded(candidate.relative_path, "Empty file")

        selected, total_size, skipped = select_within_budget(classified, self.config.max_total_bytes)
        for candidate, remaining in skipped:
            diagnostics.record_budget_skip(candidate.relative_path, candidate.size, remaining)

        context_map = build_context_map(selected)
        overview = build_overview(root.name or "project", classified, context_map)
        output = self.formatter.format(overview, context_map, selected)
        tokens = Tokenizer.count(output, self.config.token_model)

        logger.info("Packed %d files (%d bytes, ~%d tokens)", len(selected), total_size, tokens)
        return ProcessingResult(
            overview=overview,
            context_map=context_map,
            files=tuple(selected),
            total_size=total_size,
            token_estimate=tokens,
            formatted_output=output,
            diagnostics=diagnostics,
        )


def process(
    root_paths: Union[PathLike, Iterable[PathLike]],
    config: Optional[PackConfig] = None,
    project_root: Optional[PathLike] = None,
    diagnostics: Optional[Diagnostics] = None,
    cancel: Optional[threading.Event] = None,
) -> ProcessingResult:
    return CodebaseProcessor(config).process(root_paths, project_root, cancel, diagnostics)
