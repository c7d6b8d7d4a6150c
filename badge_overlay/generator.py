"""
Badge generation pipeline for Badge Overlay.

Drives decode -> layout -> text fitting -> rendering -> compositing ->
persistence, once for a single label or once per label in a batch.

Batch calls never raise for a single label: each label produces exactly one
GenerationResult or GenerationFailure, returned in input order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .badge_renderer import render_badge
from .compositor import composite_badge
from .config import BadgeConfig, load_badge_config
from .constants import logger, MAX_BADGE_WORKERS, BATCH_TIMEOUT
from .errors import BadgeError, DecodeError, GenerationTimeout
from .fonts import get_font
from .image_reader import decode_source_image
from .layout import LayoutPolicy, get_layout_policy
from .models import (
    BadgeStyle,
    BatchOutcome,
    GenerationFailure,
    GenerationResult,
    Outcome,
    SourceImage,
    summarize_outcomes,
)
from .output_writer import OutputWriter, StorageBackend
from .text_fit import fit_text

StyleInput = Union[None, BadgeStyle, Mapping[str, Any]]

_USE_DEFAULT = object()


def _failure_from_error(label: Any, error: BadgeError) -> GenerationFailure:
    labelled = type(error)(error.reason, label=str(label), stage=error.stage)
    return GenerationFailure(
        label=label,
        error=str(labelled),
        kind=error.kind,
        stage=error.stage,
    )


class BadgeGenerator:
    """
    Generates badge overlays onto a source image.

    Args:
        writer: Storage backend that publishes encoded PNG bytes
        layout: Layout policy, preset name or mapping (default bottom-center)
        style: Default badge style for calls that do not pass one
        max_workers: Upper bound on labels composited in parallel
        timeout: Default whole-batch timeout in seconds, None for no limit
    """

    def __init__(
        self,
        writer: StorageBackend,
        layout: Union[None, str, Mapping[str, Any], LayoutPolicy] = None,
        style: Optional[BadgeStyle] = None,
        max_workers: int = MAX_BADGE_WORKERS,
        timeout: Optional[float] = BATCH_TIMEOUT,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.writer = writer
        self.layout = get_layout_policy(layout)
        self.style = style or BadgeStyle()
        self.max_workers = max_workers
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: BadgeConfig, ensure_output_dir: bool = True) -> 'BadgeGenerator':
        """Build a generator writing to the configured local output directory."""
        writer = OutputWriter(config.output_dir, config.public_url_prefix)
        if ensure_output_dir:
            writer.ensure()
        return cls(
            writer,
            layout=config.layout,
            style=config.style,
            max_workers=config.max_workers,
            timeout=config.timeout,
        )

    def _resolve_style(self, style: StyleInput) -> BadgeStyle:
        if style is None:
            return self.style
        if isinstance(style, BadgeStyle):
            return style
        if isinstance(style, Mapping):
            return self.style.merged(style)
        raise TypeError(f"style must be a BadgeStyle or mapping, got {type(style).__name__}")

    def _process_label(
        self,
        source: SourceImage,
        label: str,
        style: BadgeStyle,
        expired: Optional[threading.Event] = None,
    ) -> GenerationResult:
        """
        Run layout through persistence for one label on a decoded source.

        When expired is set before the write, the label has already been
        reported as timed out and nothing is published.
        """
        stage = 'layout'
        try:
            geometry = self.layout.plan(source.width, source.height)
            stage = 'fit'
            display_text = fit_text(label, geometry.width, geometry.font_size)
            if display_text != label:
                logger.debug(f"LABEL_TRUNCATED label={label!r} display={display_text!r}")
            stage = 'render'
            badge = render_badge(geometry, display_text, style)
            stage = 'composite'
            encoded = composite_badge(source, badge, geometry.position)
            stage = 'persist'
            if expired is not None and expired.is_set():
                raise GenerationTimeout("Batch deadline passed before persisting", stage=stage)
            artifact = self.writer.write(encoded)
        except BadgeError as e:
            raise e.with_label(label)
        except Exception as e:
            raise BadgeError(f"Unexpected {type(e).__name__}: {e}", label=label, stage=stage) from e

        return GenerationResult(
            identifier=artifact.identifier,
            locator=artifact.locator,
            width=source.width,
            height=source.height,
            filename=artifact.filename,
            url=artifact.url,
            label=label,
        )

    def generate(self, image_bytes: bytes, label: str, style: StyleInput = None) -> GenerationResult:
        """
        Generate one badge image.

        Raises:
            TypeError: label is not a string
            DecodeError, CompositeError, PersistError: stage failures
        """
        if not isinstance(label, str):
            raise TypeError(f"label must be a string, got {type(label).__name__}")
        badge_style = self._resolve_style(style)

        try:
            source = decode_source_image(image_bytes)
        except DecodeError as e:
            raise e.with_label(label)

        result = self._process_label(source, label, badge_style)
        logger.info(f"BADGE_GENERATED label={label!r} id={result.identifier}")
        return result

    def generate_batch(
        self,
        image_bytes: bytes,
        labels: Sequence[str],
        style: StyleInput = None,
        timeout: Any = _USE_DEFAULT,
    ) -> BatchOutcome:
        """
        Generate one badge image per label from a single source image.

        The source is decoded once and shared read-only. Labels are
        composited in parallel (up to max_workers). When the timeout
        expires, labels still in flight are reported as Timeout failures
        and the call returns without waiting for them.

        Returns:
            One GenerationResult or GenerationFailure per label, in input order
        """
        if isinstance(labels, (str, bytes)) or not isinstance(labels, Sequence):
            raise TypeError("labels must be a sequence of strings")
        labels = list(labels)
        badge_style = self._resolve_style(style)
        if timeout is _USE_DEFAULT:
            timeout = self.timeout

        outcomes: List[Optional[Outcome]] = [None] * len(labels)
        if not labels:
            return []

        try:
            source = decode_source_image(image_bytes)
        except DecodeError as e:
            logger.error(f"BATCH_DECODE_FAILED labels={len(labels)} error={e.reason}")
            return [_failure_from_error(label, e) for label in labels]

        pending_indexes = []
        for index, label in enumerate(labels):
            if isinstance(label, str):
                pending_indexes.append(index)
            else:
                outcomes[index] = GenerationFailure(
                    label=label,
                    error=f"[InvalidLabel] stage=validate label={label!r}: "
                          f"label must be a string, got {type(label).__name__}",
                    kind='InvalidLabel',
                    stage='validate',
                )

        if pending_indexes:
            # Load the font before fanning out so workers hit the cache
            get_font(self.layout.plan(source.width, source.height).font_size)

            workers = min(self.max_workers, len(pending_indexes))
            logger.info(
                f"Processing {len(pending_indexes)} labels "
                f"(max {workers} workers, timeout={timeout})..."
            )

            expired = threading.Event()
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='badge')
            try:
                futures = {
                    executor.submit(self._process_label, source, labels[index], badge_style, expired): index
                    for index in pending_indexes
                }
                done, not_done = wait(futures, timeout=timeout)
                if not_done:
                    expired.set()

                # _process_label raises only BadgeError
                for future in done:
                    index = futures[future]
                    label = labels[index]
                    try:
                        outcomes[index] = future.result()
                        logger.info(f"  [OK] {label!r} -> {outcomes[index].filename}")
                    except BadgeError as e:
                        outcomes[index] = _failure_from_error(label, e)
                        logger.warning(f"  [FAIL] {label!r} kind={e.kind} stage={e.stage} error={e.reason}")

                for future in not_done:
                    future.cancel()
                    index = futures[future]
                    label = labels[index]
                    outcomes[index] = _failure_from_error(
                        label,
                        GenerationTimeout(f"Did not finish within {timeout}s"),
                    )
                    logger.warning(f"  [TIMEOUT] {label!r} after {timeout}s")
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        summary = summarize_outcomes(outcomes)
        logger.info(
            f"Badge batch complete: {summary['succeeded']}/{summary['total']} images created"
        )
        return outcomes


def generate_badge(
    image_bytes: bytes,
    label: str,
    style: StyleInput = None,
    config: Optional[BadgeConfig] = None,
) -> GenerationResult:
    """Generate a single badge image using config (or environment defaults)."""
    generator = BadgeGenerator.from_config(config or load_badge_config())
    return generator.generate(image_bytes, label, style)


def generate_badge_batch(
    image_bytes: bytes,
    labels: Sequence[str],
    style: StyleInput = None,
    timeout: Any = _USE_DEFAULT,
    config: Optional[BadgeConfig] = None,
) -> BatchOutcome:
    """Generate one badge image per label; see BadgeGenerator.generate_batch."""
    generator = BadgeGenerator.from_config(config or load_badge_config())
    return generator.generate_batch(image_bytes, labels, style, timeout)


def outcomes_to_dicts(outcomes: BatchOutcome) -> List[Dict[str, Any]]:
    return [outcome.to_dict() for outcome in outcomes]
