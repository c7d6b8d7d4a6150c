#!/usr/bin/env python3
"""
Unit tests for single-label and batch badge generation.

Failure injection patches pipeline stages in badge_overlay.generator so
the real decode/layout/render path still runs for every other label.

Run with:
    python3 -m pytest badge_overlay/test_generator.py -v
"""

import tempfile
import threading
import unittest
from io import BytesIO
from pathlib import Path
from unittest import mock

from PIL import Image

from badge_overlay import generator as generator_module
from badge_overlay.config import BadgeConfig
from badge_overlay.errors import CompositeError, DecodeError, PersistError
from badge_overlay.generator import BadgeGenerator, generate_badge, generate_badge_batch
from badge_overlay.layout import LayoutPolicy
from badge_overlay.models import (
    BadgeGeometry,
    GenerationFailure,
    GenerationResult,
    is_success,
    summarize_outcomes,
)
from badge_overlay.output_writer import OutputWriter

real_composite_badge = generator_module.composite_badge


def make_image_bytes(width=200, height=200, color=(255, 255, 255)):
    buffer = BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, 'PNG')
    return buffer.getvalue()


def pixels(path):
    with Image.open(path) as img:
        return img.size, img.tobytes()


class OffsetLayout(LayoutPolicy):
    """Deliberately places the badge past the right edge."""

    def plan(self, image_width, image_height):
        return BadgeGeometry(width=image_width, height=10, x=5, y=0, font_size=4)


class FlakyWriter:
    """Fails the Nth write, delegates the rest."""

    def __init__(self, inner, fail_on):
        self.inner = inner
        self.fail_on = fail_on
        self.calls = 0

    def write(self, data):
        self.calls += 1
        if self.calls == self.fail_on:
            raise PersistError("Permission denied")
        return self.inner.write(data)


class GeneratorTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name) / 'outputs'
        self.writer = OutputWriter(self.output_dir)
        self.writer.ensure()
        self.image = make_image_bytes()

    def tearDown(self):
        self._tmp.cleanup()

    def published(self):
        return sorted(p.name for p in self.output_dir.iterdir())


class TestGenerateBadge(GeneratorTestCase):
    """Tests for the single-label entry point"""

    def test_generates_result(self):
        result = BadgeGenerator(self.writer).generate(self.image, 'NEW ARRIVAL')
        self.assertIsInstance(result, GenerationResult)
        self.assertEqual((result.width, result.height), (200, 200))
        self.assertEqual(result.label, 'NEW ARRIVAL')
        self.assertEqual(result.filename, f'badge-{result.identifier}.png')
        self.assertTrue(Path(result.locator).exists())
        self.assertEqual(pixels(result.locator)[0], (200, 200))

    def test_repeat_is_unique_but_pixel_identical(self):
        """Same inputs give two artifacts with identical pixels"""
        generator = BadgeGenerator(self.writer)
        first = generator.generate(self.image, 'Flash sale')
        second = generator.generate(self.image, 'Flash sale')
        self.assertNotEqual(first.identifier, second.identifier)
        self.assertNotEqual(first.locator, second.locator)
        self.assertEqual(pixels(first.locator), pixels(second.locator))

    def test_decode_error_propagates_with_label(self):
        with self.assertRaises(DecodeError) as ctx:
            BadgeGenerator(self.writer).generate(b'garbage', 'Hello')
        self.assertEqual(ctx.exception.label, 'Hello')
        self.assertIn("'Hello'", str(ctx.exception))
        self.assertIn('stage=decode', str(ctx.exception))
        self.assertEqual(self.published(), [])

    def test_composite_error_propagates(self):
        with self.assertRaises(CompositeError) as ctx:
            BadgeGenerator(self.writer, layout=OffsetLayout()).generate(self.image, 'edge')
        self.assertEqual(ctx.exception.label, 'edge')
        self.assertEqual(self.published(), [])

    def test_non_string_label(self):
        with self.assertRaises(TypeError):
            BadgeGenerator(self.writer).generate(self.image, 42)

    def test_style_mapping_override(self):
        result = BadgeGenerator(self.writer).generate(self.image, 'blue', style={'bgColor': '#0000FF'})
        with Image.open(result.locator) as img:
            r, g, b = img.convert('RGB').getpixel((100, 161))
        self.assertLess(r, 30)
        self.assertGreater(b, 240)

    def test_layout_preset(self):
        result = BadgeGenerator(self.writer, layout='top_center').generate(self.image, 'top')
        with Image.open(result.locator) as img:
            rgb = img.convert('RGB')
            self.assertEqual(rgb.getpixel((100, 191)), (255, 255, 255))
            self.assertNotEqual(rgb.getpixel((100, 11)), (255, 255, 255))

    def test_invalid_workers(self):
        with self.assertRaises(ValueError):
            BadgeGenerator(self.writer, max_workers=0)


class TestGenerateBadgeBatch(GeneratorTestCase):
    """Tests for the batch entry point"""

    def test_outcomes_in_input_order(self):
        labels = ['one', 'two', 'three', 'four', 'five', 'six']
        outcomes = BadgeGenerator(self.writer, max_workers=3).generate_batch(self.image, labels)
        self.assertEqual(len(outcomes), len(labels))
        self.assertEqual([o.label for o in outcomes], labels)
        self.assertTrue(all(is_success(o) for o in outcomes))
        self.assertEqual(len({o.identifier for o in outcomes}), len(labels))
        self.assertEqual(len(self.published()), len(labels))

    def test_one_failure_does_not_stop_others(self):
        """A label that breaks compositing fails alone"""
        def composite(source, badge, position):
            if badge.label.text == 'BOOM':
                raise CompositeError("Injected overlay failure")
            return real_composite_badge(source, badge, position)

        labels = ['before', 'BOOM', 'after']
        with mock.patch.object(generator_module, 'composite_badge', side_effect=composite):
            outcomes = BadgeGenerator(self.writer).generate_batch(self.image, labels)

        self.assertEqual(len(outcomes), 3)
        self.assertIsInstance(outcomes[0], GenerationResult)
        self.assertIsInstance(outcomes[1], GenerationFailure)
        self.assertIsInstance(outcomes[2], GenerationResult)
        self.assertEqual(outcomes[1].label, 'BOOM')
        self.assertEqual(outcomes[1].kind, 'CompositeError')
        self.assertEqual(outcomes[1].stage, 'composite')
        self.assertIn("'BOOM'", outcomes[1].error)
        self.assertIn('Injected overlay failure', outcomes[1].error)
        self.assertEqual(len(self.published()), 2)

    def test_persist_failure_isolated(self):
        writer = FlakyWriter(self.writer, fail_on=2)
        outcomes = BadgeGenerator(writer, max_workers=1).generate_batch(self.image, ['a', 'b', 'c'])
        self.assertEqual([is_success(o) for o in outcomes], [True, False, True])
        self.assertEqual(outcomes[1].kind, 'PersistError')
        self.assertIn('Permission denied', outcomes[1].error)

    def test_unexpected_exception_captured(self):
        def render(geometry, text, style):
            raise RuntimeError("renderer exploded")

        with mock.patch.object(generator_module, 'render_badge', side_effect=render):
            outcomes = BadgeGenerator(self.writer).generate_batch(self.image, ['x', 'y'])
        self.assertEqual(len(outcomes), 2)
        for outcome, label in zip(outcomes, ['x', 'y']):
            self.assertIsInstance(outcome, GenerationFailure)
            self.assertEqual(outcome.kind, 'BadgeError')
            self.assertEqual(outcome.stage, 'render')
            self.assertIn('renderer exploded', outcome.error)
            self.assertIn(repr(label), outcome.error)

    def test_undecodable_source_fails_every_label(self):
        labels = ['a', 'b', 'c']
        with mock.patch.object(generator_module, 'render_badge') as render:
            outcomes = BadgeGenerator(self.writer).generate_batch(b'\x00\x01', labels)
            render.assert_not_called()
        self.assertEqual([o.label for o in outcomes], labels)
        for outcome in outcomes:
            self.assertEqual(outcome.kind, 'DecodeError')
            self.assertIn(repr(outcome.label), outcome.error)

    def test_decodes_source_once(self):
        with mock.patch.object(
            generator_module, 'decode_source_image', wraps=generator_module.decode_source_image
        ) as decode:
            BadgeGenerator(self.writer).generate_batch(self.image, ['a', 'b', 'c', 'd'])
        self.assertEqual(decode.call_count, 1)

    def test_non_string_label_is_a_failure(self):
        outcomes = BadgeGenerator(self.writer).generate_batch(self.image, ['ok', None, 'fine'])
        self.assertEqual([is_success(o) for o in outcomes], [True, False, True])
        self.assertEqual(outcomes[1].kind, 'InvalidLabel')
        self.assertIsNone(outcomes[1].label)

    def test_empty_batch(self):
        self.assertEqual(BadgeGenerator(self.writer).generate_batch(self.image, []), [])

    def test_bare_string_rejected(self):
        with self.assertRaises(TypeError):
            BadgeGenerator(self.writer).generate_batch(self.image, 'not a list')

    def test_invalid_style_rejected(self):
        with self.assertRaises(ValueError):
            BadgeGenerator(self.writer).generate_batch(self.image, ['a'], style={'bgColor': 'nope'})

    def test_timeout_reports_pending_labels(self):
        """Labels still running at the deadline come back as Timeout failures"""
        release = threading.Event()

        def composite(source, badge, position):
            if badge.label.text == 'slow':
                release.wait(10)
            return real_composite_badge(source, badge, position)

        labels = ['fast-1', 'slow', 'fast-2']
        with mock.patch.object(generator_module, 'composite_badge', side_effect=composite):
            try:
                outcomes = BadgeGenerator(self.writer, max_workers=3).generate_batch(
                    self.image, labels, timeout=1.0
                )
                published_on_return = self.published()
            finally:
                release.set()
            for thread in threading.enumerate():
                if thread.name.startswith('badge_'):
                    thread.join(10)

        # The slow label composites successfully once released but never persists
        self.assertEqual(len(published_on_return), 2)
        self.assertEqual(self.published(), published_on_return)

        self.assertEqual(len(outcomes), 3)
        self.assertTrue(is_success(outcomes[0]))
        self.assertTrue(is_success(outcomes[2]))
        self.assertEqual(outcomes[1].kind, 'Timeout')
        self.assertEqual(outcomes[1].label, 'slow')
        self.assertIn("'slow'", outcomes[1].error)
        self.assertEqual(summarize_outcomes(outcomes), {
            'total': 3, 'succeeded': 2, 'failed': 1, 'Timeout': 1,
        })


class TestModuleEntryPoints(unittest.TestCase):
    """Tests for generate_badge / generate_badge_batch"""

    def test_entry_points_create_output_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_dir = Path(tmpdir) / 'nested' / 'outputs'
            config = BadgeConfig(output_dir=output_dir, public_url_prefix='/static')

            result = generate_badge(make_image_bytes(), 'single', config=config)
            self.assertTrue(output_dir.is_dir())
            self.assertEqual(result.url, f'/static/{result.filename}')

            outcomes = generate_badge_batch(make_image_bytes(), ['a', 'b'], config=config)
            self.assertTrue(all(is_success(o) for o in outcomes))
            self.assertEqual(len(list(output_dir.iterdir())), 3)


if __name__ == '__main__':
    # Run tests with verbose output
    unittest.main(verbosity=2)
