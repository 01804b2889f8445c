"""
Tests for reading session translation state machine.
"""

import asyncio

import pytest

from page_translator.exceptions import (
    BackendFailure,
    NoTextDetectedError,
    NotConfiguredError,
    PipelineFailure,
)
from page_translator.models.ocr import BoundingBox
from page_translator.models.session import BubbleState, ErrorCategory, TranslationOverlay
from page_translator.models.translation import TranslationResult
from page_translator.services.pipeline_service import TranslationPipelineService
from page_translator.services.session_service import (
    ERROR_MESSAGES,
    TranslationSession,
    build_overlays,
    classify_error,
    estimate_overlay,
)
from tests.mocks.translation_mocks import (
    MockImageRenderer,
    MockOcrEngine,
    MockTranslationBackend,
    instant_sleep,
    make_region,
    wait_until,
)

PAGE = "/pages/chapter1/001.png"
NEXT_PAGE = "/pages/chapter1/002.png"


def make_session(ocr=None, backend=None, renderer=None, sleep=instant_sleep):
    pipeline = TranslationPipelineService(
        ocr or MockOcrEngine(), backend or MockTranslationBackend(), renderer=renderer
    )
    return TranslationSession(
        pipeline,
        target_language="en",
        complete_display_seconds=2.0,
        error_display_seconds=3.0,
        sleep=sleep,
    )


def transitions(states):
    """Collapse consecutive duplicate bubble states."""
    collapsed = []
    for state in states:
        if not collapsed or collapsed[-1] != state.bubble_state:
            collapsed.append(state.bubble_state)
    return collapsed


class TestTranslationSessionSuccess:
    """Test the happy path."""

    @pytest.mark.asyncio
    async def test_should_go_processing_complete_idle(self, controlled_sleep):
        session = make_session(sleep=controlled_sleep)
        states = []
        session.subscribe(states.append)
        session.set_current_image_path(PAGE)

        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        assert session.bubble_state == BubbleState.COMPLETE
        assert PAGE in session.state.translated_pages
        assert controlled_sleep.delays == [2.0]

        controlled_sleep.release()
        await task

        assert session.bubble_state == BubbleState.IDLE
        assert transitions(states) == [
            BubbleState.IDLE,
            BubbleState.PROCESSING,
            BubbleState.COMPLETE,
            BubbleState.IDLE,
        ]
        assert all(state.error_message is None for state in states)

    @pytest.mark.asyncio
    async def test_should_skip_already_translated_page(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr)
        session.set_current_image_path(PAGE)

        await session.translate_current_page()
        await session.translate_current_page()

        assert ocr.call_count == 1
        assert session.bubble_state == BubbleState.IDLE

    @pytest.mark.asyncio
    async def test_should_do_nothing_without_current_page(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr)

        await session.translate_current_page()

        assert ocr.call_count == 0

    @pytest.mark.asyncio
    async def test_should_translate_again_after_reset(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr, renderer=MockImageRenderer())
        session.set_current_image_path(PAGE)
        await session.translate_current_page()

        session.reset_translated_pages()
        await session.translate_current_page()

        assert ocr.call_count == 2

    @pytest.mark.asyncio
    async def test_reset_should_clear_edited_image(self):
        session = make_session(renderer=MockImageRenderer())
        session.set_current_image_path(PAGE)
        await session.translate_current_page()
        assert session.state.edited_image_path == f"{PAGE}.translated.png"

        session.reset_translated_pages()

        assert session.state.translated_pages == frozenset()
        assert session.state.edited_image_path is None


class TestTranslationSessionErrors:
    """Test error categories and display."""

    @pytest.mark.asyncio
    async def test_should_show_no_text_message(self, controlled_sleep):
        session = make_session(ocr=MockOcrEngine([]), sleep=controlled_sleep)
        session.set_current_image_path(PAGE)

        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        assert session.bubble_state == BubbleState.ERROR
        assert session.error_message == ERROR_MESSAGES[ErrorCategory.NO_TEXT]
        assert session.state.error_category == ErrorCategory.NO_TEXT
        assert controlled_sleep.delays == [3.0]
        assert PAGE not in session.state.translated_pages

        controlled_sleep.release()
        await task

        assert session.bubble_state == BubbleState.IDLE
        assert session.error_message is None

    @pytest.mark.asyncio
    async def test_should_show_setup_message(self, controlled_sleep):
        session = make_session(
            backend=MockTranslationBackend(configured=False), sleep=controlled_sleep
        )
        session.set_current_image_path(PAGE)

        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        assert session.error_message == ERROR_MESSAGES[ErrorCategory.SETUP]
        controlled_sleep.release()
        await task

    @pytest.mark.asyncio
    async def test_should_show_generic_message(self, controlled_sleep):
        session = make_session(
            backend=MockTranslationBackend(should_fail=True), sleep=controlled_sleep
        )
        session.set_current_image_path(PAGE)

        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        assert session.error_message == ERROR_MESSAGES[ErrorCategory.GENERIC]
        controlled_sleep.release()
        await task

    @pytest.mark.asyncio
    async def test_should_allow_retry_after_error(self):
        backend = MockTranslationBackend(should_fail=True)
        session = make_session(backend=backend)
        session.set_current_image_path(PAGE)
        await session.translate_current_page()

        backend.should_fail = False
        await session.translate_current_page()

        assert PAGE in session.state.translated_pages

    @pytest.mark.asyncio
    async def test_clear_error_should_keep_state(self, controlled_sleep):
        session = make_session(ocr=MockOcrEngine([]), sleep=controlled_sleep)
        session.set_current_image_path(PAGE)
        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        session.clear_error()

        assert session.error_message is None
        assert session.bubble_state == BubbleState.ERROR
        controlled_sleep.release()
        await task


class TestTranslationSessionConcurrency:
    """Test single in-flight run and timers."""

    @pytest.mark.asyncio
    async def test_should_ignore_trigger_while_processing(self, controlled_sleep):
        gate = asyncio.Event()
        ocr = MockOcrEngine(gate=gate)
        session = make_session(ocr=ocr, sleep=controlled_sleep)
        session.set_current_image_path(PAGE)

        first = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: ocr.call_count == 1)
        assert session.bubble_state == BubbleState.PROCESSING

        await session.translate_current_page()
        assert ocr.call_count == 1

        gate.set()
        await wait_until(lambda: controlled_sleep.pending == 1)
        controlled_sleep.release()
        await first

        assert session.bubble_state == BubbleState.IDLE

    @pytest.mark.asyncio
    async def test_newer_run_should_keep_older_timer_from_reverting(
        self, controlled_sleep
    ):
        session = make_session(sleep=controlled_sleep)
        session.set_current_image_path(PAGE)
        first = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        session.set_current_image_path(NEXT_PAGE)
        second = asyncio.create_task(session.translate_current_page())
        await first
        await wait_until(lambda: controlled_sleep.pending == 1)

        assert session.bubble_state == BubbleState.COMPLETE
        assert session.state.translated_pages == frozenset({PAGE, NEXT_PAGE})

        controlled_sleep.release()
        await second
        assert session.bubble_state == BubbleState.IDLE

    @pytest.mark.asyncio
    async def test_close_should_drop_late_result(self, controlled_sleep):
        gate = asyncio.Event()
        ocr = MockOcrEngine(gate=gate)
        session = make_session(ocr=ocr, sleep=controlled_sleep)
        session.set_current_image_path(PAGE)
        states = []
        session.subscribe(states.append)

        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: ocr.call_count == 1)
        session.close()
        gate.set()
        await task

        assert session.is_closed
        assert session.state.translated_pages == frozenset()
        assert transitions(states) == [BubbleState.PROCESSING]
        assert controlled_sleep.delays == []

    @pytest.mark.asyncio
    async def test_close_should_cancel_pending_revert(self, controlled_sleep):
        session = make_session(sleep=controlled_sleep)
        session.set_current_image_path(PAGE)
        task = asyncio.create_task(session.translate_current_page())
        await wait_until(lambda: controlled_sleep.pending == 1)

        session.close()
        await task

        assert session.bubble_state == BubbleState.COMPLETE


class TestTranslationSessionAutoTranslate:
    """Test auto-translate and the bubble tap."""

    @pytest.mark.asyncio
    async def test_should_translate_on_page_change_when_enabled(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr)
        assert session.toggle_auto_translate() is True

        session.set_current_image_path(PAGE)
        await session.drain()

        assert PAGE in session.state.translated_pages
        assert ocr.calls[0][0] == PAGE

    @pytest.mark.asyncio
    async def test_should_not_translate_on_page_change_when_disabled(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr)

        session.set_current_image_path(PAGE)
        await session.drain()

        assert ocr.call_count == 0

    @pytest.mark.asyncio
    async def test_enabling_should_translate_current_page(self):
        session = make_session()
        session.set_current_image_path(PAGE)

        session.toggle_auto_translate()
        await session.drain()

        assert PAGE in session.state.translated_pages

    @pytest.mark.asyncio
    async def test_tap_should_disable_auto_translate(self):
        ocr = MockOcrEngine()
        session = make_session(ocr=ocr)
        session.toggle_auto_translate()

        await session.start_translation()

        assert session.state.auto_translate_enabled is False
        assert ocr.call_count == 0

    @pytest.mark.asyncio
    async def test_tap_should_translate_when_auto_disabled(self):
        session = make_session()
        session.set_current_image_path(PAGE)

        await session.start_translation()

        assert PAGE in session.state.translated_pages


class TestTranslationSessionOverlays:
    """Test overlay management."""

    @pytest.mark.asyncio
    async def test_should_build_overlays_without_burn_in(self):
        session = make_session()
        session.set_current_image_path(PAGE)

        await session.translate_current_page()

        overlays = session.overlays
        assert len(overlays) == 1
        assert overlays[0].id == f"{PAGE}:0"
        assert overlays[0].translated_text == "Hello"
        assert overlays[0].original_text == "你好"
        assert overlays[0].font_size == pytest.approx(16.0)

    @pytest.mark.asyncio
    async def test_should_skip_overlays_when_burned_in(self):
        session = make_session(renderer=MockImageRenderer())
        session.set_current_image_path(PAGE)

        await session.translate_current_page()

        assert session.overlays == []
        assert session.state.edited_image_path == f"{PAGE}.translated.png"

    def test_should_manage_overlays(self):
        session = make_session()
        box = BoundingBox(left=0, top=0, width=10, height=10)
        first = TranslationOverlay(id="a", position=box, translated_text="Hi")
        second = TranslationOverlay(id="b", position=box, translated_text="Yo")

        session.add_overlay(first)
        session.add_overlay(second)
        session.update_overlay(first.model_copy(update={"translated_text": "Hey"}))
        session.remove_overlay("b")

        assert [o.translated_text for o in session.overlays] == ["Hey"]

        session.clear_overlays()
        assert session.overlays == []

    @pytest.mark.parametrize("opacity,expected", [(0.1, 0.3), (0.5, 0.5), (2.0, 1.0)])
    def test_should_clamp_opacity(self, opacity, expected):
        session = make_session()

        session.set_overlay_opacity(opacity)

        assert session.state.overlay_opacity == expected

    def test_should_toggle_display_flags(self):
        session = make_session()

        session.toggle_overlay_visibility()
        session.toggle_original_text()

        assert session.state.show_overlays is False
        assert session.state.show_original_text is True


class TestTranslationSessionListeners:
    """Test state change notifications."""

    def test_should_unsubscribe(self):
        session = make_session()
        states = []
        unsubscribe = session.subscribe(states.append)

        session.toggle_overlay_visibility()
        unsubscribe()
        session.toggle_overlay_visibility()

        assert len(states) == 1

    def test_should_survive_failing_listener(self):
        session = make_session()
        states = []

        def broken(state):
            raise RuntimeError("listener bug")

        session.subscribe(broken)
        session.subscribe(states.append)
        session.toggle_original_text()

        assert len(states) == 1


class TestOverlayHelpers:
    """Test error classification and overlay sizing."""

    @pytest.mark.parametrize(
        "error,category",
        [
            (NoTextDetectedError("none"), ErrorCategory.NO_TEXT),
            (NotConfiguredError("no key"), ErrorCategory.SETUP),
            (PipelineFailure("down", cause=BackendFailure("x")), ErrorCategory.GENERIC),
            (RuntimeError("boom"), ErrorCategory.GENERIC),
        ],
    )
    def test_should_classify_errors(self, error, category):
        assert classify_error(error) == category

    def test_should_size_short_text_overlay(self):
        overlay = estimate_overlay("Hello", "你好", "page:0")

        assert overlay.position == BoundingBox(left=20, top=20, width=80, height=30)
        assert overlay.font_size == 14.0

    def test_should_wrap_long_text_overlay(self):
        overlay = estimate_overlay("x" * 50, "", "page:0")

        assert overlay.position.width == 250
        assert overlay.position.height == 36

    def test_should_estimate_overlay_without_regions(self):
        result = TranslationResult(
            original_text="你好",
            translated_text="Hello",
            model_used="mock-model",
            confidence=0.9,
        )

        overlays = build_overlays(PAGE, result)

        assert len(overlays) == 1
        assert overlays[0].position.left == 20

    def test_should_place_overlay_per_region(self):
        regions = [make_region("你好", height=100), make_region("世界", top=200)]
        result = TranslationResult(
            original_text="你好\n世界",
            translated_text="Hello\nWorld",
            regions=regions,
            region_translations=["Hello", "World"],
            model_used="mock-model",
            confidence=0.9,
        )

        overlays = build_overlays(PAGE, result)

        assert [o.id for o in overlays] == [f"{PAGE}:0", f"{PAGE}:1"]
        assert overlays[0].position == regions[0].bounding_box
        assert overlays[0].font_size == pytest.approx(24.0)
