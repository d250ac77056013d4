import io
import pathlib
import threading

import PIL.Image
import pypdf
import pytest

import book_spine_designer.artwork
import book_spine_designer.bounds
import book_spine_designer.config
import book_spine_designer.errors
import book_spine_designer.layout
import book_spine_designer.pipeline
import book_spine_designer.text


DesignSession = book_spine_designer.pipeline.DesignSession
RenderResult = book_spine_designer.config.RenderResult
Manual = book_spine_designer.bounds.Manual
Auto = book_spine_designer.bounds.Auto


#============================================
def write_png(path: pathlib.Path, size: tuple[int, int]) -> pathlib.Path:
	PIL.Image.new("RGB", size, (30, 90, 200)).save(path, format="PNG")
	return path


#============================================
def test_session_defaults_to_sample_stack() -> None:
	session = DesignSession()
	metrics = session.snapshot.layout.metrics
	assert len(session.books) == 4
	assert metrics.total_width_mm == pytest.approx(158.5)
	assert session.snapshot.resolved.zoom == pytest.approx(session.snapshot.bounds.min_zoom)


#============================================
def test_add_and_remove_books() -> None:
	session = DesignSession()
	session.add_book()
	assert [rect.id for rect in session.snapshot.layout.rects] == [1, 2, 3, 4, 5]
	session.remove_book(2)
	assert [rect.id for rect in session.snapshot.layout.rects] == [1, 3, 4, 5]
	session.update_book(5, spine_width_mm=10.0)
	assert session.snapshot.layout.rects[-1].width_mm == 10.0


#============================================
def test_set_books_rejects_empty_list() -> None:
	session = DesignSession()
	with pytest.raises(book_spine_designer.errors.InvalidInputError):
		session.set_books([])
	assert len(session.books) == 4


#============================================
def test_load_artwork_resets_to_auto(tmp_path: pathlib.Path) -> None:
	session = DesignSession()
	session.set_zoom(1.2)
	assert isinstance(session.state.artwork_state.zoom, Manual)
	session.load_artwork(write_png(tmp_path / "art.png", (800, 600)))
	state = session.state.artwork_state
	assert isinstance(state.zoom, Auto)
	assert isinstance(state.offset, Auto)
	assert state.natural_width_mm == pytest.approx(400.0)
	assert state.natural_height_mm == pytest.approx(300.0)
	assert session.state.artwork is not None


#============================================
def test_missing_artwork_falls_back_to_required_area(tmp_path: pathlib.Path) -> None:
	session = DesignSession()
	session.load_artwork(tmp_path / "missing.png")
	metrics = session.snapshot.layout.metrics
	bounds = session.snapshot.bounds
	assert session.state.artwork is None
	assert session.state.artwork_state.natural_width_mm == 0.0
	assert session.state.artwork_state.natural_height_mm == 0.0
	assert bounds.base_width_mm == pytest.approx(metrics.required_width_mm)
	assert bounds.base_height_mm == pytest.approx(metrics.required_height_mm)


#============================================
def test_no_artwork_tracks_required_area_after_book_changes() -> None:
	"""
	Without artwork the base size follows the live required area.
	"""
	session = DesignSession()
	for _ in range(3):
		session.add_book()
	metrics = session.snapshot.layout.metrics
	bounds = session.snapshot.bounds
	assert metrics.required_width_mm == pytest.approx(309.5)
	assert bounds.base_width_mm == pytest.approx(metrics.required_width_mm)
	assert bounds.base_height_mm == pytest.approx(metrics.required_height_mm)
	assert bounds.min_zoom == pytest.approx(1.0)
	session.remove_book(1)
	assert session.snapshot.bounds.base_width_mm == pytest.approx(session.snapshot.layout.metrics.required_width_mm)
	assert session.snapshot.bounds.min_zoom == pytest.approx(1.0)


#============================================
def test_stack_change_reclamps_manual_zoom(tmp_path: pathlib.Path) -> None:
	"""
	A manual zoom below the new minimum is raised after the stack grows.
	"""
	session = DesignSession()
	session.load_artwork(write_png(tmp_path / "art.png", (800, 800)))
	session.set_zoom(0.0)
	start_min = session.snapshot.bounds.min_zoom
	assert session.snapshot.resolved.zoom == pytest.approx(start_min)
	session.add_book()
	session.add_book()
	new_min = session.snapshot.bounds.min_zoom
	assert new_min > start_min
	assert session.snapshot.resolved.zoom == pytest.approx(new_min)
	assert isinstance(session.state.artwork_state.zoom, Manual)


#============================================
def test_offset_clamped_to_limits(tmp_path: pathlib.Path) -> None:
	session = DesignSession()
	session.load_artwork(write_png(tmp_path / "art.png", (800, 800)))
	session.set_zoom(1.25)
	session.set_offset(offset_x=1000.0, offset_y=-1000.0)
	resolved = session.snapshot.resolved
	assert resolved.offset_x == pytest.approx(resolved.limits.max_x)
	assert resolved.offset_y == pytest.approx(resolved.limits.min_y)


#============================================
def test_large_text_size_clamped() -> None:
	session = DesignSession()
	session.set_large_text(enabled=True, text="Saga", size_pt=5000.0)
	text_state = session.snapshot.text_state
	assert text_state.size_pt == pytest.approx(text_state.max_size_pt)
	assert text_state.max_size_pt == pytest.approx(book_spine_designer.text.compute_max_text_size(235.0))


#============================================
def test_export_builds_pdf(fast_config) -> None:
	session = DesignSession()
	result = session.export(fast_config)
	assert len(result.pages) == 4
	reader = pypdf.PdfReader(io.BytesIO(result.pdf_bytes))
	assert len(reader.pages) == 4


#============================================
def test_decode_artwork_failure_signals_none() -> None:
	assert book_spine_designer.artwork.decode_artwork(b"not an image") is None
	with pytest.raises(book_spine_designer.errors.ArtworkUnavailableError):
		book_spine_designer.artwork.require_artwork(None, "test")


#============================================
def test_scheduler_drops_stale_result(monkeypatch: pytest.MonkeyPatch) -> None:
	"""
	An older render finishing after a newer one is never published.
	"""
	release = threading.Event()

	def fake_render(snapshot, artwork, config, generation=0, cancel_event=None):
		if generation == 1:
			release.wait(timeout=5.0)
		return RenderResult(pdf_bytes=b"%PDF", pages=[], generation=generation)

	monkeypatch.setattr(book_spine_designer.pipeline, "render_document", fake_render)
	published: list[int] = []
	scheduler = book_spine_designer.pipeline.RenderScheduler(on_result=lambda result: published.append(result.generation))
	session = DesignSession()
	try:
		first = scheduler.submit(session.snapshot, None)
		second = scheduler.submit(session.snapshot, None)
		assert second.result(timeout=5.0).generation == 2
		release.set()
		assert first.result(timeout=5.0) is None
	finally:
		release.set()
		scheduler.shutdown()
	assert published == [2]
	assert scheduler.latest_result.generation == 2


#============================================
def test_scheduler_stale_callback_never_lands_after_newer_one(monkeypatch: pytest.MonkeyPatch) -> None:
	"""
	A publish for generation 1 still inside its callback cannot land after generation 2.
	"""
	first_in_callback = threading.Event()
	second_shown = threading.Event()
	consumer = {"shown": 0}

	def fake_render(snapshot, artwork, config, generation=0, cancel_event=None):
		return RenderResult(pdf_bytes=b"%PDF", pages=[], generation=generation)

	def on_result(result):
		if result.generation == 1:
			first_in_callback.set()
			# generation 2 must not publish while this callback is running
			second_shown.wait(timeout=0.5)
		consumer["shown"] = result.generation
		if result.generation == 2:
			second_shown.set()

	monkeypatch.setattr(book_spine_designer.pipeline, "render_document", fake_render)
	scheduler = book_spine_designer.pipeline.RenderScheduler(on_result=on_result)
	session = DesignSession()
	try:
		first = scheduler.submit(session.snapshot, None)
		assert first_in_callback.wait(timeout=5.0)
		second = scheduler.submit(session.snapshot, None)
		assert second.result(timeout=5.0).generation == 2
		first.result(timeout=5.0)
	finally:
		scheduler.shutdown()
	assert consumer["shown"] == 2
	assert scheduler.latest_result.generation == 2


#============================================
def test_scheduler_records_latest_error(monkeypatch: pytest.MonkeyPatch) -> None:
	def failing_render(snapshot, artwork, config, generation=0, cancel_event=None):
		raise book_spine_designer.errors.SurfaceAcquisitionError("no surface")

	monkeypatch.setattr(book_spine_designer.pipeline, "render_document", failing_render)
	published: list[int] = []
	scheduler = book_spine_designer.pipeline.RenderScheduler(on_result=lambda result: published.append(result.generation))
	try:
		future = scheduler.submit(DesignSession().snapshot, None)
		assert isinstance(future.exception(timeout=5.0), book_spine_designer.errors.SurfaceAcquisitionError)
	finally:
		scheduler.shutdown()
	assert published == []
	assert isinstance(scheduler.latest_error, book_spine_designer.errors.SurfaceAcquisitionError)
	assert scheduler.latest_result is None


#============================================
def test_scheduler_cancels_in_flight_render(fast_config) -> None:
	scheduler = book_spine_designer.pipeline.RenderScheduler(config=fast_config)
	session = DesignSession()
	try:
		futures = [scheduler.submit(session.snapshot, None) for _ in range(3)]
		last = futures[-1].result(timeout=60.0)
	finally:
		scheduler.shutdown()
	assert last.generation == 3
	assert scheduler.latest_result is last
