"""
Recompute pipeline, designer session, and superseding background renders.
"""

# Standard Library
import concurrent.futures
import dataclasses
import pathlib
import threading
import typing

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.artwork
import book_spine_designer.bounds
import book_spine_designer.config
import book_spine_designer.errors
import book_spine_designer.layout
import book_spine_designer.pdf_writer
import book_spine_designer.render
import book_spine_designer.text


BookSpec = bsd.layout.BookSpec
StackLayout = bsd.layout.StackLayout
ArtworkState = bsd.bounds.ArtworkState
ArtworkBounds = bsd.bounds.ArtworkBounds
ResolvedArtwork = bsd.bounds.ResolvedArtwork
LargeTextState = bsd.text.LargeTextState
ArtworkImage = bsd.artwork.ArtworkImage
RenderConfig = bsd.config.RenderConfig
RenderResult = bsd.config.RenderResult
RenderCancelled = bsd.render.RenderCancelled


@dataclasses.dataclass(frozen=True)
class DesignState:
	books: tuple[BookSpec, ...]
	artwork_state: ArtworkState
	text_state: LargeTextState
	artwork: ArtworkImage | None = None


@dataclasses.dataclass(frozen=True)
class DesignSnapshot:
	layout: StackLayout
	bounds: ArtworkBounds
	resolved: ResolvedArtwork
	artwork_state: ArtworkState
	text_state: LargeTextState


#============================================
def recompute(state: DesignState) -> DesignSnapshot:
	"""
	Run layout, bounds and the reclamp policies for the current state.

	Args:
		state: Design state.

	Returns:
		DesignSnapshot with the re-clamped artwork and text state.
	"""
	layout = bsd.layout.compute_stack_layout(list(state.books))
	bounds = bsd.bounds.compute_artwork_bounds(
		layout.metrics,
		state.artwork_state.natural_width_mm,
		state.artwork_state.natural_height_mm,
	)
	artwork_state, resolved = bsd.bounds.reclamp_artwork(state.artwork_state, bounds)
	max_size_pt = bsd.text.compute_max_text_size(layout.metrics.min_height_mm)
	text_state = bsd.text.clamp_text_size(state.text_state, max_size_pt)
	return DesignSnapshot(
		layout=layout,
		bounds=bounds,
		resolved=resolved,
		artwork_state=artwork_state,
		text_state=text_state,
	)


#============================================
def render_document(
	snapshot: DesignSnapshot,
	artwork: ArtworkImage | None,
	config: RenderConfig,
	generation: int = 0,
	cancel_event: threading.Event | None = None,
) -> RenderResult:
	"""
	Render every page and pack them into one PDF.

	Args:
		snapshot: Recomputed design.
		artwork: Decoded artwork or None.
		config: Render configuration.
		generation: Request generation stamped on the result.
		cancel_event: Optional cancellation flag.

	Returns:
		RenderResult.
	"""
	pages = bsd.render.render_pages(
		snapshot.layout,
		snapshot.bounds,
		snapshot.resolved,
		snapshot.text_state,
		artwork,
		config,
		cancel_event=cancel_event,
	)
	pdf_bytes = bsd.pdf_writer.build_multi_page_pdf(pages, config.sheet_width_mm, config.sheet_height_mm)
	return RenderResult(pdf_bytes=pdf_bytes, pages=pages, generation=generation)


class DesignSession:
	"""
	Owns the book list, artwork and text state of one designer session.

	Every mutation re-runs recompute() so snapshot always reflects the
	latest state.
	"""

	def __init__(self, books: list[BookSpec] | None = None):
		if books is None:
			books = list(bsd.layout.DEFAULT_BOOKS)
		bsd.layout.validate_books(books)
		# zero natural size follows the live required area
		self.state = DesignState(
			books=tuple(books),
			artwork_state=bsd.bounds.reset_artwork_state(0.0, 0.0),
			text_state=LargeTextState(),
		)
		self._apply()

	def _apply(self, **changes) -> DesignSnapshot:
		state = dataclasses.replace(self.state, **changes)
		snapshot = recompute(state)
		self.state = dataclasses.replace(
			state,
			artwork_state=snapshot.artwork_state,
			text_state=snapshot.text_state,
		)
		self.snapshot = snapshot
		return snapshot

	@property
	def books(self) -> list[BookSpec]:
		return list(self.state.books)

	def set_books(self, books: list[BookSpec]) -> DesignSnapshot:
		bsd.layout.validate_books(books)
		return self._apply(books=tuple(books))

	def add_book(self) -> DesignSnapshot:
		return self.set_books(bsd.layout.add_book(self.books))

	def remove_book(self, book_id: int) -> DesignSnapshot:
		return self.set_books(bsd.layout.remove_book(self.books, book_id))

	def update_book(self, book_id: int, **changes) -> DesignSnapshot:
		return self.set_books(bsd.layout.update_book(self.books, book_id, **changes))

	def set_artwork(self, artwork: ArtworkImage | None) -> DesignSnapshot:
		"""
		Replace the artwork and reset zoom and offset to automatic.

		Args:
			artwork: Decoded artwork, or None when decoding failed.

		Returns:
			New snapshot.
		"""
		# zero natural size tracks the required area on later book edits
		if artwork is None:
			width_mm, height_mm = 0.0, 0.0
		else:
			width_mm, height_mm = bsd.bounds.artwork_size_from_pixels(
				artwork.width_px,
				artwork.height_px,
				0.0,
				0.0,
			)
		return self._apply(
			artwork=artwork,
			artwork_state=bsd.bounds.reset_artwork_state(width_mm, height_mm),
		)

	def load_artwork(self, path: pathlib.Path) -> DesignSnapshot:
		return self.set_artwork(bsd.artwork.load_artwork(path))

	def clear_artwork(self) -> DesignSnapshot:
		return self.set_artwork(None)

	def set_zoom(self, zoom: float) -> DesignSnapshot:
		artwork_state = bsd.bounds.set_manual_zoom(self.state.artwork_state, self.snapshot.bounds, zoom)
		return self._apply(artwork_state=artwork_state)

	def set_offset(self, offset_x: float | None = None, offset_y: float | None = None) -> DesignSnapshot:
		artwork_state = bsd.bounds.set_manual_offset(
			self.state.artwork_state,
			self.snapshot.bounds,
			offset_x=offset_x,
			offset_y=offset_y,
		)
		return self._apply(artwork_state=artwork_state)

	def set_large_text(self, **changes) -> DesignSnapshot:
		"""
		Update large text fields (enabled, text, font, size_pt).
		"""
		return self._apply(text_state=dataclasses.replace(self.state.text_state, **changes))

	def export(self, config: RenderConfig | None = None) -> RenderResult:
		if config is None:
			config = bsd.config.build_render_config()
		return render_document(self.snapshot, self.state.artwork, config)


class RenderScheduler:
	"""
	Runs renders in the background; newer requests supersede older ones.

	Results are published by request generation: a render that finishes
	after a newer request was submitted is dropped, whatever order the
	renders complete in.
	"""

	def __init__(
		self,
		on_result: typing.Callable[[RenderResult], None] | None = None,
		config: RenderConfig | None = None,
		max_workers: int = 2,
	):
		self.on_result = on_result
		self.config = config or bsd.config.build_render_config()
		self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)
		self.lock = threading.Lock()
		# held across the generation check and the callback
		self.publish_lock = threading.Lock()
		self.generation = 0
		self.latest_result: RenderResult | None = None
		self.latest_error: Exception | None = None
		self._cancel_event: threading.Event | None = None

	def submit(self, snapshot: DesignSnapshot, artwork: ArtworkImage | None) -> concurrent.futures.Future:
		"""
		Start a render, cancelling the one in flight.

		Args:
			snapshot: Recomputed design.
			artwork: Decoded artwork or None.

		Returns:
			Future resolving to the RenderResult, or None when superseded.
		"""
		with self.lock:
			if self._cancel_event is not None:
				self._cancel_event.set()
			self.generation += 1
			generation = self.generation
			cancel_event = threading.Event()
			self._cancel_event = cancel_event
			return self.executor.submit(self._run, snapshot, artwork, generation, cancel_event)

	def _run(
		self,
		snapshot: DesignSnapshot,
		artwork: ArtworkImage | None,
		generation: int,
		cancel_event: threading.Event,
	) -> RenderResult | None:
		try:
			result = render_document(snapshot, artwork, self.config, generation, cancel_event)
		except RenderCancelled:
			return None
		except bsd.errors.SpineDesignerError as error:
			with self.lock:
				if generation == self.generation:
					self.latest_error = error
			raise
		with self.publish_lock:
			with self.lock:
				if generation != self.generation:
					return None
				self.latest_result = result
				self.latest_error = None
			if self.on_result is not None:
				self.on_result(result)
		return result

	def shutdown(self, wait: bool = True) -> None:
		with self.lock:
			if self._cancel_event is not None:
				self._cancel_event.set()
		self.executor.shutdown(wait=wait)
