"""
Stack layout: book spines to placed millimetre rectangles and metrics.
"""

# Standard Library
import dataclasses

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.config
import book_spine_designer.errors
import book_spine_designer.geometry


GAP_MM = bsd.config.GAP_MM
CLEARANCE_SIDE_MM = bsd.config.CLEARANCE_SIDE_MM
CLEARANCE_TOP_MM = bsd.config.CLEARANCE_TOP_MM
CLEARANCE_BOTTOM_MM = bsd.config.CLEARANCE_BOTTOM_MM
MAX_BOOK_HEIGHT_MM = bsd.config.MAX_BOOK_HEIGHT_MM
SHEET_WIDTH_MM = bsd.config.SHEET_WIDTH_MM
SHEET_HEIGHT_MM = bsd.config.SHEET_HEIGHT_MM

InvalidInputError = bsd.errors.InvalidInputError
cm_to_mm = bsd.geometry.cm_to_mm
mm_to_cm = bsd.geometry.mm_to_cm

NEW_BOOK_HEIGHT_CM = 22.0
NEW_BOOK_SPINE_WIDTH_CM = 3.5
NEW_BOOK_COLOR = "#0EA5E9"


@dataclasses.dataclass(frozen=True)
class BookSpec:
	id: int
	label: str
	height_mm: float
	spine_width_mm: float
	color: str

	@classmethod
	def from_cm(cls, book_id: int, label: str, height_cm: float, spine_width_cm: float, color: str) -> "BookSpec":
		return cls(
			id=book_id,
			label=label,
			height_mm=cm_to_mm(height_cm),
			spine_width_mm=cm_to_mm(spine_width_cm),
			color=color,
		)


@dataclasses.dataclass(frozen=True)
class PlacedRect:
	id: int
	label: str
	color: str
	x_mm: float
	y_mm: float
	width_mm: float
	height_mm: float

	def to_rect(self) -> bsd.geometry.Rect:
		return bsd.geometry.Rect(self.x_mm, self.y_mm, self.width_mm, self.height_mm)


@dataclasses.dataclass(frozen=True)
class StackMetrics:
	total_width_mm: float
	max_height_mm: float
	min_height_mm: float
	required_width_mm: float
	required_height_mm: float
	collection_width_cm: float
	fits_target_sheet: bool


@dataclasses.dataclass(frozen=True)
class StackLayout:
	metrics: StackMetrics
	rects: tuple[PlacedRect, ...]


DEFAULT_BOOKS = (
	BookSpec.from_cm(1, "Book 1", 23.5, 4.25, "#2563EB"),
	BookSpec.from_cm(2, "Book 2", 23.5, 4.0, "#10B981"),
	BookSpec.from_cm(3, "Book 3", 23.5, 4.75, "#F97316"),
	BookSpec.from_cm(4, "Book 4", 23.5, 2.25, "#6366F1"),
)


#============================================
def validate_books(books: list[BookSpec]) -> None:
	"""
	Reject book lists the layout engine must not see.

	Args:
		books: Ordered book list.

	Raises:
		InvalidInputError: Empty list, non-positive dimension, a book taller
			than the maximum, or a repeated id.
	"""
	if not books:
		raise InvalidInputError("At least one book is required.")
	seen_ids: set[int] = set()
	for book in books:
		if book.id in seen_ids:
			raise InvalidInputError(f"Duplicate book id {book.id}.")
		seen_ids.add(book.id)
		if not book.height_mm > 0.0:
			raise InvalidInputError(f"{book.label}: height must be positive (got {book.height_mm} mm).")
		if not book.spine_width_mm > 0.0:
			raise InvalidInputError(f"{book.label}: spine width must be positive (got {book.spine_width_mm} mm).")
		if book.height_mm > MAX_BOOK_HEIGHT_MM:
			raise InvalidInputError(
				f"{book.label}: height {book.height_mm} mm exceeds {MAX_BOOK_HEIGHT_MM} mm."
			)


#============================================
def compute_stack_layout(books: list[BookSpec]) -> StackLayout:
	"""
	Place books left to right and compute the stack metrics.

	Books sit on a shared baseline: the tallest book's top edge is the
	reference and shorter books are pushed down by the height difference.

	Args:
		books: Ordered book list. An empty list yields zero metrics.

	Returns:
		StackLayout.
	"""
	heights_mm = [book.height_mm for book in books]
	widths_mm = [book.spine_width_mm for book in books]
	max_height_mm = max(heights_mm) if heights_mm else 0.0
	min_height_mm = min(heights_mm) if heights_mm else 0.0
	total_width_mm = sum(widths_mm) + GAP_MM * max(len(books) - 1, 0)

	rects: list[PlacedRect] = []
	cursor_mm = CLEARANCE_SIDE_MM
	for index, book in enumerate(books):
		if index > 0:
			cursor_mm += GAP_MM
		rects.append(
			PlacedRect(
				id=book.id,
				label=book.label,
				color=book.color,
				x_mm=cursor_mm,
				y_mm=CLEARANCE_TOP_MM + (max_height_mm - book.height_mm),
				width_mm=book.spine_width_mm,
				height_mm=book.height_mm,
			)
		)
		cursor_mm += book.spine_width_mm

	if books:
		required_width_mm = total_width_mm + CLEARANCE_SIDE_MM * 2.0
		required_height_mm = max_height_mm + CLEARANCE_TOP_MM + CLEARANCE_BOTTOM_MM
	else:
		required_width_mm = 0.0
		required_height_mm = 0.0
	fits_target_sheet = required_width_mm <= SHEET_WIDTH_MM and required_height_mm <= SHEET_HEIGHT_MM

	metrics = StackMetrics(
		total_width_mm=total_width_mm,
		max_height_mm=max_height_mm,
		min_height_mm=min_height_mm,
		required_width_mm=required_width_mm,
		required_height_mm=required_height_mm,
		collection_width_cm=mm_to_cm(total_width_mm),
		fits_target_sheet=fits_target_sheet,
	)
	return StackLayout(metrics=metrics, rects=tuple(rects))


#============================================
def add_book(books: list[BookSpec]) -> list[BookSpec]:
	"""
	Append a new book that copies the height of the last one.

	Args:
		books: Current book list.

	Returns:
		New book list.
	"""
	next_id = max((book.id for book in books), default=0) + 1
	height_mm = books[-1].height_mm if books else cm_to_mm(NEW_BOOK_HEIGHT_CM)
	new_book = BookSpec(
		id=next_id,
		label=f"Book {next_id}",
		height_mm=height_mm,
		spine_width_mm=cm_to_mm(NEW_BOOK_SPINE_WIDTH_CM),
		color=NEW_BOOK_COLOR,
	)
	return list(books) + [new_book]


#============================================
def remove_book(books: list[BookSpec], book_id: int) -> list[BookSpec]:
	"""
	Remove a book by id, keeping at least one book.

	Args:
		books: Current book list.
		book_id: Id to remove.

	Returns:
		New book list.
	"""
	if len(books) <= 1:
		return list(books)
	return [book for book in books if book.id != book_id]


#============================================
def update_book(books: list[BookSpec], book_id: int, **changes) -> list[BookSpec]:
	return [
		dataclasses.replace(book, **changes) if book.id == book_id else book
		for book in books
	]


#============================================
def format_millimetres(value_mm: float) -> str:
	return f"{mm_to_cm(value_mm):.1f} cm"


#============================================
def format_clearance_summary(metrics: StackMetrics) -> str:
	"""
	Summarize the required area including clearances.

	Args:
		metrics: Stack metrics.

	Returns:
		Summary string in centimetres.
	"""
	width_cm = mm_to_cm(metrics.required_width_mm)
	height_cm = mm_to_cm(metrics.required_height_mm)
	return f"{width_cm:.2f} cm x {height_cm:.2f} cm required including clearances"
