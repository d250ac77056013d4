"""
Millimetre geometry helpers and unit conversion.
"""

# Standard Library
import dataclasses

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.config


CM_TO_MM = bsd.config.CM_TO_MM
POINTS_PER_MM = bsd.config.POINTS_PER_MM


#============================================
def clamp(value: float, min_value: float, max_value: float) -> float:
	"""
	Clamp a value into [min_value, max_value].

	Args:
		value: Input value.
		min_value: Lower bound.
		max_value: Upper bound.

	Returns:
		Clamped value. Collapses to min_value when the bounds are equal.
	"""
	return min(max(value, min_value), max_value)


#============================================
def cm_to_mm(value_cm: float) -> float:
	"""
	Convert centimetres to millimetres.
	"""
	return value_cm * CM_TO_MM


#============================================
def mm_to_cm(value_mm: float) -> float:
	return value_mm / CM_TO_MM


#============================================
def mm_to_points(value_mm: float) -> float:
	"""
	Convert millimetres to PDF points (1/72 in).

	Args:
		value_mm: Millimetre value.

	Returns:
		Points value.
	"""
	return value_mm * POINTS_PER_MM


#============================================
def points_to_mm(value_points: float) -> float:
	return value_points / POINTS_PER_MM


#============================================
def mm_to_pixels(value_mm: float, scale: float) -> float:
	"""
	Convert millimetres to device pixels.

	Args:
		value_mm: Millimetre value.
		scale: Pixels per millimetre.

	Returns:
		Unrounded pixel value.
	"""
	return value_mm * scale


@dataclasses.dataclass(frozen=True)
class Rect:
	left: float
	top: float
	width: float
	height: float

	@property
	def right(self) -> float:
		return self.left + self.width

	@property
	def bottom(self) -> float:
		return self.top + self.height

	@property
	def center(self) -> tuple[float, float]:
		return (self.left + self.width / 2.0, self.top + self.height / 2.0)

	@property
	def is_empty(self) -> bool:
		return self.width <= 0.0 or self.height <= 0.0

	def translate(self, dx: float, dy: float) -> "Rect":
		return Rect(self.left + dx, self.top + dy, self.width, self.height)

	def intersect(self, other: "Rect") -> "Rect":
		"""
		Intersect two rectangles.

		Args:
			other: Rectangle to intersect with.

		Returns:
			Intersection, with zero width/height when they do not overlap.
		"""
		left = max(self.left, other.left)
		top = max(self.top, other.top)
		right = min(self.right, other.right)
		bottom = min(self.bottom, other.bottom)
		return Rect(left, top, max(right - left, 0.0), max(bottom - top, 0.0))

	def to_pixel_box(self, scale: float) -> tuple[int, int, int, int]:
		"""
		Convert to an integer pixel box (x0, y0, x1, y1).

		Args:
			scale: Pixels per millimetre.

		Returns:
			Rounded pixel box.
		"""
		return (
			int(round(mm_to_pixels(self.left, scale))),
			int(round(mm_to_pixels(self.top, scale))),
			int(round(mm_to_pixels(self.right, scale))),
			int(round(mm_to_pixels(self.bottom, scale))),
		)


#============================================
def rect_from_center(center_x: float, center_y: float, width: float, height: float) -> Rect:
	return Rect(center_x - width / 2.0, center_y - height / 2.0, width, height)


#============================================
def centered_rect(container_width: float, container_height: float, width: float, height: float) -> Rect:
	"""
	Center a rectangle of the given size inside a container at the origin.

	Args:
		container_width: Container width.
		container_height: Container height.
		width: Rectangle width.
		height: Rectangle height.

	Returns:
		Centered Rect.
	"""
	return rect_from_center(container_width / 2.0, container_height / 2.0, width, height)
